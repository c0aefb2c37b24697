"""Intermediate Representation (IR) for converted flows."""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Mapping, Optional, Tuple, Iterable


@dataclass(frozen=True)
class Parameter:
    """A configurable input of a node."""
    name: str
    value: Any = None
    type: str = "string"
    required: bool = False
    default: Any = None

    @property
    def is_set(self) -> bool:
        """True when the parameter carries a usable value."""
        return self.value is not None and self.value != ""


@dataclass(frozen=True)
class Port:
    """A connection point on a node."""
    id: str
    name: str
    type: str = ""
    optional: bool = False


@dataclass(frozen=True)
class IRNode:
    """A node of the flow. Never mutated once built."""
    id: str
    type: str
    category: str = ""
    label: str = ""
    parameters: Tuple[Parameter, ...] = ()
    input_ports: Tuple[Port, ...] = ()
    output_ports: Tuple[Port, ...] = ()
    data: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def get_parameter(self, name: str) -> Optional[Parameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def get_value(self, name: str, default: Any = None) -> Any:
        """Return the parameter value, falling back to its default and then `default`."""
        param = self.get_parameter(name)
        if param is None:
            return default
        if param.is_set:
            return param.value
        if param.default is not None:
            return param.default
        return default

    def missing_parameters(self) -> List[str]:
        """Names of required parameters that have neither value nor default."""
        return [
            p.name for p in self.parameters
            if p.required and not p.is_set and p.default in (None, "")
        ]


@dataclass(frozen=True)
class IRConnection:
    """A directed edge carrying data from one node's output to another's input."""
    id: str
    source: str
    target: str
    source_handle: str = ""
    target_handle: str = ""
    source_port: str = ""
    target_port: str = ""


class IRGraph:
    """Read-only container of nodes and connections.

    Node order is the insertion order of the source document and is used
    to break ties wherever the analysis needs a deterministic order.
    """

    def __init__(self, nodes: Iterable[IRNode] = (), connections: Iterable[IRConnection] = (),
                 metadata: Optional[Dict[str, Any]] = None):
        self._nodes: Tuple[IRNode, ...] = tuple(nodes)
        self._connections: Tuple[IRConnection, ...] = tuple(connections)
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self.metadata.setdefault("name", "Untitled Flow")
        self._node_map: Dict[str, IRNode] = {}
        for node in self._nodes:
            # First occurrence wins; duplicates are reported by validation
            self._node_map.setdefault(node.id, node)

    @property
    def nodes(self) -> Tuple[IRNode, ...]:
        return self._nodes

    @property
    def connections(self) -> Tuple[IRConnection, ...]:
        return self._connections

    @property
    def name(self) -> str:
        return self.metadata.get("name", "Untitled Flow")

    def node_ids(self) -> List[str]:
        """Unique node ids in insertion order."""
        return list(self._node_map)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_map

    def get_node(self, node_id: str) -> Optional[IRNode]:
        """Get a node by its ID."""
        return self._node_map.get(node_id)

    def incoming(self, node_id: str) -> List[IRConnection]:
        return [c for c in self._connections if c.target == node_id]

    def __len__(self):
        return len(self._nodes)

    def __repr__(self):
        return (f"IRGraph(name={self.name!r}, nodes={len(self._nodes)}, "
                f"connections={len(self._connections)})")
