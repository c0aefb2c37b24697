"""Builder for converting parsed flows to IR."""

import logging
import re
from types import MappingProxyType
from typing import Dict, List, Any, Tuple

from .ir import IRGraph, IRNode, IRConnection, Parameter, Port
from .parser import DomainFlow, DomainNode, DomainEdge

logger = logging.getLogger(__name__)

# Values like "{{chatOpenAI_0.data.instance}}" are wiring, not configuration
_ANCHOR_REF = re.compile(r"^\{\{.+\}\}$")


def port_name_from_handle(handle: str, node_id: str, direction: str) -> str:
    """
    Extract the port name from a Flowise handle.

    Handles look like `llmChain_0-input-model-BaseLanguageModel`; the port
    name is the segment after `<node_id>-<direction>-`. Anything else is
    returned unchanged.
    """
    if not handle:
        return ""
    prefix = f"{node_id}-{direction}-"
    if handle.startswith(prefix):
        return handle[len(prefix):].split("-", 1)[0]
    return handle


class IRBuilder:
    """Builds an IRGraph from a DomainFlow."""

    def build(self, flow: DomainFlow) -> IRGraph:
        """Convert a parsed flow into an IR graph.

        Dangling edges and duplicate ids are carried through untouched;
        validation reports them.
        """
        nodes = [self._build_node(n) for n in flow.nodes]
        connections = [self._build_connection(e) for e in flow.edges]

        metadata: Dict[str, Any] = {
            "name": flow.metadata.get("name") or "Untitled Flow",
            "flowise_version": flow.metadata.get("flowise_version", "unknown"),
        }
        for key in ("id", "description", "source_file", "type"):
            if flow.metadata.get(key):
                metadata[key] = flow.metadata[key]

        logger.debug("Built IR graph '%s' (%d nodes, %d connections)",
                     metadata["name"], len(nodes), len(connections))
        return IRGraph(nodes, connections, metadata)

    def _build_node(self, node: DomainNode) -> IRNode:
        data = node.data
        input_ports = tuple(self._build_ports(data.get("inputAnchors") or [], node.id, "input"))
        output_ports = tuple(self._build_ports(data.get("outputAnchors") or [], node.id, "output"))
        anchor_names = {p.name for p in input_ports}

        return IRNode(
            id=node.id,
            type=data.get("name") or node.type,
            category=data.get("category") or "",
            label=data.get("label") or node.id,
            parameters=tuple(self._build_parameters(data, anchor_names)),
            input_ports=input_ports,
            output_ports=output_ports,
            data=MappingProxyType(dict(data)),
        )

    def _build_parameters(self, data: Dict[str, Any], anchor_names: set) -> List[Parameter]:
        inputs = data.get("inputs") or {}
        params: List[Parameter] = []
        seen = set()

        for param_def in data.get("inputParams") or []:
            if not isinstance(param_def, dict) or not param_def.get("name"):
                continue
            name = param_def["name"]
            seen.add(name)
            param_type = param_def.get("type", "string")
            if "required" in param_def:
                required = bool(param_def["required"])
            else:
                required = not param_def.get("optional", False)
            if param_type == "credential":
                # Secrets are read from the environment by generated code
                required = False
            params.append(Parameter(
                name=name,
                value=inputs.get(name, param_def.get("default")),
                type=param_type,
                required=required,
                default=param_def.get("default"),
            ))

        for name, value in inputs.items():
            if name in seen or name in anchor_names:
                continue
            if isinstance(value, str) and _ANCHOR_REF.match(value):
                continue
            params.append(Parameter(name=name, value=value, type=_infer_type(value)))
        return params

    def _build_ports(self, anchors: List[Dict[str, Any]], node_id: str, direction: str) -> List[Port]:
        ports = []
        for anchor in anchors:
            if not isinstance(anchor, dict):
                continue
            if anchor.get("type") == "options" and anchor.get("options"):
                # Multi-output node: each option is a separate port
                ports.extend(self._build_ports(anchor["options"], node_id, direction))
                continue
            anchor_id = anchor.get("id") or f"{node_id}-{direction}-{anchor.get('name', '')}"
            name = anchor.get("name") or port_name_from_handle(anchor_id, node_id, direction)
            ports.append(Port(
                id=anchor_id,
                name=name,
                type=anchor.get("type", ""),
                optional=bool(anchor.get("optional", False)),
            ))
        return ports

    def _build_connection(self, edge: DomainEdge) -> IRConnection:
        return IRConnection(
            id=edge.id,
            source=edge.source,
            target=edge.target,
            source_handle=edge.source_handle,
            target_handle=edge.target_handle,
            source_port=port_name_from_handle(edge.source_handle, edge.source, "output"),
            target_port=port_name_from_handle(edge.target_handle, edge.target, "input"),
        )


def _infer_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "json"
    return "string"


def build_graph(flow: DomainFlow) -> IRGraph:
    return IRBuilder().build(flow)
