"""Parses raw flow exports into domain objects."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from flowise2lc.codegen.errors import FlowParseError, ParseIssue
from flowise2lc.sdk.schema import FLOW_SCHEMA, format_error_path, iter_schema_errors

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 10 * 1024 * 1024
LARGE_FLOW_THRESHOLD = 50
DEPRECATED_TYPES = {"textSplitter", "pdfLoader"}
V2_NODE_TYPES = {"conversationChain", "sqlDatabaseChain", "vectorDBQAChain"}
ALLOWED_EXTENSIONS = {".json", ".flowise"}

_NODE_KEYS = {"id", "type", "data"}
_EDGE_KEYS = {"id", "source", "target", "sourceHandle", "targetHandle"}


@dataclass
class DomainNode:
    id: str
    type: str
    data: Dict[str, Any]
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DomainEdge:
    id: str
    source: str
    target: str
    source_handle: str = ""
    target_handle: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DomainFlow:
    """Validated, still source-shaped view of a flow export."""
    nodes: List[DomainNode]
    edges: List[DomainEdge]
    metadata: Dict[str, Any] = field(default_factory=dict)
    warnings: List[ParseIssue] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


def detect_version(data: Dict[str, Any]) -> str:
    """Guess the Flowise export version: `1.x`, `2.x` or `unknown`."""
    nodes = data.get("nodes") or []
    if not nodes or not isinstance(nodes[0], dict):
        return "unknown"
    first = nodes[0].get("data") or {}
    version = first.get("version")
    if isinstance(version, (int, float)) and not isinstance(version, bool):
        if version >= 2:
            return "2.x"
        if version == 1:
            return "1.x"
    types = {(n.get("data") or {}).get("name") or n.get("type") for n in nodes if isinstance(n, dict)}
    if types & V2_NODE_TYPES:
        return "2.x"
    return "unknown"


class FlowParser:
    """Turns raw JSON into a DomainFlow, reporting every violation at once."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, include_warnings: bool = True):
        self.max_size = max_size
        self.include_warnings = include_warnings

    def parse(self, raw: Union[bytes, str]) -> DomainFlow:
        """
        Parse a flow export.

        Args:
            raw: JSON document as bytes or text

        Returns:
            The parsed DomainFlow

        Raises:
            FlowParseError: listing all structural problems found
        """
        if isinstance(raw, bytes):
            if len(raw) > self.max_size:
                raise FlowParseError([self._size_issue(len(raw))])
            try:
                raw = raw.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise FlowParseError([ParseIssue("encoding", f"Input is not valid UTF-8: {e}")])
        else:
            if len(raw.encode("utf-8")) > self.max_size:
                raise FlowParseError([self._size_issue(len(raw.encode("utf-8")))])
            if raw.startswith("\ufeff"):
                raw = raw[1:]

        if not raw.strip():
            raise FlowParseError([ParseIssue("structure", "Input is empty")])

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FlowParseError([ParseIssue("syntax", e.msg, line=e.lineno, column=e.colno)])

        return self.parse_data(data)

    def parse_data(self, data: Any) -> DomainFlow:
        """Validate an already-decoded document and build the DomainFlow."""
        metadata: Dict[str, Any] = {}
        if isinstance(data, dict) and isinstance(data.get("flowData"), str):
            # Stored chatflow record: the graph is a JSON string inside it
            metadata.update({k: v for k, v in data.items() if k != "flowData"})
            try:
                data = json.loads(data["flowData"])
            except json.JSONDecodeError as e:
                raise FlowParseError([ParseIssue("syntax", f"flowData: {e.msg}", path="flowData",
                                                 line=e.lineno, column=e.colno)])

        if not isinstance(data, dict):
            raise FlowParseError([ParseIssue("structure", "Top-level JSON value must be an object")])

        errors = iter_schema_errors(data, FLOW_SCHEMA)
        if errors:
            raise FlowParseError([
                ParseIssue("structure", e.message, path=format_error_path(e)) for e in errors
            ])

        nodes = [
            DomainNode(
                id=n["id"],
                type=n["type"],
                data=n["data"],
                extra={k: v for k, v in n.items() if k not in _NODE_KEYS},
            )
            for n in data["nodes"]
        ]
        edges = []
        for index, e in enumerate(data["edges"]):
            edges.append(DomainEdge(
                id=e.get("id") or f"{e['source']}-{e['target']}-{index}",
                source=e["source"],
                target=e["target"],
                source_handle=e.get("sourceHandle") or "",
                target_handle=e.get("targetHandle") or "",
                extra={k: v for k, v in e.items() if k not in _EDGE_KEYS},
            ))

        chatflow = data.get("chatflow")
        if isinstance(chatflow, dict):
            metadata.update(chatflow)
        metadata["flowise_version"] = detect_version(data)
        metadata["node_count"] = len(nodes)
        metadata["edge_count"] = len(edges)

        flow = DomainFlow(
            nodes=nodes,
            edges=edges,
            metadata=metadata,
            extra={k: v for k, v in data.items() if k not in ("nodes", "edges")},
        )
        if self.include_warnings:
            flow.warnings = self._collect_warnings(flow)
        logger.debug("Parsed flow with %d nodes and %d edges", len(nodes), len(edges))
        return flow

    def parse_file(self, path: Union[str, Path]) -> DomainFlow:
        """Read and parse a flow export from disk."""
        path = Path(path)
        if path.suffix.lower() not in ALLOWED_EXTENSIONS:
            raise FlowParseError([ParseIssue(
                "structure", f"Unsupported file extension '{path.suffix}'", path=str(path))])
        try:
            size = path.stat().st_size
        except OSError as e:
            raise FlowParseError([ParseIssue("io", f"Cannot read file: {e}", path=str(path))])
        if size > self.max_size:
            raise FlowParseError([self._size_issue(size)])
        flow = self.parse(path.read_bytes())
        flow.metadata.setdefault("source_file", str(path))
        return flow

    def _size_issue(self, size: int) -> ParseIssue:
        return ParseIssue(
            "structure",
            f"Content size ({size} bytes) exceeds maximum allowed size ({self.max_size} bytes)",
        )

    def _collect_warnings(self, flow: DomainFlow) -> List[ParseIssue]:
        warnings = []
        for node in flow.nodes:
            node_type = node.data.get("name") or node.type
            if node_type in DEPRECATED_TYPES:
                warnings.append(ParseIssue(
                    "deprecated", f"Node type '{node_type}' is deprecated", path=f"nodes.{node.id}"))
        if len(flow.nodes) > LARGE_FLOW_THRESHOLD:
            warnings.append(ParseIssue(
                "performance",
                f"Large number of nodes ({len(flow.nodes)}); consider splitting the flow",
            ))
        return warnings


def parse_flow(raw: Union[bytes, str], max_size: Optional[int] = None) -> DomainFlow:
    """Convenience wrapper around FlowParser.parse."""
    return FlowParser(max_size=max_size or DEFAULT_MAX_SIZE).parse(raw)
