"""Diagram renderers for IR graphs."""

import re
from typing import List

from .ir import IRGraph

_UNSAFE = re.compile(r"[^0-9A-Za-z_]")


def _mermaid_id(node_id: str) -> str:
    return _UNSAFE.sub("_", node_id)


def _escape(text: str) -> str:
    return text.replace('"', "'")


def to_mermaid(graph: IRGraph) -> str:
    """
    Generate a Mermaid graph diagram.

    Args:
        graph: The IR graph

    Returns:
        String containing Mermaid diagram code
    """
    lines = ["graph TD"]
    for node in graph.nodes:
        sid = _mermaid_id(node.id)
        label = _escape(node.label or node.type)
        lines.append(f'    {sid}("{sid}: {label}")')
    for conn in graph.connections:
        source, target = _mermaid_id(conn.source), _mermaid_id(conn.target)
        if conn.target_port:
            lines.append(f"    {source} -->|{_escape(conn.target_port)}| {target}")
        else:
            lines.append(f"    {source} --> {target}")
    return "\n".join(lines)


def to_dot(graph: IRGraph) -> str:
    """Generate a Graphviz DOT digraph, clustering nodes by category."""
    lines: List[str] = [
        "digraph IRGraph {",
        "  rankdir=TB;",
        "  node [shape=box, style=rounded];",
        "",
    ]
    categories = {}
    for node in graph.nodes:
        categories.setdefault(node.category or "other", []).append(node)

    for category, nodes in categories.items():
        lines.append(f'  subgraph "cluster_{_escape(category)}" {{')
        lines.append(f'    label="{_escape(category)}";')
        for node in nodes:
            lines.append(f'    "{_escape(node.id)}" [label="{_escape(node.label)}\\n({_escape(node.type)})"];')
        lines.append("  }")
        lines.append("")

    for conn in graph.connections:
        attrs = f' [label="{_escape(conn.target_port)}"]' if conn.target_port else ""
        lines.append(f'  "{_escape(conn.source)}" -> "{_escape(conn.target)}"{attrs};')
    lines.append("}")
    return "\n".join(lines)
