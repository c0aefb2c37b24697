"""Flow conversion pipeline."""

from .ir import IRGraph, IRNode, IRConnection, Parameter, Port
from .parser import FlowParser, DomainFlow, parse_flow
from .ir_builder import IRBuilder, build_graph
from .analyzer import (
    find_cycles, topological_sort, find_entry_points, find_exit_points,
    find_isolated_nodes, find_path, find_critical_path, extract_subgraph,
    analyze_graph, GraphStats, TopologicalSortResult, NodePath
)
from .validator import FlowValidator, ValidationIssue, ValidationResult, validate_graph
from .fragments import CodeFragment, FragmentKind, GenerationContext, CodeStyle
from .orchestrator import ConversionOrchestrator, ConversionResult
from .emitter import Emitter, EmittedFile, get_emitter
from .python_printer import PythonPrinter
from .typescript_printer import TypeScriptPrinter
from .diagram import to_mermaid, to_dot
from .codegen import CodeGenerator, GenerationOutput

__all__ = [
    # IR
    "IRGraph", "IRNode", "IRConnection", "Parameter", "Port",

    # Parsing and building
    "FlowParser", "DomainFlow", "parse_flow", "IRBuilder", "build_graph",

    # Analysis
    "find_cycles", "topological_sort", "find_entry_points", "find_exit_points",
    "find_isolated_nodes", "find_path", "find_critical_path", "extract_subgraph",
    "analyze_graph", "GraphStats", "TopologicalSortResult", "NodePath",

    # Validation
    "FlowValidator", "ValidationIssue", "ValidationResult", "validate_graph",

    # Conversion
    "CodeFragment", "FragmentKind", "GenerationContext", "CodeStyle",
    "ConversionOrchestrator", "ConversionResult",

    # Printers
    "Emitter", "EmittedFile", "get_emitter", "PythonPrinter", "TypeScriptPrinter",
    "to_mermaid", "to_dot",

    # High-level API
    "CodeGenerator", "GenerationOutput",
]
