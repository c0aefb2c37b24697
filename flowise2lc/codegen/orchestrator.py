"""Drives converters over an ordered IR graph and assembles their output."""

import dataclasses
import logging
from typing import Dict, List, Any, Optional, Tuple

from .analyzer import calculate_complexity, topological_sort
from .errors import ISSUE_EXCEPTIONS, CycleError, Flowise2LCError
from .fragments import CodeFragment, FragmentKind, GenerationContext
from .ir import IRGraph, IRNode
from .tracing import tracing_dependencies, tracing_fragments
from .validator import FlowValidator, ValidationIssue

logger = logging.getLogger(__name__)


class ConversionResult:
    """Everything one conversion run produced."""

    def __init__(self):
        self.fragments: List[CodeFragment] = []
        self.warnings: List[ValidationIssue] = []
        self.errors: List[ValidationIssue] = []
        self.dependencies: List[str] = []
        self.node_order: List[str] = []
        self.converted_nodes: List[str] = []
        self.skipped_nodes: List[str] = []
        self.aborted = False
        self.analysis: Dict[str, Any] = {}

    @property
    def success(self) -> bool:
        """True when the run was not aborted; node-level errors may still exist."""
        return not self.aborted

    def fragments_of_kind(self, kind: FragmentKind) -> List[CodeFragment]:
        return [f for f in self.fragments if f.kind == kind]

    def raise_for_errors(self) -> None:
        """Raise the exception matching the first recorded error, if any."""
        if not self.errors:
            return
        first = self.errors[0]
        exc_class = ISSUE_EXCEPTIONS.get(first.issue_type, Flowise2LCError)
        if exc_class is CycleError:
            raise CycleError(first.message, [e.cycle for e in self.errors if e.cycle])
        raise exc_class(first.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "node_order": self.node_order,
            "converted_nodes": self.converted_nodes,
            "skipped_nodes": self.skipped_nodes,
            "dependencies": self.dependencies,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "fragments": len(self.fragments),
            "analysis": self.analysis,
        }


class ConversionOrchestrator:
    """Validates, orders and converts an IR graph into code fragments."""

    def __init__(self, registry, validator: Optional[FlowValidator] = None):
        """
        Args:
            registry: ConverterRegistry used to look up converters
            validator: Validator to run before conversion
        """
        self.registry = registry
        self.validator = validator or FlowValidator()

    def convert(self, graph: IRGraph, context: GenerationContext) -> ConversionResult:
        """
        Convert a graph. Never raises for problems in the graph itself.

        Fatal validation errors (dangling connections, duplicate ids,
        cycles) abort the run with no fragments. Nodes with missing
        required parameters, unsupported types or failing converters are
        skipped and reported; the rest of the graph is still converted.
        """
        result = ConversionResult()
        validation = self.validator.validate(graph)
        result.warnings.extend(validation.warnings)

        if validation.fatal_errors:
            result.errors.extend(validation.errors)
            result.aborted = True
            logger.warning("Conversion of '%s' aborted: %d fatal error(s)",
                           graph.name, len(validation.fatal_errors))
            return self._summarize(graph, result)

        ordering = topological_sort(graph)
        if not ordering.is_acyclic:
            for cycle in ordering.cycles:
                result.errors.append(ValidationIssue(
                    cycle[0] if cycle else None, "circular_dependency",
                    f"Circular dependency detected: {' -> '.join(cycle)}",
                    severity="critical", cycle=cycle))
            result.aborted = True
            return self._summarize(graph, result)
        result.node_order = ordering.sorted

        missing = validation.errors_of_type("missing_parameter")
        result.errors.extend(missing)
        blocked = {issue.node_id for issue in missing}

        staged: List[Tuple[CodeFragment, int, int]] = []
        dependencies: List[str] = []
        exports: Dict[str, List[str]] = {}

        if context.include_tracing:
            for fragment in tracing_fragments(context):
                staged.append((fragment, -1, len(staged)))
            dependencies.extend(tracing_dependencies(context))

        for index, node_id in enumerate(ordering.sorted):
            node = graph.get_node(node_id)
            if node_id in blocked:
                result.skipped_nodes.append(node_id)
                continue

            converter = self.registry.converter_for(node)
            if converter is None:
                result.warnings.append(ValidationIssue(
                    node_id, "unsupported_type",
                    f"No converter registered for node type '{node.type}'", "warning",
                    suggestion="Register a converter for this type or remove the node"))
                result.skipped_nodes.append(node_id)
                continue

            if converter.is_deprecated():
                replacement = converter.get_replacement_type()
                result.warnings.append(ValidationIssue(
                    node_id, "deprecated_type", f"Node type '{node.type}' is deprecated", "warning",
                    suggestion=f"Use '{replacement}' instead" if replacement else None))

            node_context = context.with_references(self._resolve_references(graph, node, exports, result))
            try:
                fragments = converter.convert(node, node_context)
                node_dependencies = converter.get_dependencies(node, node_context)
            except Exception as e:
                logger.exception("Converter %s failed on node %s", type(converter).__name__, node_id)
                result.errors.append(ValidationIssue(
                    node_id, "conversion_failed", f"Converter for '{node.type}' failed: {e}"))
                result.skipped_nodes.append(node_id)
                continue

            node_exports: List[str] = []
            for fragment in fragments:
                tagged = dataclasses.replace(fragment, metadata={**fragment.metadata, "node_id": node_id})
                staged.append((tagged, index, len(staged)))
                dependencies.extend(fragment.dependencies)
                node_exports.extend(e for e in tagged.exports if e not in node_exports)
            dependencies.extend(node_dependencies)
            exports[node_id] = node_exports
            result.converted_nodes.append(node_id)

        staged.sort(key=lambda item: (item[0].kind.priority, item[1], item[0].order, item[2]))
        result.fragments = [fragment for fragment, _, _ in staged]
        result.dependencies = sorted(set(dependencies))
        logger.info("Converted %d of %d node(s) in '%s'",
                    len(result.converted_nodes), len(graph.nodes), graph.name)
        return self._summarize(graph, result)

    def _summarize(self, graph: IRGraph, result: ConversionResult) -> ConversionResult:
        """Record type coverage and complexity for the report."""
        supported: List[str] = []
        unsupported: List[str] = []
        for node in graph.nodes:
            bucket = supported if self.registry.converter_for(node) is not None else unsupported
            if node.type not in bucket:
                bucket.append(node.type)
        total = len(graph.nodes)
        result.analysis = {
            "supported_types": sorted(supported),
            "unsupported_types": sorted(unsupported),
            "coverage": len(result.converted_nodes) / total if total else 1.0,
            "complexity": calculate_complexity(graph),
        }
        return result

    def _resolve_references(self, graph: IRGraph, node: IRNode, exports: Dict[str, List[str]],
                            result: ConversionResult) -> Dict[str, List[str]]:
        """Map each input port to the primary variable of every upstream node wired into it."""
        references: Dict[str, List[str]] = {}
        for conn in graph.incoming(node.id):
            upstream = exports.get(conn.source)
            if not upstream:
                result.warnings.append(ValidationIssue(
                    node.id, "unresolved_reference",
                    f"Input '{conn.target_port or conn.target_handle}' is wired to {conn.source}, "
                    f"which produced no variable", "warning", connection_id=conn.id))
                continue
            references.setdefault(conn.target_port or conn.source_port, []).append(upstream[0])
        return references
