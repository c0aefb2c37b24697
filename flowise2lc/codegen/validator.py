"""Validates IR graphs and reports issues."""

import logging
from typing import Dict, List, Any, Optional

from .ir import IRGraph
from . import analyzer

logger = logging.getLogger(__name__)

# Issue types that make conversion of the whole graph impossible
FATAL_ISSUE_TYPES = frozenset({"missing_node", "duplicate_node", "circular_dependency"})


class ValidationIssue:
    """Represents a validation issue found in the graph."""

    def __init__(self, node_id: Optional[str], issue_type: str, message: str, severity: str = "error",
                 connection_id: Optional[str] = None, parameter_name: Optional[str] = None,
                 cycle: Optional[List[str]] = None, suggestion: Optional[str] = None):
        self.node_id = node_id
        self.issue_type = issue_type
        self.message = message
        self.severity = severity
        self.connection_id = connection_id
        self.parameter_name = parameter_name
        self.cycle = cycle
        self.suggestion = suggestion

    @property
    def is_fatal(self) -> bool:
        return self.issue_type in FATAL_ISSUE_TYPES

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.issue_type, "message": self.message, "severity": self.severity}
        for key in ("node_id", "connection_id", "parameter_name", "cycle", "suggestion"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    def __str__(self):
        subject = self.node_id or self.connection_id or "graph"
        return f"{self.severity.upper()}: [{subject}] {self.issue_type} - {self.message}"

    def __repr__(self):
        return f"ValidationIssue({self.issue_type!r}, node_id={self.node_id!r})"


class ValidationResult:
    """Outcome of validating one graph."""

    def __init__(self, errors: Optional[List[ValidationIssue]] = None,
                 warnings: Optional[List[ValidationIssue]] = None,
                 suggestions: Optional[List[ValidationIssue]] = None):
        self.errors = errors or []
        self.warnings = warnings or []
        self.suggestions = suggestions or []

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def fatal_errors(self) -> List[ValidationIssue]:
        return [e for e in self.errors if e.is_fatal]

    def errors_of_type(self, issue_type: str) -> List[ValidationIssue]:
        return [e for e in self.errors if e.issue_type == issue_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "suggestions": [s.to_dict() for s in self.suggestions],
        }


class FlowValidator:
    """Validates IR graphs and reports issues."""

    def validate(self, graph: IRGraph) -> ValidationResult:
        """
        Validate a graph.

        Checks run in a fixed order: dangling connection endpoints and
        duplicate ids, required parameters, cycles, isolated nodes. The
        graph is never modified.

        Args:
            graph: The IR graph to validate

        Returns:
            A fresh ValidationResult
        """
        result = ValidationResult()
        self._check_references(graph, result)
        self._check_parameters(graph, result)
        self._check_cycles(graph, result)
        self._check_isolated(graph, result)
        self._suggest(graph, result)
        logger.debug("Validated '%s': %d error(s), %d warning(s)",
                     graph.name, len(result.errors), len(result.warnings))
        return result

    def _check_references(self, graph: IRGraph, result: ValidationResult) -> None:
        seen = set()
        for node in graph.nodes:
            if node.id in seen:
                result.errors.append(ValidationIssue(
                    node.id, "duplicate_node", f"Node id '{node.id}' is used more than once"))
            seen.add(node.id)

        for conn in graph.connections:
            for end, node_id in (("source", conn.source), ("target", conn.target)):
                if not graph.has_node(node_id):
                    result.errors.append(ValidationIssue(
                        None, "missing_node",
                        f"Connection {conn.id} references non-existent {end} node: {node_id}",
                        connection_id=conn.id,
                    ))

    def _check_parameters(self, graph: IRGraph, result: ValidationResult) -> None:
        for node in graph.nodes:
            for name in node.missing_parameters():
                result.errors.append(ValidationIssue(
                    node.id, "missing_parameter",
                    f"Required parameter '{name}' is missing in node {node.label}",
                    parameter_name=name,
                ))

    def _check_cycles(self, graph: IRGraph, result: ValidationResult) -> None:
        for cycle in analyzer.find_cycles(graph):
            result.errors.append(ValidationIssue(
                cycle[0], "circular_dependency",
                f"Circular dependency detected: {' -> '.join(cycle)}",
                severity="critical", cycle=cycle,
            ))

    def _check_isolated(self, graph: IRGraph, result: ValidationResult) -> None:
        if not graph.nodes:
            result.warnings.append(ValidationIssue(None, "empty_flow", "Flow has no nodes", "warning"))
            return
        for node_id in analyzer.find_isolated_nodes(graph):
            result.warnings.append(ValidationIssue(
                node_id, "isolated_node", f"Node {node_id} is not connected to any other nodes",
                "warning", suggestion="Connect the node or remove it from the flow",
            ))

    def _suggest(self, graph: IRGraph, result: ValidationResult) -> None:
        if analyzer.calculate_complexity(graph) != "complex":
            return
        chains = analyzer.find_parallelizable_chains(graph)
        if len(chains) > 1:
            result.suggestions.append(ValidationIssue(
                None, "optimization",
                f"Found {len(chains)} independent chains that could run in parallel",
                "info",
            ))


def validate_graph(graph: IRGraph) -> ValidationResult:
    """Validate a graph with the default validator."""
    return FlowValidator().validate(graph)
