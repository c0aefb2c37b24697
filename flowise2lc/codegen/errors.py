# codegen/errors.py

"""Exception hierarchy for flow conversion."""

from typing import Any, Dict, List, Optional


class Flowise2LCError(Exception):
    """Base class for all conversion errors."""
    pass


class StructuralError(Flowise2LCError):
    """Input is malformed or missing required structure."""
    pass


class ParseIssue:
    """A single problem found while parsing raw flow input."""

    def __init__(self, issue_type: str, message: str, path: str = "",
                 line: Optional[int] = None, column: Optional[int] = None):
        self.issue_type = issue_type
        self.message = message
        self.path = path
        self.line = line
        self.column = column

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.issue_type, "message": self.message}
        if self.path:
            data["path"] = self.path
        if self.line is not None:
            data["line"] = self.line
            data["column"] = self.column
        return data

    def __str__(self):
        location = f" at {self.path}" if self.path else ""
        if self.line is not None:
            location += f" (line {self.line}, column {self.column})"
        return f"{self.issue_type}{location}: {self.message}"


class FlowParseError(StructuralError):
    """Raised once with every violation found in the raw input."""

    def __init__(self, issues: List[ParseIssue]):
        self.issues = list(issues)
        summary = "; ".join(str(issue) for issue in self.issues)
        super().__init__(f"Failed to parse flow ({len(self.issues)} issue(s)): {summary}")


class DanglingReferenceError(Flowise2LCError):
    """A connection points at a node id that does not exist."""
    pass


class DuplicateNodeError(Flowise2LCError):
    """Two nodes share the same id."""
    pass


class CycleError(Flowise2LCError):
    """The graph contains at least one cycle."""

    def __init__(self, message: str, cycles: Optional[List[List[str]]] = None):
        super().__init__(message)
        self.cycles = cycles or []


class MissingParameterError(Flowise2LCError):
    """A required node parameter has no value."""
    pass


class UnsupportedTypeError(Flowise2LCError):
    """No converter is registered for a node type."""
    pass


class ConversionFailedError(Flowise2LCError):
    """A converter raised while converting a node."""
    pass


class ConverterRegistrationError(Flowise2LCError):
    """Registry misconfiguration, such as a node type bound twice."""
    pass


class ConfigError(Flowise2LCError):
    """Configuration file could not be loaded or is invalid."""
    pass


ISSUE_EXCEPTIONS = {
    "missing_node": DanglingReferenceError,
    "duplicate_node": DuplicateNodeError,
    "circular_dependency": CycleError,
    "missing_parameter": MissingParameterError,
    "unsupported_type": UnsupportedTypeError,
    "conversion_failed": ConversionFailedError,
}
