"""Code fragments and the per-run generation context."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FragmentKind(Enum):
    """Kind of fragment; also fixes the emission order of kinds."""
    IMPORT = "import"
    DECLARATION = "declaration"
    INITIALIZATION = "initialization"
    EXECUTION = "execution"

    @property
    def priority(self) -> int:
        return _KIND_PRIORITY[self]


_KIND_PRIORITY = {
    FragmentKind.IMPORT: 0,
    FragmentKind.DECLARATION: 1,
    FragmentKind.INITIALIZATION: 2,
    FragmentKind.EXECUTION: 3,
}


@dataclass(frozen=True)
class CodeFragment:
    """A snippet of generated code produced by one converter call."""
    id: str
    kind: FragmentKind
    content: str
    dependencies: Tuple[str, ...] = ()
    language: str = "python"
    order: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def node_id(self) -> Optional[str]:
        return self.metadata.get("node_id")

    @property
    def exports(self) -> List[str]:
        return list(self.metadata.get("exports", []))


class CodeStyle(BaseModel):
    """Formatting options for emitted code."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    indent_size: int = Field(4, ge=1, le=8)
    include_comments: bool = True


class GenerationContext(BaseModel):
    """
    Configuration of one conversion run.

    Converters receive it read-only. `references` is filled by the
    orchestrator per node: input port name -> variable names exported by
    the upstream nodes wired into that port.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    target_language: str = Field("python", pattern=r"^(python|typescript)$")
    project_name: str = "converted-flow"
    include_tracing: bool = False
    style: CodeStyle = Field(default_factory=CodeStyle)
    environment: Dict[str, str] = Field(default_factory=dict)
    references: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    @property
    def is_python(self) -> bool:
        return self.target_language == "python"

    @property
    def indent(self) -> str:
        return " " * self.style.indent_size

    def with_references(self, references: Dict[str, List[str]]) -> "GenerationContext":
        """Return a copy bound to one node's resolved input references."""
        return self.model_copy(update={"references": {k: tuple(v) for k, v in references.items()}})

    def reference(self, port: str, default: Optional[str] = None) -> Optional[str]:
        """First variable wired into `port`, or `default`."""
        values = self.references.get(port) or ()
        return values[0] if values else default
