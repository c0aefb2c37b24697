"""Turns ordered code fragments into files."""

import re
from abc import ABC, abstractmethod
from typing import Dict, List, Iterable

from .fragments import CodeFragment, FragmentKind, GenerationContext
from .ir import IRGraph
from .tracing import TRACING_ENV_VARS


class EmittedFile:
    """A generated file, relative to the output directory."""

    def __init__(self, path: str, content: str, role: str = "source"):
        self.path = path
        self.content = content
        self.role = role

    def __repr__(self):
        return f"EmittedFile({self.path!r}, role={self.role!r})"


class Emitter(ABC):
    """Base class for per-language printers.

    Fragments arrive already ordered; the emitter only groups them by kind
    and lays the groups out in import, declaration, initialization,
    execution order.
    """

    language = ""
    main_file = ""
    separators: Dict[FragmentKind, str] = {
        FragmentKind.IMPORT: "\n",
        FragmentKind.DECLARATION: "\n",
        FragmentKind.INITIALIZATION: "\n",
        FragmentKind.EXECUTION: "\n\n",
    }

    def organize(self, fragments: Iterable[CodeFragment]) -> Dict[FragmentKind, List[CodeFragment]]:
        groups: Dict[FragmentKind, List[CodeFragment]] = {kind: [] for kind in FragmentKind}
        for fragment in fragments:
            groups[fragment.kind].append(fragment)
        return groups

    def section(self, kind: FragmentKind, fragments: List[CodeFragment]) -> str:
        return self.separators[kind].join(f.content for f in fragments if f.content.strip())

    def environment_variables(self, fragments: Iterable[CodeFragment], context: GenerationContext) -> List[str]:
        names = set(context.environment)
        for fragment in fragments:
            names.update(fragment.metadata.get("env", []))
        if context.include_tracing:
            names.update(TRACING_ENV_VARS)
        return sorted(names)

    def env_example(self, names: List[str], context: GenerationContext) -> EmittedFile:
        lines = ["# Environment variables read by the generated code", ""]
        lines.extend(f"{name}={context.environment.get(name, '')}" for name in names)
        return EmittedFile(".env.example", "\n".join(lines) + "\n", role="config")

    def emit(self, fragments: List[CodeFragment], dependencies: List[str], graph: IRGraph,
             context: GenerationContext) -> List[EmittedFile]:
        """
        Render the main file, the dependency manifest and `.env.example`.

        Args:
            fragments: Fragments in emission order
            dependencies: Deduplicated package names
            graph: Graph the fragments came from, used for naming
            context: Generation options

        Returns:
            Files to write, main file first
        """
        groups = self.organize(fragments)
        files = [
            EmittedFile(self.main_file, self.render_main(groups, graph, context), role="main"),
            self.render_manifest(dependencies, graph, context),
        ]
        files.extend(self.extra_files(graph, context))
        files.append(self.env_example(self.environment_variables(fragments, context), context))
        return files

    @abstractmethod
    def render_main(self, groups: Dict[FragmentKind, List[CodeFragment]], graph: IRGraph,
                    context: GenerationContext) -> str:
        pass

    @abstractmethod
    def render_manifest(self, dependencies: List[str], graph: IRGraph, context: GenerationContext) -> EmittedFile:
        pass

    def extra_files(self, graph: IRGraph, context: GenerationContext) -> List[EmittedFile]:
        return []


def merge_import_lines(lines: Iterable[str], pattern: "re.Pattern", render) -> List[str]:
    """
    Merge imports of several names from the same module.

    Lines not matching `pattern` are kept as they are; exact duplicates are
    dropped. `pattern` must capture `names` and `module`.
    """
    merged: Dict[str, List[str]] = {}
    others: List[str] = []
    order: List[str] = []
    for line in lines:
        match = pattern.match(line.strip())
        if not match:
            if line not in others:
                others.append(line)
            continue
        module = match.group("module")
        if module not in merged:
            merged[module] = []
            order.append(module)
        for name in (n.strip() for n in match.group("names").split(",")):
            if name and name not in merged[module]:
                merged[module].append(name)
    return [render(module, sorted(merged[module])) for module in order] + others


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "converted-flow"


def get_emitter(language: str) -> Emitter:
    """Emitter for a target language."""
    from .python_printer import PythonPrinter
    from .typescript_printer import TypeScriptPrinter

    emitters = {"python": PythonPrinter, "typescript": TypeScriptPrinter}
    if language not in emitters:
        raise ValueError(f"Unsupported target language: {language}")
    return emitters[language]()
