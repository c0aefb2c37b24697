"""Prints Python (LangChain) projects from code fragments."""

import re
from typing import Dict, List

from .emitter import Emitter, EmittedFile, merge_import_lines
from .fragments import CodeFragment, FragmentKind, GenerationContext
from .ir import IRGraph

_FROM_IMPORT = re.compile(r"^from\s+(?P<module>[\w.]+)\s+import\s+(?P<names>[\w\s,]+)$")


class PythonPrinter(Emitter):
    """Generates a runnable Python module plus requirements.txt."""

    language = "python"
    main_file = "main.py"

    def render_main(self, groups: Dict[FragmentKind, List[CodeFragment]], graph: IRGraph,
                    context: GenerationContext) -> str:
        code_lines = [
            '"""',
            f"{graph.name}",
            "",
            "Generated by flowise2lc from a Flowise flow.",
            '"""',
            "",
        ]

        imports = [line for f in groups[FragmentKind.IMPORT] for line in f.content.splitlines() if line.strip()]
        imports = merge_import_lines(imports, _FROM_IMPORT,
                                     lambda module, names: f"from {module} import {', '.join(names)}")
        if imports:
            code_lines.extend(imports)
            code_lines.extend(["", ""])

        for kind, title in ((FragmentKind.DECLARATION, "Components"),
                            (FragmentKind.INITIALIZATION, "Wiring")):
            body = self.section(kind, groups[kind])
            if not body:
                continue
            if context.style.include_comments:
                code_lines.append(f"# {title}")
            code_lines.append(body)
            code_lines.append("")

        code_lines.extend(["", "def main():"])
        body = self.section(FragmentKind.EXECUTION, groups[FragmentKind.EXECUTION])
        if body:
            code_lines.extend(_indent(body, context.indent))
        else:
            code_lines.append(f"{context.indent}pass")

        code_lines.extend(["", "", 'if __name__ == "__main__":', f"{context.indent}main()", ""])
        return "\n".join(code_lines)

    def render_manifest(self, dependencies: List[str], graph: IRGraph, context: GenerationContext) -> EmittedFile:
        content = [f"# Requirements for {graph.name}", "# Generated by flowise2lc", ""]
        content.extend(dependencies)
        content.append("")
        return EmittedFile("requirements.txt", "\n".join(content), role="manifest")


def _indent(text: str, indent: str) -> List[str]:
    return [f"{indent}{line}" if line.strip() else "" for line in text.splitlines()]
