"""Prints TypeScript (LangChain.js) projects from code fragments."""

import json
import re
from typing import Dict, List

from .emitter import Emitter, EmittedFile, merge_import_lines, slugify
from .fragments import CodeFragment, FragmentKind, GenerationContext
from .ir import IRGraph

_NAMED_IMPORT = re.compile(r"^import\s+\{(?P<names>[^}]*)\}\s+from\s+'(?P<module>[^']+)';?$")

DEV_DEPENDENCIES = {
    "@types/node": "^20.0.0",
    "tsx": "^4.0.0",
    "typescript": "^5.0.0",
}

TSCONFIG = {
    "compilerOptions": {
        "target": "ES2022",
        "module": "NodeNext",
        "moduleResolution": "NodeNext",
        "outDir": "dist",
        "rootDir": "src",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
    },
    "include": ["src/**/*.ts"],
}


class TypeScriptPrinter(Emitter):
    """Generates src/index.ts, package.json and tsconfig.json."""

    language = "typescript"
    main_file = "src/index.ts"

    def render_main(self, groups: Dict[FragmentKind, List[CodeFragment]], graph: IRGraph,
                    context: GenerationContext) -> str:
        code_lines = [
            "/**",
            f" * {graph.name}",
            " *",
            " * Generated by flowise2lc from a Flowise flow.",
            " */",
        ]

        imports = [line for f in groups[FragmentKind.IMPORT] for line in f.content.splitlines() if line.strip()]
        imports = merge_import_lines(imports, _NAMED_IMPORT,
                                     lambda module, names: f"import {{ {', '.join(names)} }} from '{module}';")
        code_lines.extend(imports)
        code_lines.append("")

        for kind in (FragmentKind.DECLARATION, FragmentKind.INITIALIZATION):
            body = self.section(kind, groups[kind])
            if body:
                code_lines.append(body)
                code_lines.append("")

        code_lines.append("async function main(): Promise<void> {")
        body = self.section(FragmentKind.EXECUTION, groups[FragmentKind.EXECUTION])
        code_lines.extend(f"{context.indent}{line}" if line.strip() else "" for line in body.splitlines())
        code_lines.extend([
            "}",
            "",
            "main().catch((error) => {",
            f"{context.indent}console.error(error);",
            f"{context.indent}process.exit(1);",
            "});",
            "",
        ])
        return "\n".join(code_lines)

    def render_manifest(self, dependencies: List[str], graph: IRGraph, context: GenerationContext) -> EmittedFile:
        package = {
            "name": slugify(context.project_name),
            "version": "1.0.0",
            "description": f"Generated from Flowise flow: {graph.name}",
            "private": True,
            "type": "module",
            "main": "dist/index.js",
            "scripts": {
                "build": "tsc",
                "start": "node dist/index.js",
                "dev": "tsx src/index.ts",
            },
            "dependencies": {dep: "latest" for dep in dependencies},
            "devDependencies": dict(DEV_DEPENDENCIES),
        }
        return EmittedFile("package.json", json.dumps(package, indent=2) + "\n", role="manifest")

    def extra_files(self, graph: IRGraph, context: GenerationContext) -> List[EmittedFile]:
        return [EmittedFile("tsconfig.json", json.dumps(TSCONFIG, indent=2) + "\n", role="config")]
