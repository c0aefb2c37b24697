# sdk/plugin_base.py

"""Base classes for node converters."""

import json
import keyword
import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

from flowise2lc.codegen.fragments import CodeFragment, FragmentKind, GenerationContext
from flowise2lc.codegen.ir import IRNode


class Converter(ABC):
    """Contract every node converter implements.

    `node_types` lists the node types the converter handles; the first
    entry is its primary type, the rest are aliases.
    """

    node_types: Tuple[str, ...] = ()
    category: str = "general"

    def can_convert(self, node: IRNode) -> bool:
        return node.type in self.node_types

    @abstractmethod
    def convert(self, node: IRNode, context: GenerationContext) -> List[CodeFragment]:
        """Produce the fragments for one node. Must not mutate its arguments."""
        pass

    def get_dependencies(self, node: IRNode, context: GenerationContext) -> List[str]:
        """Packages the generated code for this node needs."""
        return []

    @property
    def primary_type(self) -> str:
        return self.node_types[0] if self.node_types else type(self).__name__

    def is_deprecated(self) -> bool:
        return False

    def get_replacement_type(self) -> Optional[str]:
        return None


class BaseConverter(Converter):
    """Converter with helpers shared by the bundled catalog.

    Subclasses describe the package, import and constructor of the target
    class for each language; the helpers render values and names.
    """

    python_dependencies: Tuple[str, ...] = ()
    typescript_dependencies: Tuple[str, ...] = ()

    def get_dependencies(self, node: IRNode, context: GenerationContext) -> List[str]:
        if context.is_python:
            return list(self.python_dependencies)
        return list(self.typescript_dependencies)

    def fragment(self, node: IRNode, kind: FragmentKind, content: str, context: GenerationContext,
                 suffix: str, order: int = 0, exports: Optional[List[str]] = None,
                 dependencies: Optional[List[str]] = None, **metadata: Any) -> CodeFragment:
        """Build a fragment whose id is unique per node and suffix."""
        return CodeFragment(
            id=f"{node.id}_{suffix}",
            kind=kind,
            content=content,
            dependencies=tuple(dependencies if dependencies is not None
                               else self.get_dependencies(node, context)),
            language=context.target_language,
            order=order,
            metadata=dict(metadata, node_id=node.id, exports=list(exports or []), converter=self.primary_type),
        )

    def import_fragment(self, node: IRNode, context: GenerationContext, module: str, *names: str) -> CodeFragment:
        return self.fragment(node, FragmentKind.IMPORT, render_import(context, module, names), context,
                             f"import_{sanitize_name(module)}")

    @staticmethod
    def variable_name(node: IRNode, suffix: str = "") -> str:
        return variable_name(node.id, suffix)

    @staticmethod
    def parameter_value(node: IRNode, name: str, default: Any = None) -> Any:
        return node.get_value(name, default)

    @staticmethod
    def format_value(value: Any, context: GenerationContext) -> str:
        return format_value(value, context.target_language)

    def keyword_args(self, pairs: List[Tuple[str, Any]], context: GenerationContext) -> str:
        """Render `name=value` (Python) or `{ name: value }` (TypeScript), skipping None values."""
        items = [(k, v) for k, v in pairs if v is not None and v != ""]
        if context.is_python:
            return ", ".join(f"{k}={v if isinstance(v, Raw) else self.format_value(v, context)}"
                             for k, v in items)
        if not items:
            return ""
        body = ", ".join(f"{k}: {v if isinstance(v, Raw) else self.format_value(v, context)}"
                         for k, v in items)
        return "{ " + body + " }"

    def comment(self, text: str, context: GenerationContext) -> str:
        prefix = "#" if context.is_python else "//"
        return f"{prefix} {text}"


class Raw(str):
    """A value rendered verbatim, e.g. a variable reference."""
    pass


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def sanitize_name(name: str) -> str:
    """Sanitize a name for use as an identifier."""
    return re.sub(r'\W|^(?=\d)', '_', name)


def variable_name(raw: str, suffix: str = "") -> str:
    """
    Derive a snake_case identifier from a node id.

    `chatOpenAI_0` becomes `chat_open_ai_0`; a suffix is appended with an
    underscore. Keywords get a trailing underscore.
    """
    name = _CAMEL_BOUNDARY.sub("_", raw)
    name = re.sub(r"[^0-9a-zA-Z]+", "_", name).strip("_").lower()
    name = re.sub(r"_+", "_", name) or "node"
    if name[0].isdigit():
        name = f"n_{name}"
    if suffix:
        name = f"{name}_{suffix}"
    if keyword.iskeyword(name):
        name += "_"
    return name


def format_value(value: Any, language: str) -> str:
    """Render a literal for the target language."""
    if isinstance(value, Raw):
        return str(value)
    if language == "python":
        if value is None:
            return "None"
        if isinstance(value, bool):
            return "True" if value else "False"
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(format_value(v, language) for v in value) + "]"
        if isinstance(value, dict):
            return "{" + ", ".join(f"{json.dumps(str(k))}: {format_value(v, language)}"
                                   for k, v in value.items()) + "}"
        if isinstance(value, (int, float)):
            return repr(value)
        return json.dumps(str(value))
    if value is None:
        return "undefined"
    return json.dumps(value)


def render_import(context: GenerationContext, module: str, names) -> str:
    names = sorted(set(names))
    if context.is_python:
        return f"from {module} import {', '.join(names)}"
    return f"import {{ {', '.join(names)} }} from '{module}';"
