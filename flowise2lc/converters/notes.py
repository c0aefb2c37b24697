"""Sticky notes carry documentation only."""

from typing import List

from flowise2lc.codegen.fragments import CodeFragment, FragmentKind, GenerationContext
from flowise2lc.codegen.ir import IRNode
from flowise2lc.sdk.plugin_base import BaseConverter


class StickyNoteConverter(BaseConverter):
    node_types = ("stickyNote",)
    category = "utilities"

    def convert(self, node: IRNode, context: GenerationContext) -> List[CodeFragment]:
        note = self.parameter_value(node, "note", "")
        if not note or not context.style.include_comments:
            return []
        lines = [self.comment(line, context) for line in str(note).splitlines() if line.strip()]
        return [self.fragment(node, FragmentKind.DECLARATION, "\n".join(lines), context, "note")]


CONVERTERS = [StickyNoteConverter]
