"""Converters for conversation memory nodes."""

from typing import List

from flowise2lc.codegen.fragments import CodeFragment, FragmentKind, GenerationContext
from flowise2lc.codegen.ir import IRNode
from flowise2lc.sdk.plugin_base import BaseConverter


class BufferMemoryConverter(BaseConverter):
    node_types = ("bufferMemory",)
    category = "memory"
    python_dependencies = ("langchain",)
    typescript_dependencies = ("langchain",)
    python_class = "ConversationBufferMemory"
    typescript_class = "BufferMemory"

    def options(self, node: IRNode, context: GenerationContext):
        key = self.parameter_value(node, "memoryKey", "chat_history")
        return [("memory_key" if context.is_python else "memoryKey", key)]

    def convert(self, node: IRNode, context: GenerationContext) -> List[CodeFragment]:
        var = self.variable_name(node)
        args = self.keyword_args(self.options(node, context), context)
        if context.is_python:
            module, cls = "langchain.memory", self.python_class
            content = f"{var} = {cls}({args})"
        else:
            module, cls = "langchain/memory", self.typescript_class
            content = f"const {var} = new {cls}({args});"
        return [
            self.import_fragment(node, context, module, cls),
            self.fragment(node, FragmentKind.DECLARATION, content, context, "memory", exports=[var]),
        ]


class BufferWindowMemoryConverter(BufferMemoryConverter):
    node_types = ("bufferWindowMemory",)
    python_class = "ConversationBufferWindowMemory"
    typescript_class = "BufferWindowMemory"

    def options(self, node: IRNode, context: GenerationContext):
        k = self.parameter_value(node, "k", 4)
        if isinstance(k, str) and k.isdigit():
            k = int(k)
        return [("k", k)] + super().options(node, context)


CONVERTERS = [BufferMemoryConverter, BufferWindowMemoryConverter]
