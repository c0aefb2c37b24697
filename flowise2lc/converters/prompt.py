"""Converters for prompt template nodes."""

from typing import List

from flowise2lc.codegen.fragments import CodeFragment, FragmentKind, GenerationContext
from flowise2lc.codegen.ir import IRNode
from flowise2lc.sdk.plugin_base import BaseConverter


class PromptTemplateConverter(BaseConverter):
    node_types = ("promptTemplate",)
    category = "prompt"
    python_dependencies = ("langchain-core",)
    typescript_dependencies = ("@langchain/core",)

    def convert(self, node: IRNode, context: GenerationContext) -> List[CodeFragment]:
        var = self.variable_name(node)
        template = self.format_value(self.parameter_value(node, "template", ""), context)
        if context.is_python:
            module, content = "langchain_core.prompts", f"{var} = PromptTemplate.from_template({template})"
        else:
            module, content = "@langchain/core/prompts", f"const {var} = PromptTemplate.fromTemplate({template});"
        return [
            self.import_fragment(node, context, module, "PromptTemplate"),
            self.fragment(node, FragmentKind.DECLARATION, content, context, "prompt", exports=[var]),
        ]


class ChatPromptTemplateConverter(BaseConverter):
    node_types = ("chatPromptTemplate",)
    category = "prompt"
    python_dependencies = ("langchain-core",)
    typescript_dependencies = ("@langchain/core",)

    def convert(self, node: IRNode, context: GenerationContext) -> List[CodeFragment]:
        var = self.variable_name(node)
        messages = []
        for role, param in (("system", "systemMessagePrompt"), ("human", "humanMessagePrompt")):
            text = self.parameter_value(node, param)
            if text:
                messages.append(f"({self.format_value(role, context)}, {self.format_value(text, context)})"
                                if context.is_python else
                                f"[{self.format_value(role, context)}, {self.format_value(text, context)}]")
        joined = ", ".join(messages)
        if context.is_python:
            module, content = "langchain_core.prompts", f"{var} = ChatPromptTemplate.from_messages([{joined}])"
        else:
            module, content = ("@langchain/core/prompts",
                               f"const {var} = ChatPromptTemplate.fromMessages([{joined}]);")
        return [
            self.import_fragment(node, context, module, "ChatPromptTemplate"),
            self.fragment(node, FragmentKind.DECLARATION, content, context, "prompt", exports=[var]),
        ]


CONVERTERS = [PromptTemplateConverter, ChatPromptTemplateConverter]
