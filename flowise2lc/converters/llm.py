"""Converters for chat and completion model nodes."""

import re
from typing import List, Tuple

from flowise2lc.codegen.fragments import CodeFragment, FragmentKind, GenerationContext
from flowise2lc.codegen.ir import IRNode
from flowise2lc.codegen.tracing import TRACING_HANDLER
from flowise2lc.sdk.plugin_base import BaseConverter, Raw


class ModelConverter(BaseConverter):
    """
    Shared logic for model nodes.

    `parameters` maps a node parameter to its keyword in Python and its
    option key in TypeScript.
    """

    category = "llm"
    class_name = ""
    python_module = ""
    typescript_module = ""
    api_key_env = ""
    parameters: Tuple[Tuple[str, str, str], ...] = ()

    def convert(self, node: IRNode, context: GenerationContext) -> List[CodeFragment]:
        module = self.python_module if context.is_python else self.typescript_module
        var = self.variable_name(node)

        pairs = []
        for name, py_key, ts_key in self.parameters:
            value = self.parameter_value(node, name)
            if isinstance(value, str) and _NUMBER.match(value):
                value = float(value) if "." in value else int(value)
            pairs.append((py_key if context.is_python else ts_key, value))
        if context.include_tracing:
            pairs.append(("callbacks", Raw(f"[{TRACING_HANDLER}]")))

        args = self.keyword_args(pairs, context)
        if context.is_python:
            declaration = f"{var} = {self.class_name}({args})"
        else:
            declaration = f"const {var} = new {self.class_name}({args});"

        fragment = self.fragment(node, FragmentKind.DECLARATION, declaration, context, "model",
                                 exports=[var], env=[self.api_key_env] if self.api_key_env else [])
        return [self.import_fragment(node, context, module, self.class_name), fragment]


_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")


class ChatOpenAIConverter(ModelConverter):
    node_types = ("chatOpenAI",)
    class_name = "ChatOpenAI"
    python_module = "langchain_openai"
    typescript_module = "@langchain/openai"
    api_key_env = "OPENAI_API_KEY"
    python_dependencies = ("langchain-openai",)
    typescript_dependencies = ("@langchain/openai",)
    parameters = (
        ("modelName", "model", "model"),
        ("temperature", "temperature", "temperature"),
        ("maxTokens", "max_tokens", "maxTokens"),
        ("topP", "top_p", "topP"),
        ("streaming", "streaming", "streaming"),
    )


class OpenAIConverter(ModelConverter):
    node_types = ("openAI",)
    class_name = "OpenAI"
    python_module = "langchain_openai"
    typescript_module = "@langchain/openai"
    api_key_env = "OPENAI_API_KEY"
    python_dependencies = ("langchain-openai",)
    typescript_dependencies = ("@langchain/openai",)
    parameters = (
        ("modelName", "model", "model"),
        ("temperature", "temperature", "temperature"),
        ("maxTokens", "max_tokens", "maxTokens"),
    )

    def is_deprecated(self) -> bool:
        return True

    def get_replacement_type(self) -> str:
        return "chatOpenAI"


class ChatAnthropicConverter(ModelConverter):
    node_types = ("chatAnthropic", "anthropic")
    class_name = "ChatAnthropic"
    python_module = "langchain_anthropic"
    typescript_module = "@langchain/anthropic"
    api_key_env = "ANTHROPIC_API_KEY"
    python_dependencies = ("langchain-anthropic",)
    typescript_dependencies = ("@langchain/anthropic",)
    parameters = (
        ("modelName", "model", "model"),
        ("temperature", "temperature", "temperature"),
        ("maxTokensToSample", "max_tokens", "maxTokens"),
    )


CONVERTERS = [ChatOpenAIConverter, OpenAIConverter, ChatAnthropicConverter]
