"""Converters for chain nodes.

Chains consume the variables of the nodes wired into their input ports,
so they are built in the initialization phase, after every declaration.
"""

from typing import List

from flowise2lc.codegen.fragments import CodeFragment, FragmentKind, GenerationContext
from flowise2lc.codegen.ir import IRNode
from flowise2lc.sdk.plugin_base import BaseConverter, Raw

DEFAULT_INPUT = "Hello!"


class ChainConverter(BaseConverter):
    category = "chain"

    def require(self, context: GenerationContext, port: str, node: IRNode) -> str:
        """Variable wired into `port`; a chain without it cannot be built."""
        value = context.reference(port)
        if value is None:
            raise ValueError(f"node {node.id} has nothing connected to its '{port}' input")
        return value

    def execution(self, node: IRNode, var: str, context: GenerationContext) -> CodeFragment:
        text = self.parameter_value(node, "input", DEFAULT_INPUT)
        result = f"{var}_result"
        if context.is_python:
            content = (f"{result} = {var}.invoke({{\"input\": {self.format_value(text, context)}}})\n"
                       f"print({result})")
        else:
            content = (f"const {result} = await {var}.invoke({{ input: {self.format_value(text, context)} }});\n"
                       f"console.log({result});")
        return self.fragment(node, FragmentKind.EXECUTION, content, context, "run", exports=[result])


class LLMChainConverter(ChainConverter):
    node_types = ("llmChain",)
    python_dependencies = ("langchain-core",)
    typescript_dependencies = ("@langchain/core",)

    def convert(self, node: IRNode, context: GenerationContext) -> List[CodeFragment]:
        var = self.variable_name(node)
        model = self.require(context, "model", node)
        prompt = self.require(context, "prompt", node)
        if context.is_python:
            content = f"{var} = {prompt} | {model}"
        else:
            content = f"const {var} = {prompt}.pipe({model});"
        return [
            self.fragment(node, FragmentKind.INITIALIZATION, content, context, "chain", exports=[var]),
            self.execution(node, var, context),
        ]


class ConversationChainConverter(ChainConverter):
    node_types = ("conversationChain",)
    python_dependencies = ("langchain",)
    typescript_dependencies = ("langchain",)

    def convert(self, node: IRNode, context: GenerationContext) -> List[CodeFragment]:
        var = self.variable_name(node)
        pairs = [("llm", Raw(self.require(context, "model", node)))]
        memory = context.reference("memory")
        if memory:
            pairs.append(("memory", Raw(memory)))
        args = self.keyword_args(pairs, context)
        if context.is_python:
            module, content = "langchain.chains", f"{var} = ConversationChain({args})"
        else:
            module, content = "langchain/chains", f"const {var} = new ConversationChain({args});"
        return [
            self.import_fragment(node, context, module, "ConversationChain"),
            self.fragment(node, FragmentKind.INITIALIZATION, content, context, "chain", exports=[var]),
            self.execution(node, var, context),
        ]


CONVERTERS = [LLMChainConverter, ConversationChainConverter]
