import pytest
from pydantic import ValidationError

from flowise2lc.codegen.errors import CycleError, MissingParameterError
from flowise2lc.codegen.fragments import FragmentKind, GenerationContext
from flowise2lc.codegen.ir import IRGraph
from flowise2lc.codegen.ir_builder import IRBuilder
from flowise2lc.codegen.orchestrator import ConversionOrchestrator
from flowise2lc.codegen.parser import FlowParser
from flowise2lc.core.registry import RegistryBuilder
from flowise2lc.sdk.plugin_base import BaseConverter

from conftest import chat_openai, flow_document, flowise_edge, flowise_node, make_graph, prompt_template


def graph_from(document) -> IRGraph:
    return IRBuilder().build(FlowParser().parse_data(document))


def convert(registry, document, **options):
    return ConversionOrchestrator(registry).convert(graph_from(document), GenerationContext(**options))


def test_llm_chain_converts(registry, llm_chain_flow):
    result = convert(registry, llm_chain_flow)
    assert result.success
    assert result.errors == []
    assert result.node_order == ["chatOpenAI_0", "promptTemplate_0", "llmChain_0"]
    assert result.converted_nodes == result.node_order
    contents = [f.content for f in result.fragments]
    assert 'chat_open_ai_0 = ChatOpenAI(model="gpt-4o-mini", temperature=0.7)' in contents
    assert 'prompt_template_0 = PromptTemplate.from_template("Tell me a joke about {input}")' in contents
    assert "llm_chain_0 = prompt_template_0 | chat_open_ai_0" in contents


def test_fragments_are_tagged_with_node_ids(registry, llm_chain_flow):
    result = convert(registry, llm_chain_flow)
    assert {f.node_id for f in result.fragments} == {"chatOpenAI_0", "promptTemplate_0", "llmChain_0"}


def test_emission_order_by_kind_then_topology(registry, llm_chain_flow):
    result = convert(registry, llm_chain_flow)
    priorities = [f.kind.priority for f in result.fragments]
    assert priorities == sorted(priorities)

    declared = set()
    for fragment in result.fragments:
        for name in fragment.exports:
            declared.add(name)
        if fragment.kind == FragmentKind.EXECUTION:
            assert "llm_chain_0" in declared


def test_dependencies_are_deduplicated(registry):
    document = flow_document([chat_openai("chatOpenAI_0"), chat_openai("chatOpenAI_1")], [])
    result = convert(registry, document)
    assert result.dependencies == ["langchain-openai"]


def test_dependency_dedup_is_case_sensitive():
    class Upper(BaseConverter):
        node_types = ("upper",)
        python_dependencies = ("PyYAML",)

        def convert(self, node, context):
            return []

    class Lower(Upper):
        node_types = ("lower",)
        python_dependencies = ("pyyaml",)

    registry = RegistryBuilder().register(Upper()).register(Lower()).build()
    result = ConversionOrchestrator(registry).convert(
        make_graph(["a"], node_type="upper"), GenerationContext())
    assert result.dependencies == ["PyYAML"]
    graph = IRGraph(list(make_graph(["a"], node_type="upper").nodes) +
                    list(make_graph(["b"], node_type="lower").nodes))
    assert ConversionOrchestrator(registry).convert(graph, GenerationContext()).dependencies == ["PyYAML", "pyyaml"]


def test_unsupported_type_is_skipped_with_warning(registry, llm_chain_flow):
    llm_chain_flow["nodes"].append(flowise_node("mystery_0", "mysteryNode"))
    result = convert(registry, llm_chain_flow)
    assert result.success
    assert "mystery_0" in result.skipped_nodes
    warning = [w for w in result.warnings if w.issue_type == "unsupported_type"][0]
    assert warning.node_id == "mystery_0"
    assert "llmChain_0" in result.converted_nodes
    assert all(f.node_id != "mystery_0" for f in result.fragments)


def test_analysis_reports_type_coverage(registry, llm_chain_flow):
    llm_chain_flow["nodes"].append(flowise_node("mystery_0", "mysteryNode"))
    llm_chain_flow["nodes"].append(flowise_node("mystery_1", "mysteryNode"))
    analysis = convert(registry, llm_chain_flow).analysis
    assert analysis["supported_types"] == ["chatOpenAI", "llmChain", "promptTemplate"]
    assert analysis["unsupported_types"] == ["mysteryNode"]
    assert analysis["coverage"] == pytest.approx(3 / 5)
    assert analysis["complexity"] == "simple"


def test_empty_graph_has_full_coverage(registry):
    analysis = ConversionOrchestrator(registry).convert(make_graph([]), GenerationContext()).analysis
    assert analysis["coverage"] == 1.0
    assert analysis["unsupported_types"] == []


def test_missing_parameter_skips_only_that_node(registry, llm_chain_flow):
    broken = flowise_node("promptTemplate_9", "promptTemplate",
                          params=[{"name": "template", "type": "string"}])
    llm_chain_flow["nodes"].append(broken)
    result = convert(registry, llm_chain_flow)
    assert result.success
    assert result.skipped_nodes == ["promptTemplate_9"]
    error = result.errors[0]
    assert (error.issue_type, error.node_id, error.parameter_name) == \
        ("missing_parameter", "promptTemplate_9", "template")
    assert "llmChain_0" in result.converted_nodes
    with pytest.raises(MissingParameterError):
        result.raise_for_errors()


def test_downstream_of_skipped_node_reports_unresolved_reference(registry, llm_chain_flow):
    llm_chain_flow["nodes"][1]["data"]["inputs"]["template"] = ""
    result = convert(registry, llm_chain_flow)
    assert result.success
    kinds = {w.issue_type for w in result.warnings}
    assert "unresolved_reference" in kinds
    # llmChain cannot be built without its prompt
    assert [e.issue_type for e in result.errors] == ["missing_parameter", "conversion_failed"]
    assert result.converted_nodes == ["chatOpenAI_0"]


def test_cycle_aborts_conversion(registry):
    document = flow_document(
        [prompt_template("promptTemplate_0"), prompt_template("promptTemplate_1")],
        [flowise_edge("promptTemplate_0", "promptTemplate_1", "x"),
         flowise_edge("promptTemplate_1", "promptTemplate_0", "x")],
    )
    result = convert(registry, document)
    assert not result.success
    assert result.fragments == []
    assert result.errors[0].issue_type == "circular_dependency"
    with pytest.raises(CycleError) as excinfo:
        result.raise_for_errors()
    assert excinfo.value.cycles == [["promptTemplate_0", "promptTemplate_1", "promptTemplate_0"]]


def test_dangling_connection_aborts_conversion(registry, llm_chain_flow):
    llm_chain_flow["edges"].append(flowise_edge("ghost_0", "llmChain_0", "model"))
    result = convert(registry, llm_chain_flow)
    assert result.aborted
    assert result.fragments == []
    assert result.errors[0].issue_type == "missing_node"


def test_failing_converter_is_reported_and_others_continue(registry):
    class Boom(BaseConverter):
        node_types = ("boom",)

        def convert(self, node, context):
            raise RuntimeError("kaboom")

    class Fine(BaseConverter):
        node_types = ("fine",)

        def convert(self, node, context):
            return [self.fragment(node, FragmentKind.EXECUTION, "pass", context, "run")]

    local = RegistryBuilder().register(Boom()).register(Fine()).build()
    graph = IRGraph(list(make_graph(["a"], node_type="boom").nodes) + list(make_graph(["b"], node_type="fine").nodes))
    result = ConversionOrchestrator(local).convert(graph, GenerationContext())
    assert result.converted_nodes == ["b"]
    assert result.errors[0].issue_type == "conversion_failed"
    assert "kaboom" in result.errors[0].message


def test_conversation_chain_uses_memory(registry, conversation_flow):
    result = convert(registry, conversation_flow)
    init = result.fragments_of_kind(FragmentKind.INITIALIZATION)[0]
    assert init.content == "conversation_chain_0 = ConversationChain(llm=chat_open_ai_0, memory=buffer_memory_0)"
    assert result.dependencies == ["langchain", "langchain-openai"]


def test_typescript_target(registry, llm_chain_flow):
    result = convert(registry, llm_chain_flow, target_language="typescript")
    contents = [f.content for f in result.fragments]
    assert "import { ChatOpenAI } from '@langchain/openai';" in contents
    assert "const llm_chain_0 = prompt_template_0.pipe(chat_open_ai_0);" in contents
    assert result.dependencies == ["@langchain/core", "@langchain/openai"]
    assert all(f.language == "typescript" for f in result.fragments)


def test_tracing_adds_handler(registry, llm_chain_flow):
    result = convert(registry, llm_chain_flow, include_tracing=True)
    assert "langfuse" in result.dependencies
    assert result.fragments[0].content == "from langfuse.callback import CallbackHandler"
    declarations = result.fragments_of_kind(FragmentKind.DECLARATION)
    assert declarations[0].content == "langfuse_handler = CallbackHandler()"
    assert "callbacks=[langfuse_handler]" in declarations[1].content


def test_deprecated_type_warns(registry):
    node = flowise_node("openAI_0", "openAI", inputs={"modelName": "gpt-3.5-turbo-instruct"})
    result = convert(registry, flow_document([node], []))
    warning = [w for w in result.warnings if w.issue_type == "deprecated_type"][0]
    assert warning.suggestion == "Use 'chatOpenAI' instead"
    assert result.converted_nodes == ["openAI_0"]


def test_context_is_frozen_and_untouched(registry, llm_chain_flow):
    context = GenerationContext()
    ConversionOrchestrator(registry).convert(graph_from(llm_chain_flow), context)
    assert context.references == {}
    with pytest.raises(ValidationError):
        context.target_language = "typescript"


def test_result_to_dict(registry, llm_chain_flow):
    data = convert(registry, llm_chain_flow).to_dict()
    assert data["success"] is True
    assert data["analysis"]["coverage"] == 1.0
    assert data["fragments"] == 6
