import json

import pytest

from flowise2lc.codegen.errors import FlowParseError
from flowise2lc.codegen.parser import FlowParser, detect_version, parse_flow

from conftest import chat_openai, flow_document, flowise_edge, llm_chain, prompt_template


def test_parse_valid_document(llm_chain_flow):
    flow = parse_flow(json.dumps(llm_chain_flow).encode("utf-8"))
    assert [n.id for n in flow.nodes] == ["chatOpenAI_0", "promptTemplate_0", "llmChain_0"]
    assert len(flow.edges) == 2
    assert flow.edges[0].target_handle == "llmChain_0-input-model-Any"
    assert flow.metadata["node_count"] == 3
    assert flow.metadata["edge_count"] == 2


def test_byte_order_mark_is_ignored(llm_chain_flow):
    text = "\ufeff" + json.dumps(llm_chain_flow)
    assert len(FlowParser().parse(text).nodes) == 3
    assert len(FlowParser().parse(text.encode("utf-8")).nodes) == 3


def test_unknown_fields_are_preserved(llm_chain_flow):
    llm_chain_flow["viewport"] = {"x": 0, "y": 0, "zoom": 1}
    flow = FlowParser().parse(json.dumps(llm_chain_flow))
    assert flow.nodes[0].extra["position"] == {"x": 100, "y": 200}
    assert flow.nodes[0].extra["width"] == 300
    assert flow.edges[0].extra["type"] == "buttonedge"
    assert flow.extra["viewport"]["zoom"] == 1


def test_missing_top_level_arrays_reported_together():
    with pytest.raises(FlowParseError) as excinfo:
        FlowParser().parse("{}")
    messages = " ".join(issue.message for issue in excinfo.value.issues)
    assert "'nodes' is a required property" in messages
    assert "'edges' is a required property" in messages


def test_every_missing_field_is_reported():
    document = {
        "nodes": [{"type": "customNode"}, {"id": "b", "type": "customNode", "data": {}}],
        "edges": [{"source": "b"}],
    }
    with pytest.raises(FlowParseError) as excinfo:
        FlowParser().parse(json.dumps(document))
    issues = excinfo.value.issues
    found = {(issue.path, issue.message) for issue in issues}
    assert ("nodes[0]", "'id' is a required property") in found
    assert ("nodes[0]", "'data' is a required property") in found
    assert ("edges[0]", "'target' is a required property") in found
    assert len(issues) == 3


def test_syntax_error_has_line_and_column():
    with pytest.raises(FlowParseError) as excinfo:
        FlowParser().parse('{\n  "nodes": [,]\n}')
    issue = excinfo.value.issues[0]
    assert issue.issue_type == "syntax"
    assert issue.line == 2
    assert issue.column is not None


def test_empty_and_non_object_input():
    with pytest.raises(FlowParseError):
        FlowParser().parse("   ")
    with pytest.raises(FlowParseError) as excinfo:
        FlowParser().parse("[]")
    assert "object" in excinfo.value.issues[0].message


def test_size_limit():
    parser = FlowParser(max_size=10)
    with pytest.raises(FlowParseError) as excinfo:
        parser.parse(b'{"nodes": [], "edges": []}')
    assert "exceeds maximum allowed size" in excinfo.value.issues[0].message


def test_stored_chatflow_record_is_unwrapped(llm_chain_flow):
    record = {"id": "abc", "name": "Joke Bot", "flowData": json.dumps(llm_chain_flow)}
    flow = FlowParser().parse(json.dumps(record))
    assert flow.metadata["name"] == "Joke Bot"
    assert len(flow.nodes) == 3


def test_missing_edge_id_is_generated():
    document = flow_document([chat_openai(), llm_chain()], [{"source": "chatOpenAI_0", "target": "llmChain_0"}])
    flow = FlowParser().parse(json.dumps(document))
    assert flow.edges[0].id == "chatOpenAI_0-llmChain_0-0"
    assert flow.edges[0].source_handle == ""


def test_version_detection():
    assert detect_version(flow_document([chat_openai()], [])) == "2.x"
    node = prompt_template()
    node["data"]["version"] = 1
    assert detect_version(flow_document([node], [])) == "1.x"
    assert detect_version({"nodes": [], "edges": []}) == "unknown"


def test_large_flow_warning():
    nodes = [prompt_template(f"promptTemplate_{i}") for i in range(51)]
    flow = FlowParser().parse(json.dumps(flow_document(nodes, [])))
    assert any(w.issue_type == "performance" for w in flow.warnings)


def test_parse_file_checks_extension(tmp_path, llm_chain_flow):
    wrong = tmp_path / "flow.yaml"
    wrong.write_text(json.dumps(llm_chain_flow))
    with pytest.raises(FlowParseError):
        FlowParser().parse_file(wrong)

    right = tmp_path / "flow.json"
    right.write_text(json.dumps(llm_chain_flow))
    flow = FlowParser().parse_file(right)
    assert flow.metadata["source_file"] == str(right)


def test_edges_referencing_unknown_nodes_still_parse():
    document = flow_document([chat_openai()], [flowise_edge("chatOpenAI_0", "ghost_0", "model")])
    flow = FlowParser().parse(json.dumps(document))
    assert flow.edges[0].target == "ghost_0"
