# conftest.py
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from flowise2lc.codegen.ir import IRConnection, IRGraph, IRNode, Parameter
from flowise2lc.core.registry import build_default_registry


# --------------------------------------------------------------------------------------
# Flowise document builders
# --------------------------------------------------------------------------------------
def flowise_node(node_id: str, name: str, category: str = "", inputs: Optional[Dict[str, Any]] = None,
                 params: Optional[List[Dict[str, Any]]] = None, anchors: Sequence[str] = (),
                 label: Optional[str] = None, version: int = 2) -> Dict[str, Any]:
    """A node shaped like a Flowise export (`type: customNode`, details under `data`)."""
    return {
        "id": node_id,
        "position": {"x": 100, "y": 200},
        "type": "customNode",
        "width": 300,
        "data": {
            "id": node_id,
            "label": label or name,
            "name": name,
            "version": version,
            "type": name[0].upper() + name[1:],
            "category": category,
            "baseClasses": [name],
            "inputParams": params or [],
            "inputAnchors": [
                {"id": f"{node_id}-input-{port}-Any", "name": port, "label": port, "type": "Any"}
                for port in anchors
            ],
            "inputs": inputs or {},
            "outputAnchors": [
                {"id": f"{node_id}-output-{name}-Any", "name": name, "label": name, "type": "Any"}
            ],
        },
    }


def flowise_edge(source: str, target: str, port: str) -> Dict[str, Any]:
    source_handle = f"{source}-output-{source.rsplit('_', 1)[0]}-Any"
    target_handle = f"{target}-input-{port}-Any"
    return {
        "id": f"{source_handle}-{target_handle}",
        "source": source,
        "sourceHandle": source_handle,
        "target": target,
        "targetHandle": target_handle,
        "type": "buttonedge",
    }


def chat_openai(node_id: str = "chatOpenAI_0", model: str = "gpt-4o-mini") -> Dict[str, Any]:
    return flowise_node(
        node_id, "chatOpenAI", "Chat Models", label="ChatOpenAI",
        inputs={"modelName": model, "temperature": "0.7"},
        params=[
            {"label": "Connect Credential", "name": "credential", "type": "credential"},
            {"label": "Model Name", "name": "modelName", "type": "options", "default": "gpt-3.5-turbo"},
            {"label": "Temperature", "name": "temperature", "type": "number", "default": 0.9,
             "optional": True},
        ],
    )


def prompt_template(node_id: str = "promptTemplate_0",
                    template: str = "Tell me a joke about {input}") -> Dict[str, Any]:
    return flowise_node(
        node_id, "promptTemplate", "Prompts", label="Prompt Template",
        inputs={"template": template, "promptValues": ""},
        params=[
            {"label": "Template", "name": "template", "type": "string"},
            {"label": "Format Prompt Values", "name": "promptValues", "type": "json", "optional": True},
        ],
    )


def llm_chain(node_id: str = "llmChain_0") -> Dict[str, Any]:
    return flowise_node(
        node_id, "llmChain", "Chains", label="LLM Chain",
        anchors=["model", "prompt"],
        inputs={"model": "{{chatOpenAI_0.data.instance}}", "prompt": "{{promptTemplate_0.data.instance}}",
                "chainName": ""},
        params=[{"label": "Chain Name", "name": "chainName", "type": "string", "optional": True}],
    )


def flow_document(nodes: Iterable[Dict[str, Any]], edges: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    return {"nodes": list(nodes), "edges": list(edges)}


# --------------------------------------------------------------------------------------
# IR builders
# --------------------------------------------------------------------------------------
def make_graph(node_ids: Sequence[str], edges: Sequence[Tuple[str, str]] = (), node_type: str = "test",
               name: str = "Test Flow") -> IRGraph:
    """IR graph with bare nodes; connection ids are `source->target`."""
    nodes = [IRNode(id=n, type=node_type, label=n) for n in node_ids]
    connections = [IRConnection(id=f"{s}->{t}", source=s, target=t) for s, t in edges]
    return IRGraph(nodes, connections, {"name": name})


def make_node(node_id: str, node_type: str, required: Sequence[str] = (), **values: Any) -> IRNode:
    params = [Parameter(name=name, value=value) for name, value in values.items()]
    params += [Parameter(name=name, required=True) for name in required]
    return IRNode(id=node_id, type=node_type, label=node_id, parameters=tuple(params))


# --------------------------------------------------------------------------------------
# Fixtures
# --------------------------------------------------------------------------------------
@pytest.fixture(scope="session")
def registry():
    """The bundled converter registry."""
    return build_default_registry()


@pytest.fixture()
def llm_chain_flow() -> Dict[str, Any]:
    """ChatOpenAI and a prompt template feeding an LLM chain."""
    return flow_document(
        [chat_openai(), prompt_template(), llm_chain()],
        [flowise_edge("chatOpenAI_0", "llmChain_0", "model"),
         flowise_edge("promptTemplate_0", "llmChain_0", "prompt")],
    )


@pytest.fixture()
def conversation_flow() -> Dict[str, Any]:
    """ChatOpenAI and buffer memory feeding a conversation chain."""
    memory = flowise_node(
        "bufferMemory_0", "bufferMemory", "Memory", label="Buffer Memory",
        inputs={"memoryKey": "history"},
        params=[{"label": "Memory Key", "name": "memoryKey", "type": "string", "default": "chat_history"}],
    )
    chain = flowise_node(
        "conversationChain_0", "conversationChain", "Chains", label="Conversation Chain",
        anchors=["model", "memory"],
    )
    return flow_document(
        [chat_openai(), memory, chain],
        [flowise_edge("chatOpenAI_0", "conversationChain_0", "model"),
         flowise_edge("bufferMemory_0", "conversationChain_0", "memory")],
    )


@pytest.fixture()
def flow_file(tmp_path: Path, llm_chain_flow: Dict[str, Any]) -> Path:
    """The LLM chain flow written to disk."""
    path = tmp_path / "llm_chain.json"
    path.write_text(json.dumps(llm_chain_flow))
    return path
