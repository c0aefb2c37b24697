import json

import pytest
from click.testing import CliRunner

from flowise2lc.cli.main import cli

from conftest import flowise_edge


@pytest.fixture()
def runner():
    return CliRunner()


def test_convert_writes_project(runner, flow_file, tmp_path):
    out = tmp_path / "generated"
    result = runner.invoke(cli, ["convert", str(flow_file), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert (out / "main.py").exists()
    assert (out / "requirements.txt").exists()
    assert "Wrote" in result.output


def test_convert_typescript_with_report(runner, flow_file, tmp_path):
    out = tmp_path / "ts"
    result = runner.invoke(cli, ["convert", str(flow_file), "-o", str(out), "--target", "typescript", "--report"])
    assert result.exit_code == 0, result.output
    assert (out / "src" / "index.ts").exists()
    assert (out / "package.json").exists()
    assert '"success": true' in result.output


def test_convert_refuses_to_overwrite(runner, flow_file, tmp_path):
    out = tmp_path / "again"
    assert runner.invoke(cli, ["convert", str(flow_file), "-o", str(out)]).exit_code == 0
    result = runner.invoke(cli, ["convert", str(flow_file), "-o", str(out)])
    assert result.exit_code == 1
    assert runner.invoke(cli, ["convert", str(flow_file), "-o", str(out), "--overwrite"]).exit_code == 0


def test_convert_cyclic_flow_fails(runner, tmp_path, llm_chain_flow):
    llm_chain_flow["edges"].append(flowise_edge("llmChain_0", "chatOpenAI_0", "x"))
    path = tmp_path / "cyclic.json"
    path.write_text(json.dumps(llm_chain_flow))
    result = runner.invoke(cli, ["convert", str(path), "-o", str(tmp_path / "out")])
    assert result.exit_code == 1
    assert "circular_dependency" in result.output
    assert not (tmp_path / "out").exists()


def test_parse_errors_are_listed(runner, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"nodes": [{"type": "customNode"}]}')
    result = runner.invoke(cli, ["validate", str(path)])
    assert result.exit_code == 1
    assert "'edges' is a required property" in result.output
    assert "'id' is a required property" in result.output


def test_validate_json(runner, flow_file):
    result = runner.invoke(cli, ["validate", str(flow_file), "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["is_valid"] is True


def test_analyze(runner, flow_file):
    result = runner.invoke(cli, ["analyze", str(flow_file)])
    assert result.exit_code == 0
    assert "Nodes: 3" in result.output
    assert "Critical path: chatOpenAI_0 -> llmChain_0" in result.output

    result = runner.invoke(cli, ["analyze", str(flow_file), "--json"])
    assert json.loads(result.output)["connection_count"] == 2


def test_plan(runner, flow_file):
    result = runner.invoke(cli, ["plan", str(flow_file)])
    assert result.output.startswith("graph TD")
    result = runner.invoke(cli, ["plan", str(flow_file), "--format", "dot"])
    assert result.output.startswith("digraph IRGraph {")


def test_converters_listing(runner):
    result = runner.invoke(cli, ["converters"])
    assert result.exit_code == 0
    assert "llm:" in result.output
    assert "  chatOpenAI" in result.output


def test_config_file_sets_target(runner, flow_file, tmp_path):
    config = tmp_path / "flowise2lc.yaml"
    config.write_text("context:\n  target_language: typescript\n")
    out = tmp_path / "from-config"
    result = runner.invoke(cli, ["--config", str(config), "convert", str(flow_file), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert (out / "src" / "index.ts").exists()


def test_bad_config_exits(runner, tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("context:\n  target_language: cobol\n")
    result = runner.invoke(cli, ["--config", str(config), "converters"])
    assert result.exit_code == 1
    assert "Error" in result.output
