import json

import networkx as nx
from typer.testing import CliRunner

from tripletviz import cli

runner = CliRunner()

SAVED = {
    "triplets": [
        {"subject": "a", "predicate": "likes", "object": "b"},
        {"subject": "b", "predicate": "knows", "object": "c"},
    ],
    "nodes": [{"hash": "a", "x": 10, "y": 10}],
}


def _saved(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(SAVED))
    return path


def test_inspect_command(tmp_path):
    result = runner.invoke(cli.app_cli, ["inspect", str(_saved(tmp_path))])
    assert result.exit_code == 0
    assert "nodes: 3" in result.output
    assert "links: 2" in result.output
    assert "groups: 0" in result.output


def test_export_command(tmp_path):
    out = tmp_path / "graph.graphml"
    result = runner.invoke(
        cli.app_cli, ["--log-level", "debug", "export", str(_saved(tmp_path)), str(out)]
    )
    assert result.exit_code == 0
    g = nx.read_graphml(out)
    assert set(g.nodes) == {"a", "b", "c"}
    assert g.number_of_edges() == 2


def test_serve_command(monkeypatch):
    called = {}
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kw: called.update(app=app, **kw))
    result = runner.invoke(cli.app_cli, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    assert called["app"] == "tripletviz.api:build_app"
    assert called["factory"] is True
    assert called["port"] == 9000


def test_inspect_missing_file(tmp_path):
    result = runner.invoke(cli.app_cli, ["inspect", str(tmp_path / "missing.json")])
    assert result.exit_code != 0
