"""Saving and loading flow files."""

import json

import pytest

from flowstudio.graph_editor.graph_model import GraphModel
from flowstudio.graph_editor.serializer import DocumentError
from flowstudio.ops.flow_io import load_flow, read_flow, save_flow


@pytest.fixture
def flow_file(tmp_path):
    model = GraphModel.make_default()
    cond = model.add_node("condition", (600, 200))
    model.connect("2", None, cond)
    model.connect(cond, "false", "3")
    model.rename("Triage")
    path = tmp_path / "triage.flow.json"
    save_flow(model, str(path))
    return path


def test_save_writes_document(flow_file):
    doc = json.loads(flow_file.read_text(encoding="utf-8"))
    assert doc["name"] == "Triage"
    assert len(doc["nodes"]) == 4
    assert len(doc["connections"]) == 4


def test_load_replaces_graph(flow_file):
    model = GraphModel()
    changes = []
    model.on_change(changes.append)
    graph = load_flow(model, str(flow_file))
    assert model.name == "Triage"
    assert [n.id for n in model.nodes] == [n.id for n in graph.nodes]
    assert any(c.source_port == "false" for c in model.connections)
    assert [c.action for c in changes] == ["replace"]


def test_read_flow_does_not_need_a_model(flow_file):
    assert read_flow(str(flow_file)).name == "Triage"


def test_corrupt_file_leaves_model_untouched(tmp_path, caplog):
    path = tmp_path / "broken.flow.json"
    path.write_text('{"nodes": [{"id": "1", "kind": "teapot"}]}', encoding="utf-8")
    model = GraphModel.make_default()
    before = model.snapshot()
    with pytest.raises(DocumentError):
        load_flow(model, str(path))
    assert model.snapshot() == before
    assert "corrupted" in caplog.text


def test_truncated_file_is_a_document_error(tmp_path):
    path = tmp_path / "cut.flow.json"
    path.write_text('{"nodes": [', encoding="utf-8")
    with pytest.raises(DocumentError):
        load_flow(GraphModel(), str(path))


def test_missing_file_raises_oserror(tmp_path):
    model = GraphModel.make_default()
    with pytest.raises(OSError):
        load_flow(model, str(tmp_path / "nope.flow.json"))
    assert len(model.nodes) == 3
