"""Flow document serialisation and validation."""

import json

import pytest

from flowstudio.graph_editor.graph_model import GraphModel
from flowstudio.graph_editor.serializer import (
    DOCUMENT_VERSION,
    DocumentError,
    deserialize,
    dumps,
    loads,
    serialize,
)


def _rich_model():
    model = GraphModel.make_default()
    cond = model.add_node("condition", (100, 500))
    tool = model.add_node("tool", (400, 500), label="Calculator")
    model.update_node_config(tool, {"toolType": "calculator", "custom": "kept"})
    model.update_node_config(cond, {"condition": "input contains 'hi'"})
    model.connect("2", None, cond)
    model.connect(cond, "true", tool)
    model.connect(cond, "false", "3")
    model.connect(cond, "true", tool, conn_id="parallel")
    model.rename("Support bot")
    return model


def _shape(graph):
    nodes = [(n.id, n.kind, n.position, n.config.to_dict()) for n in graph.nodes]
    conns = [(c.id, c.source, c.target, c.source_port, c.target_port)
             for c in graph.connections]
    return nodes, conns, graph.name, graph.enabled


def test_round_trip():
    graph = _rich_model().snapshot()
    assert _shape(deserialize(serialize(graph))) == _shape(graph)


def test_round_trip_through_json():
    graph = _rich_model().snapshot()
    assert _shape(loads(dumps(graph))) == _shape(graph)


def test_document_layout():
    doc = serialize(GraphModel.make_default().snapshot())
    assert doc["version"] == DOCUMENT_VERSION
    assert doc["name"] == "Untitled Flow"
    assert doc["enabled"] is True
    assert doc["nodes"][0] == {
        "id": "1", "kind": "trigger", "position": {"x": 250, "y": 50},
        "config": {"label": "Message Trigger", "triggerType": "user-message"},
    }
    assert doc["connections"][0] == {"id": "e1-2", "source": "1", "target": "2"}


def test_named_ports_are_written():
    doc = serialize(_rich_model().snapshot())
    ports = [c.get("sourcePort") for c in doc["connections"]]
    assert "true" in ports and "false" in ports
    assert all("targetPort" not in c for c in doc["connections"])


def test_minimal_document():
    graph = deserialize({"nodes": [], "connections": []})
    assert graph.nodes == ()
    assert graph.name == "Untitled Flow"


def _doc(**overrides):
    doc = serialize(GraphModel.make_default().snapshot())
    doc.update(overrides)
    return doc


def _node(node_id="x", kind="agent", x=0, y=0, **extra):
    d = {"id": node_id, "kind": kind, "position": {"x": x, "y": y}, "config": {}}
    d.update(extra)
    return d


@pytest.mark.parametrize("doc", [
    [],
    "flow",
    {"version": 99},
    {"nodes": {}},
    {"nodes": [], "connections": None},
    {"nodes": ["agent"]},
    {"nodes": [_node(kind="spreadsheet")]},
    {"nodes": [_node(x="10")]},
    {"nodes": [_node(y=True)]},
    {"nodes": [_node(x=float("nan"))]},
    {"nodes": [_node(y=float("inf"))]},
    {"nodes": [{"id": "x", "kind": "agent"}]},
    {"nodes": [_node(config=[])]},
    {"nodes": [_node(node_id="")]},
    {"nodes": [_node(), _node()]},
    {"nodes": [], "name": 3},
    {"nodes": [], "enabled": "yes"},
], ids=[
    "list", "string", "version", "nodes-not-list", "connections-not-list",
    "node-not-object", "unknown-kind", "string-position", "bool-position",
    "nan-position", "infinite-position",
    "missing-position", "config-not-object", "empty-id", "duplicate-node",
    "name-type", "enabled-type",
])
def test_invalid_documents(doc):
    with pytest.raises(DocumentError):
        deserialize(doc)


@pytest.mark.parametrize("conn", [
    {"id": "c", "source": "1", "target": "missing"},
    {"id": "c", "source": "2", "target": "2"},
    {"id": "c", "source": "1", "target": "2", "sourcePort": "true"},
    {"id": "c", "source": "1", "target": "2", "targetPort": "left"},
    {"id": "c", "source": 1, "target": "2"},
    {"source": "1", "target": "2"},
    {"id": "e1-2", "source": "1", "target": "2"},
], ids=[
    "dangling", "self-loop", "bad-source-port", "bad-target-port",
    "non-string-endpoint", "missing-id", "duplicate-id",
])
def test_invalid_connections(conn):
    doc = _doc()
    doc["connections"].append(conn)
    with pytest.raises(DocumentError):
        deserialize(doc)


def test_condition_left_input_is_accepted():
    doc = _doc()
    doc["nodes"].append(_node("c", "condition"))
    doc["connections"].append(
        {"id": "x", "source": "1", "target": "c", "targetPort": "left"})
    graph = deserialize(doc)
    assert graph.connections[-1].target_port == "left"


def test_unknown_config_keys_survive():
    doc = _doc()
    doc["nodes"][1]["config"]["temperature"] = "0.3"
    graph = deserialize(json.loads(json.dumps(doc)))
    assert graph.get_node("2").config.extra == {"temperature": "0.3"}


def test_loads_wraps_json_errors():
    with pytest.raises(DocumentError, match="not valid JSON"):
        loads("{nodes: ")


def test_non_finite_json_positions_are_rejected():
    text = '{"nodes": [{"id": "a", "kind": "agent", "position": {"x": NaN, "y": Infinity}}]}'
    with pytest.raises(DocumentError, match="finite"):
        loads(text)


def test_invalid_choice_in_document_falls_back_to_default():
    doc = _doc()
    doc["nodes"][0]["config"]["triggerType"] = "bogus"
    assert deserialize(doc).get_node("1").config.trigger_type == "user-message"


def test_round_trip_after_explicit_connection_ids():
    model = GraphModel.make_default()
    model.connect("1", None, "3", conn_id="e1-2")
    model.connect("1", None, "3", conn_id="e1-3")
    graph = model.snapshot()
    assert _shape(deserialize(serialize(graph))) == _shape(graph)
