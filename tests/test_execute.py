"""Execute intent: snapshot hand-off and run pre-conditions."""

import pytest

from flowstudio.graph_editor.graph_model import GraphModel
from flowstudio.ops.execute import (
    FlowNotRunnable,
    execution_document,
    log_executor,
    run_flow,
    start_nodes,
)


def test_executor_receives_isolated_snapshot():
    model = GraphModel.make_default()
    received = []
    run_flow(model, received.append)
    snap = received[0]
    model.remove_node("2")
    assert len(snap.nodes) == 3
    assert len(snap.connections) == 2


def test_returns_executor_result():
    assert run_flow(GraphModel.make_default(), lambda g: "run-42") == "run-42"


def test_start_nodes_are_triggers():
    model = GraphModel.make_default()
    second = model.add_node("trigger")
    assert [n.id for n in start_nodes(model.snapshot())] == ["1", second]


def test_refuses_flow_without_trigger():
    model = GraphModel.make_default()
    model.remove_node("1")
    with pytest.raises(FlowNotRunnable, match="trigger"):
        run_flow(model, lambda g: None)


def test_refuses_disabled_flow():
    model = GraphModel.make_default()
    model.enabled = False
    called = []
    with pytest.raises(FlowNotRunnable, match="disabled"):
        run_flow(model, called.append)
    assert called == []


def test_log_executor_returns_document(caplog):
    caplog.set_level("INFO")
    doc = run_flow(GraphModel.make_default(), log_executor)
    assert [n["id"] for n in doc["nodes"]] == ["1", "2", "3"]
    assert "Execute flow document" in caplog.text


def test_execution_document_resolves_blank_config():
    model = GraphModel.make_default()
    model.update_node_config("2", {"model": "", "label": ""})
    doc = execution_document(model.snapshot())
    agent = next(n for n in doc["nodes"] if n["id"] == "2")
    assert agent["config"]["model"] == "gpt-4"
    assert agent["config"]["label"] == "Agent"
    # The stored graph keeps the blanks
    assert model.get_node("2").config.model == ""


def test_log_executor_hands_out_resolved_config():
    model = GraphModel.make_default()
    model.update_node_config("2", {"model": ""})
    doc = run_flow(model, log_executor)
    assert doc["nodes"][1]["config"]["model"] == "gpt-4"
