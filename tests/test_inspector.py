"""PropertyInspector: fields for the selection, live edits, refresh events."""

import pytest

from flowstudio.graph_editor.controller import CanvasController, InteractionState
from flowstudio.graph_editor.graph_model import GraphModel
from flowstudio.graph_editor.inspector import PropertyInspector


@pytest.fixture
def model():
    return GraphModel.make_default()


@pytest.fixture
def ctl(model):
    return CanvasController(model)


@pytest.fixture
def inspector(model, ctl):
    return PropertyInspector(model, ctl)


@pytest.fixture
def refreshes(inspector):
    seen = []
    inspector.on_refresh(seen.append)
    return seen


def _values(inspector):
    return {f.key: f.value for f in inspector.fields()}


def test_empty_without_selection(inspector):
    assert inspector.is_empty
    assert inspector.fields() == []
    assert inspector.title == "Select a node to configure"


def test_fields_follow_selection(inspector, ctl):
    ctl.click_node("2")
    assert not inspector.is_empty
    assert inspector.title == "🤖 Agent"
    assert _values(inspector) == {
        "label": "Main Agent",
        "description": "Handles user requests",
        "model": "gpt-4",
    }


def test_choice_fields_carry_choices(inspector, ctl):
    ctl.click_node("1")
    trigger_type = next(f for f in inspector.fields() if f.key == "triggerType")
    assert trigger_type.widget == "choice"
    assert trigger_type.choices == ("user-message", "schedule", "webhook")


def test_edit_is_live(inspector, ctl, model, refreshes):
    ctl.click_node("2")
    refreshes.clear()
    inspector.edit("label", "Planner")
    assert model.get_node("2").config.label == "Planner"
    assert _values(inspector)["label"] == "Planner"
    assert refreshes == [False]


def test_edit_without_selection_is_noop(inspector, model):
    before = model.snapshot()
    inspector.edit("label", "x")
    assert model.snapshot() == before


def test_edits_to_other_nodes_do_not_refresh(inspector, ctl, model, refreshes):
    ctl.click_node("2")
    refreshes.clear()
    model.update_node_config("3", {"label": "Done"})
    assert refreshes == []


def test_selection_change_is_structural(inspector, ctl, refreshes):
    ctl.click_node("1")
    ctl.click_node("3")
    assert refreshes == [True, True]


def test_empty_click_renders_empty_state(inspector, ctl, refreshes):
    ctl.click_node("2")
    ctl.pointer_down(2000, 2000)
    assert ctl.state is InteractionState.IDLE
    assert inspector.is_empty
    assert refreshes[-1] is True


def test_deleting_selected_node_empties_inspector(inspector, ctl, model):
    ctl.click_node("2")
    model.remove_node("2")
    assert inspector.is_empty


def test_detach_stops_value_refreshes(inspector, ctl, model, refreshes):
    ctl.click_node("2")
    refreshes.clear()
    inspector.detach()
    model.update_node_config("2", {"label": "Quiet"})
    assert refreshes == []
