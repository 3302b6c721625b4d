"""Node type registry: ports, default configs, merge semantics."""

import pytest

from flowstudio.graph_editor.node_types import (
    AgentConfig,
    NodeKind,
    ToolConfig,
    UnknownNodeKind,
    config_fields,
    config_from_dict,
    default_config,
    describe,
    minimap_color,
    parse_kind,
)


@pytest.mark.parametrize("kind", list(NodeKind))
def test_every_kind_has_a_label_default(kind):
    cfg = default_config(kind)
    assert cfg.label
    assert "label" in cfg.to_dict()


def test_registry_defaults():
    assert default_config("trigger").to_dict() == {
        "label": "Message Trigger", "triggerType": "user-message"}
    assert default_config("agent").to_dict() == {
        "label": "Agent", "description": "", "model": "gpt-4"}
    assert default_config("tool").to_dict() == {
        "label": "Tool", "toolType": "browser", "toolName": ""}
    assert default_config("output").get("outputType") == "text"


def test_parse_kind_rejects_unknown():
    assert parse_kind("llm") is NodeKind.LLM
    with pytest.raises(UnknownNodeKind):
        parse_kind("spreadsheet")
    with pytest.raises(LookupError):
        describe("spreadsheet")


def test_standard_ports_are_implicit():
    info = describe(NodeKind.AGENT)
    assert [p.port_id for p in info.input_ports()] == [None]
    assert [p.port_id for p in info.output_ports()] == [None]


def test_condition_ports():
    info = describe(NodeKind.CONDITION)
    outs = {p.port_id: p.side for p in info.output_ports()}
    assert outs == {"true": "bottom", "false": "right"}
    assert info.find_port(None, is_output=True) is None
    assert info.find_port("left", is_output=False) is not None
    assert info.find_port(None, is_output=False) is not None


def test_merge_skips_invalid_choice():
    cfg = ToolConfig()
    applied = cfg.merge({"toolType": "teleport", "toolName": "calc"})
    assert applied == ["toolName"]
    assert cfg.tool_type == "browser"
    assert cfg.tool_name == "calc"


def test_merge_keeps_unrecognised_keys_in_extra():
    cfg = AgentConfig()
    cfg.merge({"temperature": "0.2"})
    assert cfg.extra == {"temperature": "0.2"}
    assert cfg.to_dict()["temperature"] == "0.2"


def test_resolved_fills_blank_values():
    cfg = config_from_dict("agent", {"label": "", "model": ""})
    resolved = cfg.resolved()
    assert resolved["label"] == "Agent"
    assert resolved["model"] == "gpt-4"
    # The stored config keeps what the user typed
    assert cfg.model == ""


def test_copy_is_independent():
    cfg = AgentConfig()
    dup = cfg.copy()
    dup.merge({"label": "Other", "x": "1"})
    assert cfg.label == "Agent"
    assert cfg.extra == {}


def test_minimap_colours():
    assert minimap_color("agent") == "#667eea"
    assert minimap_color("trigger") == "#f59e0b"
    assert minimap_color("condition") == "#10b981"
    assert minimap_color("tool") == "#ef4444"
    assert minimap_color("llm") == "#999999"
    assert minimap_color("output") == "#999999"


def test_llm_prompt_is_multiline_field():
    widgets = {f.key: f.widget for f in config_fields("llm")}
    assert widgets["prompt"] == "multiline"
    assert widgets["model"] == "choice"


def test_stored_config_with_invalid_choice_uses_default(caplog):
    cfg = config_from_dict("trigger", {"label": "Nightly", "triggerType": "bogus"})
    assert cfg.trigger_type == "user-message"
    assert cfg.label == "Nightly"
    assert "bogus" in caplog.text


def test_stored_config_with_valid_choice():
    cfg = config_from_dict("tool", {"toolType": "calculator"})
    assert cfg.tool_type == "calculator"
