"""Node type registry.

Pure Python — no Qt dependency.  Maps each NodeKind to its ports, its
default configuration and its display attributes (glyph, title, minimap
colour).

Node kinds:

  trigger    – entry point (user message, schedule, webhook)
  agent      – AI agent with a model and a free-text description
  llm        – single model call with a system prompt
  condition  – two-way branch; named source ports "true" / "false"
  tool       – browser / search / fetch / calculator / code
  output     – returns the result

Ports
-----
Every kind has an implicit top input and an implicit bottom output, both
with port_id=None.  condition is the exception on the output side: it has
no implicit output, only the named "true" (bottom) and "false" (right)
outputs, plus an extra "left" input.

Config
------
Each kind has its own NodeConfig subclass.  Attribute names are snake_case;
the wire keys (used by update_node_config, the inspector and the persisted
document) are the camelCase names in FIELDS.  Keys a config does not
recognise are carried in `extra` so merges never drop data.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    TRIGGER   = "trigger"
    AGENT     = "agent"
    LLM       = "llm"
    CONDITION = "condition"
    TOOL      = "tool"
    OUTPUT    = "output"


class UnknownNodeKind(LookupError):
    """Raised for a kind outside the closed NodeKind set.

    Inside the editor this is a programming error; documents are validated
    at the serializer boundary before kinds reach the registry.
    """


def parse_kind(value) -> NodeKind:
    if isinstance(value, NodeKind):
        return value
    try:
        return NodeKind(value)
    except ValueError:
        raise UnknownNodeKind(f"unknown node kind: {value!r}") from None


# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PortDef:
    name: str
    port_id: Optional[str]   # None = implicit port
    is_output: bool
    side: str                # "top" | "bottom" | "left" | "right"


IMPLICIT_IN  = PortDef("In",  None, False, "top")
IMPLICIT_OUT = PortDef("Out", None, True,  "bottom")

STANDARD_PORTS = (IMPLICIT_IN, IMPLICIT_OUT)

CONDITION_PORTS = (
    IMPLICIT_IN,
    PortDef("In",    "left",  False, "left"),
    PortDef("True",  "true",  True,  "bottom"),
    PortDef("False", "false", True,  "right"),
)


# ---------------------------------------------------------------------------
# Per-kind config variants
# ---------------------------------------------------------------------------

@dataclass
class NodeConfig:
    """Base for the per-kind config variants.

    FIELDS maps wire key -> attribute name.  CHOICES restricts the values a
    wire key may take; keys not listed there are free text.
    """

    FIELDS: ClassVar[dict] = {"label": "label"}
    CHOICES: ClassVar[dict] = {}

    label: str = ""
    extra: dict = field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        attr = self.FIELDS.get(key)
        if attr is not None:
            return getattr(self, attr)
        return self.extra.get(key, default)

    def merge(self, partial: dict) -> list[str]:
        """Shallow-merge wire keys into this config in place.

        Returns the keys that were applied.  A value outside a choice
        field's allowed set is skipped.
        """
        applied = []
        for key, value in partial.items():
            value = "" if value is None else str(value)
            choices = self.CHOICES.get(key)
            if choices is not None and value not in choices:
                continue
            attr = self.FIELDS.get(key)
            if attr is not None:
                setattr(self, attr, value)
            else:
                self.extra[key] = value
            applied.append(key)
        return applied

    def to_dict(self) -> dict:
        d = {key: getattr(self, attr) for key, attr in self.FIELDS.items()}
        d.update(self.extra)
        return d

    def resolved(self) -> dict:
        """Wire dict with blank recognised values replaced by defaults."""
        defaults = type(self)()
        d = self.to_dict()
        for key, attr in self.FIELDS.items():
            if not d[key]:
                d[key] = getattr(defaults, attr)
        return d

    def copy(self) -> "NodeConfig":
        return copy.deepcopy(self)

    @classmethod
    def from_dict(cls, d: dict) -> "NodeConfig":
        """Build from a stored config.  A value outside a choice field's
        allowed set is replaced by the default."""
        cfg = cls()
        for key, value in d.items():
            value = "" if value is None else str(value)
            choices = cls.CHOICES.get(key)
            if choices is not None and value not in choices:
                logger.warning("Ignoring %s=%r, expected one of %s", key, value, choices)
                continue
            attr = cls.FIELDS.get(key)
            if attr is not None:
                setattr(cfg, attr, value)
            else:
                cfg.extra[key] = value
        return cfg


@dataclass
class TriggerConfig(NodeConfig):
    FIELDS: ClassVar[dict] = {"label": "label", "triggerType": "trigger_type"}
    CHOICES: ClassVar[dict] = {"triggerType": ("user-message", "schedule", "webhook")}

    label: str = "Message Trigger"
    trigger_type: str = "user-message"


@dataclass
class AgentConfig(NodeConfig):
    FIELDS: ClassVar[dict] = {"label": "label", "description": "description", "model": "model"}

    label: str = "Agent"
    description: str = ""
    model: str = "gpt-4"


@dataclass
class LLMConfig(NodeConfig):
    FIELDS: ClassVar[dict] = {"label": "label", "model": "model", "prompt": "prompt"}

    label: str = "LLM"
    model: str = "gpt-4"
    prompt: str = ""


@dataclass
class ConditionConfig(NodeConfig):
    FIELDS: ClassVar[dict] = {"label": "label", "condition": "condition"}

    label: str = "Condition"
    condition: str = ""


@dataclass
class ToolConfig(NodeConfig):
    FIELDS: ClassVar[dict] = {"label": "label", "toolType": "tool_type", "toolName": "tool_name"}
    CHOICES: ClassVar[dict] = {"toolType": ("browser", "search", "fetch", "calculator", "code")}

    label: str = "Tool"
    tool_type: str = "browser"
    tool_name: str = ""


@dataclass
class OutputConfig(NodeConfig):
    FIELDS: ClassVar[dict] = {"label": "label", "outputType": "output_type"}

    label: str = "Output"
    output_type: str = "text"


# ---------------------------------------------------------------------------
# Inspector field schema
# ---------------------------------------------------------------------------

MODEL_CHOICES = ("gpt-4", "gpt-3.5-turbo", "claude-3-opus", "claude-3-sonnet", "glm-4")


@dataclass(frozen=True)
class FieldSpec:
    key: str
    label: str
    widget: str = "text"          # "text" | "choice" | "multiline"
    choices: tuple = ()
    placeholder: str = ""
    editable_choice: bool = False  # combo box that also accepts free text


_NAME_FIELD = FieldSpec("label", "Node name")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeTypeInfo:
    kind: NodeKind
    title: str
    glyph: str
    config_cls: type
    ports: tuple
    fields: tuple
    minimap_color: str

    def default_config(self) -> NodeConfig:
        return self.config_cls()

    def output_ports(self) -> list[PortDef]:
        return [p for p in self.ports if p.is_output]

    def input_ports(self) -> list[PortDef]:
        return [p for p in self.ports if not p.is_output]

    def find_port(self, port_id: Optional[str], is_output: bool) -> Optional[PortDef]:
        return next((p for p in self.ports
                     if p.port_id == port_id and p.is_output == is_output), None)


MINIMAP_DEFAULT_COLOR = "#999999"

_REGISTRY: dict[NodeKind, NodeTypeInfo] = {
    NodeKind.TRIGGER: NodeTypeInfo(
        NodeKind.TRIGGER, "Trigger", "⚡", TriggerConfig, STANDARD_PORTS,
        (_NAME_FIELD,
         FieldSpec("triggerType", "Trigger type", "choice",
                   TriggerConfig.CHOICES["triggerType"])),
        "#f59e0b"),
    NodeKind.AGENT: NodeTypeInfo(
        NodeKind.AGENT, "Agent", "🤖", AgentConfig, STANDARD_PORTS,
        (_NAME_FIELD,
         FieldSpec("description", "Description"),
         FieldSpec("model", "Model", "choice", MODEL_CHOICES, editable_choice=True)),
        "#667eea"),
    NodeKind.LLM: NodeTypeInfo(
        NodeKind.LLM, "LLM", "🧠", LLMConfig, STANDARD_PORTS,
        (_NAME_FIELD,
         FieldSpec("model", "Model", "choice", MODEL_CHOICES, editable_choice=True),
         FieldSpec("prompt", "System prompt", "multiline",
                   placeholder="Set the system prompt for the model...")),
        MINIMAP_DEFAULT_COLOR),
    NodeKind.CONDITION: NodeTypeInfo(
        NodeKind.CONDITION, "Condition", "🔀", ConditionConfig, CONDITION_PORTS,
        (_NAME_FIELD,
         FieldSpec("condition", "Condition expression",
                   placeholder="e.g. input contains 'hello'")),
        "#10b981"),
    NodeKind.TOOL: NodeTypeInfo(
        NodeKind.TOOL, "Tool", "🔧", ToolConfig, STANDARD_PORTS,
        (_NAME_FIELD,
         FieldSpec("toolType", "Tool type", "choice", ToolConfig.CHOICES["toolType"]),
         FieldSpec("toolName", "Tool name")),
        "#ef4444"),
    NodeKind.OUTPUT: NodeTypeInfo(
        NodeKind.OUTPUT, "Output", "📤", OutputConfig, STANDARD_PORTS,
        (_NAME_FIELD,
         FieldSpec("outputType", "Output type")),
        MINIMAP_DEFAULT_COLOR),
}


def describe(kind) -> NodeTypeInfo:
    """Return the behaviour contract for `kind`.  Raises UnknownNodeKind."""
    info = _REGISTRY.get(parse_kind(kind))
    if info is None:
        raise UnknownNodeKind(f"no registry entry for {kind!r}")
    return info


def default_config(kind) -> NodeConfig:
    return describe(kind).default_config()


def config_from_dict(kind, d: dict) -> NodeConfig:
    return describe(kind).config_cls.from_dict(d)


def config_fields(kind) -> tuple:
    return describe(kind).fields


def minimap_color(kind) -> str:
    return describe(kind).minimap_color


__all__ = [
    "NodeKind", "UnknownNodeKind", "parse_kind",
    "PortDef", "IMPLICIT_IN", "IMPLICIT_OUT",
    "NodeConfig", "TriggerConfig", "AgentConfig", "LLMConfig",
    "ConditionConfig", "ToolConfig", "OutputConfig",
    "FieldSpec", "MODEL_CHOICES", "NodeTypeInfo",
    "describe", "default_config", "config_from_dict", "config_fields",
    "minimap_color", "MINIMAP_DEFAULT_COLOR",
]
