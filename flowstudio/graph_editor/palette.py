"""Static node palette.

The palette never mutates anything: picking an entry produces a DropTag
(kind, label) that travels with the drag gesture and is read back by the
canvas controller at drop time.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from .node_types import NodeKind, UnknownNodeKind, describe, parse_kind

# Mime type the Qt palette tags its drags with.
DROP_MIME_TYPE = "application/x-flowstudio-node"


@dataclass(frozen=True)
class DropTag:
    kind: NodeKind
    label: str

    def encode(self) -> bytes:
        return json.dumps({"kind": self.kind.value, "label": self.label}).encode("utf-8")

    @staticmethod
    def decode(data) -> Optional["DropTag"]:
        """Parse a drag payload.  Returns None for anything the palette did
        not produce."""
        if not data:
            return None
        try:
            d = json.loads(bytes(data).decode("utf-8"))
            return DropTag(parse_kind(d["kind"]), str(d.get("label", "")))
        except (ValueError, KeyError, TypeError, UnknownNodeKind):
            return None


@dataclass(frozen=True)
class PaletteEntry:
    kind: NodeKind
    label: str
    glyph: str

    def drop_tag(self) -> DropTag:
        return DropTag(self.kind, self.label)


@dataclass(frozen=True)
class PaletteCategory:
    title: str
    entries: tuple


PALETTE = (
    PaletteCategory("Triggers", (
        PaletteEntry(NodeKind.TRIGGER, "Message Trigger", "⚡"),
        PaletteEntry(NodeKind.TRIGGER, "Scheduled Task",  "⏰"),
        PaletteEntry(NodeKind.TRIGGER, "Webhook",         "🔗"),
    )),
    PaletteCategory("Agents", (
        PaletteEntry(NodeKind.AGENT, "AI Agent", "🤖"),
        PaletteEntry(NodeKind.LLM,   "LLM",      "🧠"),
    )),
    PaletteCategory("Flow Control", (
        PaletteEntry(NodeKind.CONDITION, "Condition", "🔀"),
    )),
    PaletteCategory("Tools", (
        PaletteEntry(NodeKind.TOOL, "Browser",     "🌐"),
        PaletteEntry(NodeKind.TOOL, "Web Search",  "🔍"),
        PaletteEntry(NodeKind.TOOL, "Calculator",  "🧮"),
        PaletteEntry(NodeKind.TOOL, "Code Runner", "💻"),
    )),
    PaletteCategory("Output", (
        PaletteEntry(NodeKind.OUTPUT, "Return Result", "📤"),
    )),
)


def all_entries() -> list[PaletteEntry]:
    return [e for cat in PALETTE for e in cat.entries]


def find_entry(kind, label: str) -> Optional[PaletteEntry]:
    kind = parse_kind(kind)
    return next((e for e in all_entries() if e.kind == kind and e.label == label), None)


def glyph_for(kind, label: str) -> str:
    """Glyph of the palette entry a node was placed from, else the kind's."""
    entry = find_entry(kind, label)
    return entry.glyph if entry else describe(kind).glyph
