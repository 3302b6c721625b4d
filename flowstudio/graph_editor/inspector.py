"""Property inspector model.

A pure function of (current selection, GraphModel): the fields shown for the
selected node's kind, seeded from its config.  Edits are live — every call
to edit() goes straight to GraphModel.update_node_config.  The Qt properties
panel renders whatever fields() returns and calls edit() on change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .controller import CanvasController
from .graph_model import GraphChange, GraphModel, GraphNode
from .node_types import config_fields, default_config, describe


@dataclass(frozen=True)
class FieldView:
    key: str
    label: str
    widget: str
    value: str
    choices: tuple = ()
    placeholder: str = ""
    editable_choice: bool = False


class PropertyInspector:

    def __init__(self, model: GraphModel, controller: CanvasController):
        self.model = model
        self.controller = controller
        self._listeners: list[Callable] = []
        controller.on_selection_changed(self._on_selection_changed)
        model.on_change(self._on_model_change)

    def on_refresh(self, callback: Callable) -> None:
        """callback(structural: bool) — structural is True when the field set
        itself changed (new selection), False when only values changed."""
        self._listeners.append(callback)

    def detach(self) -> None:
        self.model.remove_listener(self._on_model_change)

    def _refresh(self, structural: bool) -> None:
        for cb in list(self._listeners):
            cb(structural)

    def _on_selection_changed(self, _node_id) -> None:
        self._refresh(True)

    def _on_model_change(self, change: GraphChange) -> None:
        sel = self.controller.selected_id
        if sel is None:
            return
        if change.action == "update_node" and change.node_id == sel:
            self._refresh(False)
        elif change.action == "replace":
            self._refresh(True)

    # -- Read side --

    @property
    def node(self) -> Optional[GraphNode]:
        return self.controller.selected_node

    @property
    def is_empty(self) -> bool:
        return self.node is None

    @property
    def title(self) -> str:
        node = self.node
        if node is None:
            return "Select a node to configure"
        info = describe(node.kind)
        return f"{info.glyph} {info.title}"

    def fields(self) -> list[FieldView]:
        node = self.node
        if node is None:
            return []
        defaults = default_config(node.kind)
        views = []
        for spec in config_fields(node.kind):
            value = node.config.get(spec.key)
            if value is None:
                value = defaults.get(spec.key) or ""
            views.append(FieldView(
                key=spec.key, label=spec.label, widget=spec.widget,
                value=value, choices=spec.choices,
                placeholder=spec.placeholder,
                editable_choice=spec.editable_choice,
            ))
        return views

    # -- Write side --

    def edit(self, key: str, value: str) -> None:
        node_id = self.controller.selected_id
        if node_id is None:
            return
        self.model.update_node_config(node_id, {key: value})
