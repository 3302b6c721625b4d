"""Side panels of the editor window: node palette and properties.

PaletteWidget  – category list of PALETTE entries; drag onto the canvas or
                 double-click to place at the centre of the view.
PropertiesPanel – renders PropertyInspector.fields() as a form; every edit
                 goes straight to PropertyInspector.edit().
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import (
    QFrame, QLabel, QListWidget, QListWidgetItem, QVBoxLayout, QFormLayout,
    QLineEdit, QComboBox, QPlainTextEdit, QWidget, QAbstractItemView,
)
from PySide6.QtCore import Qt, QMimeData, QByteArray, Signal
from PySide6.QtGui import QDrag, QFont

from .inspector import FieldView, PropertyInspector
from .palette import DROP_MIME_TYPE, PALETTE, DropTag

PANEL_STYLE = """
    QFrame#panel { background-color: #131a2e; border: 1px solid #2a3a5c; }
    QLabel#panel_title { font-weight: bold; font-size: 12px; padding: 4px; }
    QLineEdit, QComboBox, QPlainTextEdit {
        background: #0d1117; color: #ccc; border: 1px solid #2a3a5c;
    }
"""


# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------

class _PaletteList(QListWidget):
    """QListWidget whose drags carry the entry's DropTag."""

    def startDrag(self, supported_actions) -> None:
        item = self.currentItem()
        tag = item.data(Qt.UserRole) if item else None
        if tag is None:
            return
        mime = QMimeData()
        mime.setData(DROP_MIME_TYPE, QByteArray(tag.encode()))
        drag = QDrag(self)
        drag.setMimeData(mime)
        drag.exec(Qt.CopyAction)


class PaletteWidget(QFrame):
    """Node library sidebar.

    Signals:
      entry_activated(DropTag) – an entry was double-clicked
    """

    entry_activated = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("panel")
        self.setFixedWidth(200)

        lay = QVBoxLayout(self)
        lay.setContentsMargins(6, 6, 6, 6)
        title = QLabel("📦 Node Library")
        title.setObjectName("panel_title")
        lay.addWidget(title)

        self._list = _PaletteList()
        self._list.setDragEnabled(True)
        self._list.setDragDropMode(QAbstractItemView.DragOnly)
        self._list.itemDoubleClicked.connect(self._on_double_click)
        lay.addWidget(self._list, 1)

        header_font = QFont()
        header_font.setBold(True)
        for category in PALETTE:
            header = QListWidgetItem(category.title)
            header.setFlags(Qt.NoItemFlags)
            header.setFont(header_font)
            self._list.addItem(header)
            for entry in category.entries:
                item = QListWidgetItem(f"  {entry.glyph}  {entry.label}")
                item.setData(Qt.UserRole, entry.drop_tag())
                item.setToolTip("Drag onto the canvas, or double-click to add")
                self._list.addItem(item)

    def _on_double_click(self, item: QListWidgetItem) -> None:
        tag: Optional[DropTag] = item.data(Qt.UserRole)
        if tag is not None:
            self.entry_activated.emit(tag)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

class PropertiesPanel(QFrame):
    """Live editor for the selected node's config."""

    def __init__(self, inspector: PropertyInspector, parent=None):
        super().__init__(parent)
        self.inspector = inspector
        self.setObjectName("panel")
        self.setFixedWidth(260)

        self._editors: dict = {}   # key -> editor widget

        outer = QVBoxLayout(self)
        outer.setContentsMargins(6, 6, 6, 6)
        heading = QLabel("⚙️ Node Settings")
        heading.setObjectName("panel_title")
        outer.addWidget(heading)

        self._title = QLabel()
        self._title.setStyleSheet("color: #888;")
        outer.addWidget(self._title)

        self._form_host = QWidget()
        self._form = QFormLayout(self._form_host)
        self._form.setContentsMargins(0, 4, 0, 0)
        outer.addWidget(self._form_host)
        outer.addStretch()

        inspector.on_refresh(self._on_refresh)
        self._rebuild()

    def _on_refresh(self, structural: bool) -> None:
        if structural:
            self._rebuild()
        else:
            self._sync_values()

    def _rebuild(self) -> None:
        while self._form.rowCount():
            self._form.removeRow(0)
        self._editors.clear()

        self._title.setText(self.inspector.title)
        for fv in self.inspector.fields():
            editor = self._make_editor(fv)
            self._editors[fv.key] = editor
            self._form.addRow(QLabel(fv.label), editor)

    def _make_editor(self, fv: FieldView) -> QWidget:
        key = fv.key
        if fv.widget == "choice":
            combo = QComboBox()
            combo.setEditable(fv.editable_choice)
            combo.addItems(list(fv.choices))
            if fv.value not in fv.choices and fv.editable_choice:
                combo.addItem(fv.value)
            combo.setCurrentText(fv.value)
            combo.currentTextChanged.connect(lambda v, k=key: self.inspector.edit(k, v))
            return combo
        if fv.widget == "multiline":
            edit = QPlainTextEdit(fv.value)
            edit.setPlaceholderText(fv.placeholder)
            edit.setFixedHeight(90)
            edit.textChanged.connect(
                lambda k=key, e=edit: self.inspector.edit(k, e.toPlainText()))
            return edit
        line = QLineEdit(fv.value)
        line.setPlaceholderText(fv.placeholder)
        line.textEdited.connect(lambda v, k=key: self.inspector.edit(k, v))
        return line

    def _sync_values(self) -> None:
        """Push model values into editors that are not being typed into."""
        for fv in self.inspector.fields():
            editor = self._editors.get(fv.key)
            if editor is None or editor.hasFocus():
                continue
            editor.blockSignals(True)
            if isinstance(editor, QComboBox):
                editor.setCurrentText(fv.value)
            elif isinstance(editor, QPlainTextEdit):
                if editor.toPlainText() != fv.value:
                    editor.setPlainText(fv.value)
            else:
                editor.setText(fv.value)
            editor.blockSignals(False)
