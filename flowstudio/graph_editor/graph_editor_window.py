"""Flow editor main window.

Layout:
  ┌──────────────────────────────────────────────────────────────────┐
  │ [Save] [Run] [Import] [Export]  [Frame All]     Flow · N | M     │  ← toolbar
  ├───────────┬──────────────────────────────────────┬───────────────┤
  │ Palette   │           NodeGraphCanvas            │ Properties    │
  │           │                                      │               │
  └───────────┴──────────────────────────────────────┴───────────────┘

Save writes to the current flow file (asking for a path the first time).
Import replaces the graph with a file's contents; a corrupt file leaves the
current graph untouched.  Export always asks for a path.  Run hands a
snapshot of the graph to the executor callable.
"""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QPushButton,
    QLabel, QFrame, QFileDialog, QMessageBox,
)
from PySide6.QtCore import Qt, QTimer, Signal

from ..core.settings import Settings
from ..ops.execute import FlowNotRunnable, log_executor, run_flow
from ..ops.flow_io import FILE_FILTER, load_flow, save_flow
from .controller import CanvasController
from .graph_model import GraphModel
from .inspector import PropertyInspector
from .node_canvas import NodeGraphCanvas
from .panels import PANEL_STYLE, PaletteWidget, PropertiesPanel
from .serializer import DocumentError


class GraphEditorWindow(QWidget):
    """Top-level flow editor.

    Parameters
    ----------
    model      GraphModel edited in place.
    settings   Settings (grid snap, drop offset, last flow path).
    executor   callable(Graph) invoked by Run; defaults to log_executor.
    flow_path  file the model was loaded from, if any.
    """

    closed = Signal()

    def __init__(self, model: GraphModel, settings: Settings,
                 executor: Callable = None, flow_path: Optional[str] = None,
                 parent=None):
        super().__init__(parent, Qt.Window)
        self.resize(1280, 780)

        self.model = model
        self.settings = settings
        self.executor = executor or log_executor
        self.flow_path = flow_path

        self.controller = CanvasController.from_settings(model, settings)
        self.inspector = PropertyInspector(model, self.controller)

        self._build_ui()
        self._update_status()

        self.setStyleSheet("""
            QWidget { background-color: #16213e; color: #eeeeee; }
            QPushButton {
                background-color: #1a1a2e; color: #eeeeee;
                border: 1px solid #2a3a5c; border-radius: 4px;
                padding: 3px 10px;
            }
            QPushButton:hover { background-color: #2a3a5c; }
            QPushButton#primary { background-color: #667eea; }
            QPushButton#run { background-color: #10b981; }
            QLabel { background: transparent; }
        """ + PANEL_STYLE)

    # -----------------------------------------------------------------------
    # UI construction
    # -----------------------------------------------------------------------

    def _build_ui(self) -> None:
        outer = QVBoxLayout(self)
        outer.setContentsMargins(6, 6, 6, 6)
        outer.setSpacing(4)

        self._canvas = NodeGraphCanvas(self.controller, self,
                                       background_gap=self.settings.background_gap)
        self._canvas.graph_changed.connect(self._update_status)

        toolbar = QHBoxLayout()
        toolbar.setSpacing(6)

        save_btn = QPushButton("💾 Save")
        save_btn.setObjectName("primary")
        save_btn.clicked.connect(self._save)
        toolbar.addWidget(save_btn)

        run_btn = QPushButton("▶️ Run")
        run_btn.setObjectName("run")
        run_btn.clicked.connect(self._run)
        toolbar.addWidget(run_btn)

        import_btn = QPushButton("📥 Import")
        import_btn.clicked.connect(self._import)
        toolbar.addWidget(import_btn)

        export_btn = QPushButton("📤 Export")
        export_btn.clicked.connect(self._export)
        toolbar.addWidget(export_btn)

        toolbar.addSpacing(8)

        frame_btn = QPushButton("Frame All")
        frame_btn.setToolTip("Zoom to fit all nodes  [F]")
        frame_btn.clicked.connect(self._canvas.frame_all)
        toolbar.addWidget(frame_btn)

        toolbar.addStretch()

        self._status_lbl = QLabel("")
        self._status_lbl.setStyleSheet("color: #888; font-size: 10px;")
        toolbar.addWidget(self._status_lbl)

        outer.addLayout(toolbar)

        sep = QFrame()
        sep.setFrameShape(QFrame.HLine)
        sep.setStyleSheet("color: #2a3a5c;")
        outer.addWidget(sep)

        body = QHBoxLayout()
        body.setSpacing(4)
        palette = PaletteWidget(self)
        palette.entry_activated.connect(self._canvas.place_at_center)
        body.addWidget(palette)
        body.addWidget(self._canvas, 1)
        body.addWidget(PropertiesPanel(self.inspector, self))
        outer.addLayout(body, 1)

        QTimer.singleShot(50, self._canvas.frame_all)

    def _update_status(self) -> None:
        self.setWindowTitle(f"{self.model.name} — Flow Editor")
        self._status_lbl.setText(
            f"{self.model.name} · Nodes: {len(self.model.nodes)} | "
            f"Connections: {len(self.model.connections)}")

    def _flash(self, text: str, colour: str) -> None:
        self._status_lbl.setText(text)
        self._status_lbl.setStyleSheet(f"color: {colour}; font-size: 10px;")
        QTimer.singleShot(2500, self._reset_status)

    def _reset_status(self) -> None:
        self._status_lbl.setStyleSheet("color: #888; font-size: 10px;")
        self._update_status()

    # -----------------------------------------------------------------------
    # Save / load
    # -----------------------------------------------------------------------

    def _save(self) -> None:
        if not self.flow_path:
            self._export()
            return
        self._write(self.flow_path)

    def _export(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Export Flow", "", FILE_FILTER)
        if path:
            self._write(path)

    def _write(self, path: str) -> None:
        try:
            save_flow(self.model, path)
        except OSError as e:
            QMessageBox.warning(self, "Save failed", str(e))
            return
        self._remember(path)
        self._flash("Saved", "#6bcb77")

    def _import(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Import Flow", "", FILE_FILTER)
        if not path:
            return
        try:
            load_flow(self.model, path)
        except DocumentError as e:
            QMessageBox.warning(self, "Import failed",
                                f"This flow is corrupted and was not loaded.\n\n{e}")
            return
        except OSError as e:
            QMessageBox.warning(self, "Import failed", str(e))
            return
        self._remember(path)
        self._canvas.frame_all()

    def _remember(self, path: str) -> None:
        self.flow_path = path
        self.settings.last_flow_path = path
        self.settings.save()

    # -----------------------------------------------------------------------
    # Run
    # -----------------------------------------------------------------------

    def _run(self) -> None:
        try:
            run_flow(self.model, self.executor)
        except FlowNotRunnable as e:
            QMessageBox.information(self, "Run", f"Cannot run this flow: {e}")
            return
        self._flash("Flow submitted for execution…", "#6bcb77")

    # -----------------------------------------------------------------------
    # Window lifecycle
    # -----------------------------------------------------------------------

    def closeEvent(self, event) -> None:
        # The model outlives the window; drop the listeners registered on it
        self._canvas.detach()
        self.inspector.detach()
        self.controller.detach()
        self.closed.emit()
        super().closeEvent(event)
