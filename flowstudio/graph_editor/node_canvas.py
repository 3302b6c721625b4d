"""Node graph canvas widget.

A QWidget that renders a GraphModel and forwards gestures to a
CanvasController.  Handles:
  - Pan (middle-mouse or click-drag on empty space)
  - Zoom (mouse wheel)
  - Node drag / click to select / click empty space to deselect
  - Click-drag from an output port to an input port to connect
  - Right-click on a connection to remove it
  - Delete key to remove the selected node, F to frame all
  - Drops from the palette (mime type DROP_MIME_TYPE)
  - Minimap in the bottom-right corner, dotted background grid

All interaction state lives in the controller; this widget keeps only the
pan gesture and hover highlight, which are purely visual.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import QWidget, QSizePolicy
from PySide6.QtCore import Qt, QPointF, QRectF, Signal
from PySide6.QtGui import (
    QPainter, QPen, QBrush, QColor, QPainterPath, QFont,
    QMouseEvent, QWheelEvent, QKeyEvent, QCursor,
)

from .controller import (
    CanvasController, Hit, NODE_W, NODE_H, PORT_R, port_scene_pos,
)
from .graph_model import GraphChange, GraphNode
from .node_types import NodeKind
from .palette import DROP_MIME_TYPE, DropTag, glyph_for


# ---------------------------------------------------------------------------
# Visual constants
# ---------------------------------------------------------------------------

MINIMAP_W = 180
MINIMAP_H = 120
MINIMAP_MARGIN = 10

C_BG            = QColor("#0d1117")
C_GRID_DOT      = QColor("#2a3347")
C_NODE_BG       = QColor("#1a2236")
C_NODE_BORDER   = QColor("#2a3a5c")
C_NODE_SEL      = QColor("#3a7bd5")
C_NODE_ACCENT   = {
    NodeKind.TRIGGER:   QColor("#f59e0b"),
    NodeKind.AGENT:     QColor("#667eea"),
    NodeKind.LLM:       QColor("#9b5de5"),
    NodeKind.CONDITION: QColor("#10b981"),
    NodeKind.TOOL:      QColor("#ef4444"),
    NodeKind.OUTPUT:    QColor("#00b4d8"),
}
C_PORT          = QColor("#8a9bbd")
C_PORT_TRUE     = QColor("#6bcb77")
C_PORT_FALSE    = QColor("#e94560")
C_PORT_HOVER    = QColor("#ffffff")
C_WIRE          = QColor("#667eea")
C_WIRE_PREVIEW  = QColor("#aaaaaa")
C_TEXT          = QColor("#e6e6e6")
C_TEXT_DIM      = QColor("#888888")
C_MINIMAP_BG    = QColor(13, 17, 23, 220)
C_MINIMAP_VIEW  = QColor("#3a7bd5")


def node_subtitle(node: GraphNode) -> str:
    """Second line shown under the node label."""
    cfg = node.config.resolved()
    k = node.kind
    if k == NodeKind.AGENT:
        return f"{cfg['description'] or 'AI agent'} · {cfg['model']}"
    if k == NodeKind.TRIGGER:
        return cfg["triggerType"]
    if k == NodeKind.CONDITION:
        return node.config.condition or "Condition check"
    if k == NodeKind.TOOL:
        return node.config.tool_name or cfg["toolType"]
    if k == NodeKind.LLM:
        return cfg["model"]
    return cfg["outputType"]


def _port_color(port) -> QColor:
    if port.port_id == "true":
        return C_PORT_TRUE
    if port.port_id == "false":
        return C_PORT_FALSE
    return C_PORT


# ---------------------------------------------------------------------------
# Node graph canvas
# ---------------------------------------------------------------------------

class NodeGraphCanvas(QWidget):
    """Interactive flow graph canvas.

    Signals:
      graph_changed()  – emitted whenever the model is mutated
    """

    graph_changed = Signal()

    def __init__(self, controller: CanvasController, parent=None,
                 background_gap: int = 12):
        super().__init__(parent)
        self.controller = controller
        self.model = controller.model
        self.background_gap = background_gap

        self.setFocusPolicy(Qt.StrongFocus)
        self.setMouseTracking(True)
        self.setAcceptDrops(True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumSize(400, 300)

        self._pan_start: Optional[QPointF] = None
        self._hover_hit: Hit = Hit()

        self.model.on_change(self._on_model_change)
        controller.on_selection_changed(lambda _nid: self.update())

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    @property
    def viewport(self):
        return self.controller.viewport

    def frame_all(self) -> None:
        """Zoom/pan to fit all nodes in view."""
        self.controller.frame_all(self.width(), self.height())
        self.update()

    def view_to_scene(self, p: QPointF) -> QPointF:
        return QPointF(*self.viewport.view_to_scene(p.x(), p.y()))

    def place_at_center(self, tag: DropTag) -> str:
        """Add a node for `tag` centred in the current view and select it."""
        cx, cy = self.viewport.view_to_scene(self.width() / 2, self.height() / 2)
        node_id = self.model.add_node(tag.kind, (cx - NODE_W / 2, cy - NODE_H / 2),
                                      tag.label)
        self.controller.click_node(node_id)
        return node_id

    def detach(self) -> None:
        """Stop listening to the model (it may outlive this widget)."""
        self.model.remove_listener(self._on_model_change)

    def _on_model_change(self, change: GraphChange) -> None:
        self.graph_changed.emit()
        self.update()

    # -----------------------------------------------------------------------
    # Paint
    # -----------------------------------------------------------------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)

        painter.fillRect(self.rect(), C_BG)
        self._draw_grid(painter)

        vp = self.viewport
        painter.save()
        painter.translate(-vp.origin_x * vp.scale, -vp.origin_y * vp.scale)
        painter.scale(vp.scale, vp.scale)

        self._draw_connections(painter)
        self._draw_preview_wire(painter)
        for node in self.model.nodes:
            self._draw_node(painter, node)

        painter.restore()

        self._draw_minimap(painter)

    def _draw_grid(self, painter: QPainter) -> None:
        vp = self.viewport
        step = self.background_gap * vp.scale
        if step < 4:
            return
        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(C_GRID_DOT))
        ox = (-vp.origin_x * vp.scale) % step
        oy = (-vp.origin_y * vp.scale) % step
        y = oy
        while y < self.height():
            x = ox
            while x < self.width():
                painter.drawEllipse(QPointF(x, y), 1.0, 1.0)
                x += step
            y += step

    def _draw_connections(self, painter: QPainter) -> None:
        hover = self._hover_hit.conn if self._hover_hit.kind == Hit.WIRE else None
        for conn in self.model.connections:
            geom = self.controller.wire_geometry(conn)
            if geom is None:
                continue
            p0, c0, c1, p1 = (QPointF(*p) for p in geom)
            col = C_WIRE
            if conn.source_port == "true":
                col = C_PORT_TRUE
            elif conn.source_port == "false":
                col = C_PORT_FALSE
            is_hover = conn is hover
            painter.setPen(QPen(col.lighter(160) if is_hover else col,
                                3.0 if is_hover else 2.0))
            painter.setBrush(Qt.NoBrush)
            path = QPainterPath(p0)
            path.cubicTo(c0, c1, p1)
            painter.drawPath(path)

    def _draw_preview_wire(self, painter: QPainter) -> None:
        pending = self.controller.pending_connection
        if pending is None:
            return
        node, port = pending
        p0 = QPointF(*port_scene_pos(node, port))
        p1 = QPointF(*self.controller.connect_cursor)
        painter.setPen(QPen(C_WIRE_PREVIEW, 1.5, Qt.DashLine))
        painter.setBrush(Qt.NoBrush)
        painter.drawLine(p0, p1)

    def _draw_node(self, painter: QPainter, node: GraphNode) -> None:
        r = QRectF(node.x, node.y, NODE_W, NODE_H)
        is_sel = node.id == self.controller.selected_id
        accent = C_NODE_ACCENT.get(node.kind, C_NODE_BORDER)

        # Shadow
        shadow = QPainterPath()
        shadow.addRoundedRect(r.adjusted(3, 3, 3, 3), 8, 8)
        painter.fillPath(shadow, QColor(0, 0, 0, 60))

        # Body
        body = QPainterPath()
        body.addRoundedRect(r, 8, 8)
        painter.fillPath(body, C_NODE_BG)

        # Accent strip on the left edge
        strip = QPainterPath()
        strip.addRoundedRect(QRectF(r.left(), r.top(), 6, r.height()), 3, 3)
        painter.fillPath(strip, accent)

        # Border
        painter.setPen(QPen(C_NODE_SEL if is_sel else C_NODE_BORDER,
                            2.5 if is_sel else 1.0))
        painter.setBrush(Qt.NoBrush)
        painter.drawRoundedRect(r, 8, 8)

        # Glyph
        painter.setPen(QPen(C_TEXT))
        painter.setFont(QFont("Segoe UI Emoji", 14))
        painter.drawText(QRectF(r.left() + 10, r.top(), 30, r.height()),
                         Qt.AlignVCenter | Qt.AlignLeft, glyph_for(node.kind, node.label))

        # Label + subtitle
        title_font = QFont("Segoe UI", 9)
        title_font.setBold(True)
        painter.setFont(title_font)
        painter.drawText(QRectF(r.left() + 44, r.top() + 8, r.width() - 52, 22),
                         Qt.AlignVCenter | Qt.AlignLeft, node.label)
        painter.setPen(QPen(C_TEXT_DIM))
        painter.setFont(QFont("Segoe UI", 8))
        painter.drawText(QRectF(r.left() + 44, r.top() + 32, r.width() - 52, 20),
                         Qt.AlignVCenter | Qt.AlignLeft, node_subtitle(node))

        self._draw_ports(painter, node)

    def _draw_ports(self, painter: QPainter, node: GraphNode) -> None:
        hover = self._hover_hit
        for port in node.ports():
            is_hover = (hover.kind == Hit.PORT and hover.node is node
                        and hover.port == port)
            col = C_PORT_HOVER if is_hover else _port_color(port)
            painter.setBrush(QBrush(col))
            painter.setPen(QPen(col.darker(130), 1))
            painter.drawEllipse(QPointF(*port_scene_pos(node, port)), PORT_R, PORT_R)

    def _draw_minimap(self, painter: QPainter) -> None:
        items, (scale, ox, oy) = self.controller.minimap_items(MINIMAP_W, MINIMAP_H)
        if not items:
            return
        mx = self.width() - MINIMAP_W - MINIMAP_MARGIN
        my = self.height() - MINIMAP_H - MINIMAP_MARGIN
        frame = QRectF(mx, my, MINIMAP_W, MINIMAP_H)

        painter.setPen(QPen(C_NODE_BORDER))
        painter.setBrush(QBrush(C_MINIMAP_BG))
        painter.drawRoundedRect(frame, 4, 4)

        painter.setPen(Qt.NoPen)
        for x, y, w, h, colour in items:
            painter.setBrush(QBrush(QColor(colour)))
            painter.drawRoundedRect(QRectF(mx + x, my + y, w, h), 2, 2)

        # Visible area
        vp = self.viewport
        x0, y0 = vp.view_to_scene(0, 0)
        x1, y1 = vp.view_to_scene(self.width(), self.height())
        view_rect = QRectF(mx + x0 * scale + ox, my + y0 * scale + oy,
                           (x1 - x0) * scale, (y1 - y0) * scale).intersected(frame)
        painter.setPen(QPen(C_MINIMAP_VIEW, 1))
        painter.setBrush(Qt.NoBrush)
        painter.drawRect(view_rect)

    # -----------------------------------------------------------------------
    # Mouse events
    # -----------------------------------------------------------------------

    def mousePressEvent(self, event: QMouseEvent) -> None:
        scene = self.view_to_scene(QPointF(event.position()))

        if event.button() == Qt.MiddleButton:
            self._start_pan(event)
            return

        if event.button() == Qt.RightButton:
            self.controller.remove_connection_at(scene.x(), scene.y())
            return

        if event.button() == Qt.LeftButton:
            hit = self.controller.pointer_down(scene.x(), scene.y())
            if hit.kind == Hit.NONE:
                self._start_pan(event)
            self.update()

    def _start_pan(self, event: QMouseEvent) -> None:
        self._pan_start = QPointF(event.position())
        self.setCursor(QCursor(Qt.ClosedHandCursor))

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        pos = QPointF(event.position())

        if self._pan_start is not None:
            delta = pos - self._pan_start
            self._pan_start = pos
            self.viewport.pan_by(delta.x(), delta.y())
            self.update()
            return

        scene = self.view_to_scene(pos)
        self.controller.pointer_move(scene.x(), scene.y())
        self._hover_hit = self.controller.hit_test(scene.x(), scene.y())
        self.update()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if self._pan_start is not None and event.button() in (Qt.MiddleButton, Qt.LeftButton):
            self._pan_start = None
            self.setCursor(QCursor(Qt.ArrowCursor))
            return

        if event.button() == Qt.LeftButton:
            scene = self.view_to_scene(QPointF(event.position()))
            self.controller.pointer_up(scene.x(), scene.y())
            self.update()

    def wheelEvent(self, event: QWheelEvent) -> None:
        factor = 1.12 if event.angleDelta().y() > 0 else 1 / 1.12
        pos = event.position()
        self.viewport.zoom_at(pos.x(), pos.y(), factor)
        self.update()

    # -----------------------------------------------------------------------
    # Palette drops
    # -----------------------------------------------------------------------

    def dragEnterEvent(self, event) -> None:
        if event.mimeData().hasFormat(DROP_MIME_TYPE):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragMoveEvent(self, event) -> None:
        if event.mimeData().hasFormat(DROP_MIME_TYPE):
            event.acceptProposedAction()

    def dropEvent(self, event) -> None:
        mime = event.mimeData()
        tag = None
        if mime.hasFormat(DROP_MIME_TYPE):
            tag = DropTag.decode(mime.data(DROP_MIME_TYPE).data())
        scene = self.view_to_scene(QPointF(event.position()))
        node_id = self.controller.drop(tag, scene.x(), scene.y())
        if node_id is None:
            event.ignore()
            return
        event.acceptProposedAction()
        self.setFocus()

    # -----------------------------------------------------------------------
    # Keyboard
    # -----------------------------------------------------------------------

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() in (Qt.Key_Delete, Qt.Key_Backspace):
            self.controller.delete_selection()
        elif event.key() == Qt.Key_F:
            self.frame_all()
        elif event.key() == Qt.Key_Escape:
            self.controller.click_empty()
            self.update()
        else:
            super().keyPressEvent(event)
