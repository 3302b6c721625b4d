"""Canvas interaction controller.

Pure Python — no Qt dependency.  Turns pointer gestures (given in scene
coordinates) into GraphModel mutations and owns the transient interaction
state: selection, node drag, in-progress connection, viewport, grid snap.
NodeGraphCanvas forwards its mouse/drop events here and only paints.

States:

  IDLE                 – nothing selected, no gesture in progress
  SELECTED             – one node selected, no gesture in progress
  DRAGGING_NODE        – pointer went down on a node body
  DRAWING_CONNECTION   – pointer went down on an output port

Coordinate spaces (same as the Qt canvas):
  scene  – logical coordinates stored in GraphNode.x / .y
  view   – widget pixels; Viewport.scene_to_view / view_to_scene convert

Node geometry: each node is a NODE_W x NODE_H rectangle at (x, y).  Ports
sit on the middle of the side named by PortDef.side.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .graph_model import GraphChange, GraphConnection, GraphModel, GraphNode
from .node_types import PortDef, minimap_color
from .palette import DropTag

logger = logging.getLogger(__name__)


NODE_W        = 180      # scene units
NODE_H        = 64
PORT_R        = 7        # port circle radius
PORT_HIT      = PORT_R * 1.8
WIRE_HIT      = 6.0

DEFAULT_GRID_SIZE   = 15
DEFAULT_DROP_OFFSET = (-300.0, -50.0)

MIN_SCALE = 0.15
MAX_SCALE = 4.0


class InteractionState(Enum):
    IDLE               = "idle"
    SELECTED           = "selected"
    DRAGGING_NODE      = "dragging_node"
    DRAWING_CONNECTION = "drawing_connection"


# ---------------------------------------------------------------------------
# Hit-test result
# ---------------------------------------------------------------------------

class Hit:
    NONE      = "none"
    NODE_BODY = "node_body"
    PORT      = "port"
    WIRE      = "wire"

    def __init__(self, kind=NONE, node: GraphNode = None,
                 port: PortDef = None, conn: GraphConnection = None):
        self.kind = kind
        self.node = node
        self.port = port
        self.conn = conn

    def __repr__(self):
        return f"Hit({self.kind}, node={self.node.id if self.node else None})"


# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------

@dataclass
class Viewport:
    origin_x: float = 0.0     # scene point shown at view (0, 0)
    origin_y: float = 0.0
    scale: float = 1.0

    def scene_to_view(self, x: float, y: float) -> tuple[float, float]:
        return ((x - self.origin_x) * self.scale, (y - self.origin_y) * self.scale)

    def view_to_scene(self, x: float, y: float) -> tuple[float, float]:
        return (x / self.scale + self.origin_x, y / self.scale + self.origin_y)

    def pan_by(self, dx_view: float, dy_view: float) -> None:
        self.origin_x -= dx_view / self.scale
        self.origin_y -= dy_view / self.scale

    def zoom_at(self, view_x: float, view_y: float, factor: float) -> None:
        """Zoom by `factor`, keeping the scene point under (view_x, view_y) fixed."""
        sx, sy = self.view_to_scene(view_x, view_y)
        self.scale = max(MIN_SCALE, min(MAX_SCALE, self.scale * factor))
        self.origin_x = sx - view_x / self.scale
        self.origin_y = sy - view_y / self.scale

    def frame(self, bounds, width: float, height: float, margin: float = 60) -> None:
        """Fit the scene rectangle `bounds` (x0, y0, x1, y1) into a width x height view."""
        if bounds is None:
            return
        sx, sy = bounds[0] - margin, bounds[1] - margin
        sw = bounds[2] + margin - sx
        sh = bounds[3] + margin - sy
        if sw < 1 or sh < 1 or width <= 0 or height <= 0:
            return
        self.scale = min(width / sw, height / sh, 2.0)
        # Centre the content in whichever axis has slack
        self.origin_x = sx - (width / self.scale - sw) / 2
        self.origin_y = sy - (height / self.scale - sh) / 2


# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------

def node_rect(node: GraphNode) -> tuple[float, float, float, float]:
    return (node.x, node.y, NODE_W, NODE_H)


def port_scene_pos(node: GraphNode, port: PortDef) -> tuple[float, float]:
    """Centre of a port circle in scene coordinates."""
    x, y, w, h = node_rect(node)
    if port.side == "top":
        return (x + w / 2, y)
    if port.side == "bottom":
        return (x + w / 2, y + h)
    if port.side == "left":
        return (x, y + h / 2)
    return (x + w, y + h / 2)


_SIDE_DIR = {"top": (0, -1), "bottom": (0, 1), "left": (-1, 0), "right": (1, 0)}


def wire_controls(p0, side0: str, p1, side1: str):
    """Control points of the cubic bezier from port p0 to port p1.

    Each end leaves its port perpendicular to the side the port sits on.
    """
    reach = max(abs(p1[0] - p0[0]), abs(p1[1] - p0[1])) * 0.5 + 40
    d0 = _SIDE_DIR.get(side0, (0, 1))
    d1 = _SIDE_DIR.get(side1, (0, -1))
    c0 = (p0[0] + d0[0] * reach, p0[1] + d0[1] * reach)
    c1 = (p1[0] + d1[0] * reach, p1[1] + d1[1] * reach)
    return c0, c1


def point_to_bezier_dist(pt, p0, c0, c1, p1, samples: int = 30) -> float:
    """Approximate minimum distance from pt to the bezier curve."""
    best = math.inf
    for i in range(samples + 1):
        t = i / samples
        mt = 1 - t
        bx = mt**3 * p0[0] + 3 * mt**2 * t * c0[0] + 3 * mt * t**2 * c1[0] + t**3 * p1[0]
        by = mt**3 * p0[1] + 3 * mt**2 * t * c0[1] + 3 * mt * t**2 * c1[1] + t**3 * p1[1]
        best = min(best, math.hypot(pt[0] - bx, pt[1] - by))
    return best


def snap_value(v: float, step: float) -> float:
    return round(v / step) * step


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class CanvasController:
    """Headless interaction state machine over a GraphModel."""

    def __init__(self, model: GraphModel, snap_to_grid: bool = True,
                 grid_size: float = DEFAULT_GRID_SIZE,
                 drop_offset=DEFAULT_DROP_OFFSET):
        self.model = model
        self.viewport = Viewport()
        self.snap_to_grid = snap_to_grid
        self.grid_size = grid_size
        self.drop_offset = (float(drop_offset[0]), float(drop_offset[1]))

        self.selected_id: Optional[str] = None

        self._drag_node_id: Optional[str] = None
        self._drag_offset = (0.0, 0.0)

        self._connect_src_id: Optional[str] = None
        self._connect_src_port: Optional[PortDef] = None
        self.connect_cursor = (0.0, 0.0)

        self._selection_listeners: list[Callable] = []
        model.on_change(self._on_model_change)

    @classmethod
    def from_settings(cls, model: GraphModel, settings) -> "CanvasController":
        return cls(model,
                   snap_to_grid=settings.snap_to_grid,
                   grid_size=settings.grid_size,
                   drop_offset=(settings.drop_offset_x, settings.drop_offset_y))

    # -----------------------------------------------------------------------
    # State
    # -----------------------------------------------------------------------

    @property
    def state(self) -> InteractionState:
        if self._drag_node_id is not None:
            return InteractionState.DRAGGING_NODE
        if self._connect_src_id is not None:
            return InteractionState.DRAWING_CONNECTION
        if self.selected_id is not None:
            return InteractionState.SELECTED
        return InteractionState.IDLE

    @property
    def selected_node(self) -> Optional[GraphNode]:
        if self.selected_id is None:
            return None
        return self.model.get_node(self.selected_id)

    @property
    def pending_connection(self) -> Optional[tuple[GraphNode, PortDef]]:
        """(source node, source port) of the connection being drawn."""
        if self._connect_src_id is None:
            return None
        node = self.model.get_node(self._connect_src_id)
        if node is None:
            return None
        return node, self._connect_src_port

    def detach(self) -> None:
        self.model.remove_listener(self._on_model_change)

    def on_selection_changed(self, callback: Callable) -> None:
        self._selection_listeners.append(callback)

    def _set_selection(self, node_id: Optional[str]) -> None:
        if node_id == self.selected_id:
            return
        self.selected_id = node_id
        for cb in list(self._selection_listeners):
            cb(node_id)

    def _on_model_change(self, change: GraphChange) -> None:
        if change.action not in ("remove_node", "replace"):
            return
        if self.selected_id is not None and self.model.get_node(self.selected_id) is None:
            self._set_selection(None)
        if self._drag_node_id is not None and self.model.get_node(self._drag_node_id) is None:
            self._drag_node_id = None
        if self._connect_src_id is not None and self.model.get_node(self._connect_src_id) is None:
            self._connect_src_id = None
            self._connect_src_port = None

    # -----------------------------------------------------------------------
    # Hit testing
    # -----------------------------------------------------------------------

    def hit_test(self, x: float, y: float) -> Hit:
        # Ports take priority over bodies; topmost (last drawn) node first
        for node in reversed(self.model.nodes):
            for port in node.ports():
                px, py = port_scene_pos(node, port)
                if abs(x - px) + abs(y - py) <= PORT_HIT:
                    return Hit(Hit.PORT, node, port)

        for node in reversed(self.model.nodes):
            nx, ny, w, h = node_rect(node)
            if nx <= x <= nx + w and ny <= y <= ny + h:
                return Hit(Hit.NODE_BODY, node)

        for conn in self.model.connections:
            if self._wire_hit(conn, (x, y)):
                return Hit(Hit.WIRE, conn=conn)

        return Hit()

    def wire_geometry(self, conn: GraphConnection):
        """(p0, c0, c1, p1) for a connection, or None if it can't be drawn."""
        src = self.model.get_node(conn.source)
        dst = self.model.get_node(conn.target)
        if src is None or dst is None:
            return None
        sp = src.ports()
        sport = next((p for p in sp if p.is_output and p.port_id == conn.source_port), None)
        dport = next((p for p in dst.ports()
                      if not p.is_output and p.port_id == conn.target_port), None)
        if sport is None or dport is None:
            return None
        p0 = port_scene_pos(src, sport)
        p1 = port_scene_pos(dst, dport)
        c0, c1 = wire_controls(p0, sport.side, p1, dport.side)
        return p0, c0, c1, p1

    def _wire_hit(self, conn: GraphConnection, pos) -> bool:
        geom = self.wire_geometry(conn)
        if geom is None:
            return False
        return point_to_bezier_dist(pos, *geom) < WIRE_HIT

    # -----------------------------------------------------------------------
    # Pointer gestures (scene coordinates)
    # -----------------------------------------------------------------------

    def snap(self, x: float, y: float) -> tuple[float, float]:
        if not self.snap_to_grid or self.grid_size <= 0:
            return (x, y)
        return (snap_value(x, self.grid_size), snap_value(y, self.grid_size))

    def pointer_down(self, x: float, y: float) -> Hit:
        hit = self.hit_test(x, y)

        if hit.kind == Hit.PORT and hit.port.is_output:
            self._connect_src_id = hit.node.id
            self._connect_src_port = hit.port
            self.connect_cursor = (x, y)
            return hit

        if hit.kind in (Hit.PORT, Hit.NODE_BODY):
            node = hit.node
            self._drag_node_id = node.id
            self._drag_offset = (x - node.x, y - node.y)
            self._set_selection(node.id)
            return hit

        if hit.kind == Hit.NONE:
            self.click_empty()
        return hit

    def pointer_move(self, x: float, y: float) -> None:
        if self._connect_src_id is not None:
            self.connect_cursor = (x, y)
            return
        if self._drag_node_id is not None:
            pos = self.snap(x - self._drag_offset[0], y - self._drag_offset[1])
            self.model.move_node(self._drag_node_id, pos)

    def pointer_up(self, x: float, y: float) -> Optional[str]:
        """Finish the current gesture.  Returns the new connection id when a
        connection was made."""
        if self._connect_src_id is not None:
            src_id, src_port = self._connect_src_id, self._connect_src_port
            self._connect_src_id = None
            self._connect_src_port = None
            hit = self.hit_test(x, y)
            if hit.kind == Hit.PORT and not hit.port.is_output:
                return self.model.connect(src_id, src_port.port_id,
                                          hit.node.id, hit.port.port_id)
            logger.debug("Connection from %s discarded", src_id)
            return None

        if self._drag_node_id is not None:
            node_id = self._drag_node_id
            self._drag_node_id = None
            if self.model.get_node(node_id) is not None:
                self._set_selection(node_id)
        return None

    def cancel_gesture(self) -> None:
        self._drag_node_id = None
        self._connect_src_id = None
        self._connect_src_port = None

    def click_node(self, node_id: str) -> None:
        if self.model.get_node(node_id) is not None:
            self._set_selection(node_id)

    def click_empty(self) -> None:
        self.cancel_gesture()
        self._set_selection(None)

    # -----------------------------------------------------------------------
    # Palette drop
    # -----------------------------------------------------------------------

    def drop(self, tag: Optional[DropTag], x: float, y: float,
             bounds_origin=(0.0, 0.0)) -> Optional[str]:
        """Place a node from a palette drop.

        (x, y) is the drop point and bounds_origin the top-left of the canvas
        in the same coordinate space.  Returns the new node id, or None when
        the drag carried no palette tag.

        The node's top-left lands at the drop point plus drop_offset; an
        offset of (-NODE_W / 2, -NODE_H / 2) centres it under the cursor.
        """
        if tag is None:
            logger.debug("Ignoring drop without a palette tag")
            return None
        pos = (x - bounds_origin[0] + self.drop_offset[0],
               y - bounds_origin[1] + self.drop_offset[1])
        return self.model.add_node(tag.kind, pos, tag.label)

    # -----------------------------------------------------------------------
    # Deletion
    # -----------------------------------------------------------------------

    def delete_selection(self) -> None:
        if self.selected_id is not None:
            self.model.remove_node(self.selected_id)

    def remove_connection_at(self, x: float, y: float) -> bool:
        hit = self.hit_test(x, y)
        if hit.kind != Hit.WIRE:
            return False
        self.model.remove_connection(hit.conn.id)
        return True

    # -----------------------------------------------------------------------
    # Viewport / minimap
    # -----------------------------------------------------------------------

    def content_bounds(self) -> Optional[tuple[float, float, float, float]]:
        if not self.model.nodes:
            return None
        return (min(n.x for n in self.model.nodes),
                min(n.y for n in self.model.nodes),
                max(n.x + NODE_W for n in self.model.nodes),
                max(n.y + NODE_H for n in self.model.nodes))

    def frame_all(self, width: float, height: float) -> None:
        """Zoom/pan to fit all nodes in a width x height view."""
        self.viewport.frame(self.content_bounds(), width, height)

    def minimap_items(self, width: float, height: float, pad: float = 6):
        """Node rectangles scaled into a width x height minimap.

        Returns (items, transform) where items is a list of
        (x, y, w, h, colour) and transform maps scene -> minimap as
        (scale, offset_x, offset_y).
        """
        bounds = self.content_bounds()
        if bounds is None:
            return [], (1.0, 0.0, 0.0)
        sw = max(bounds[2] - bounds[0], 1.0)
        sh = max(bounds[3] - bounds[1], 1.0)
        scale = min((width - 2 * pad) / sw, (height - 2 * pad) / sh)
        ox = pad - bounds[0] * scale
        oy = pad - bounds[1] * scale
        items = [(n.x * scale + ox, n.y * scale + oy,
                  NODE_W * scale, NODE_H * scale, minimap_color(n.kind))
                 for n in self.model.nodes]
        return items, (scale, ox, oy)
