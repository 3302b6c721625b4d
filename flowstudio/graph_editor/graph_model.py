"""Flow graph data model.

Pure Python — no Qt dependency.  Owns the nodes and connections that the
canvas edits and that the serializer turns into a persisted document.

Connection rules
----------------
  - No self-loops (source == target is rejected at creation).
  - Both endpoints must exist.
  - source_port must be an output port of the source node, target_port an
    input port of the target node.  None means the implicit port, which a
    condition node does not have on its output side.
  - Parallel connections and cycles are accepted; the editor does not
    enforce a DAG.
  - An explicit connection id must not already be in use.

Rejected or unknown-id requests are silent no-ops: a stale id from a gesture
that raced a deletion must never crash the editor.

Observers registered with on_change() receive a GraphChange after every
applied mutation.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional

from .node_types import NodeConfig, NodeKind, default_config, describe, parse_kind

logger = logging.getLogger(__name__)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


# ---------------------------------------------------------------------------
# Node / connection
# ---------------------------------------------------------------------------

@dataclass
class GraphNode:
    """One node in the flow graph.

    kind    – NodeKind; fixes the ports and the config variant.
    id      – unique within the process; never reused.
    x, y    – canvas position (scene coords).
    config  – the kind's NodeConfig variant.
    """
    kind:   NodeKind
    id:     str = field(default_factory=lambda: new_id("node"))
    x: float = 0.0
    y: float = 0.0
    config: NodeConfig = None

    def __post_init__(self):
        self.kind = parse_kind(self.kind)
        if self.config is None:
            self.config = default_config(self.kind)

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def label(self) -> str:
        return self.config.label or describe(self.kind).title

    def ports(self):
        return describe(self.kind).ports


@dataclass(frozen=True)
class GraphConnection:
    source: str
    target: str
    source_port: Optional[str] = None
    target_port: Optional[str] = None
    id: str = field(default_factory=lambda: new_id("edge"))

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


@dataclass(frozen=True)
class Graph:
    """Point-in-time copy of the model.  Nothing in here is shared with the
    live GraphModel."""
    nodes: tuple = ()
    connections: tuple = ()
    name: str = "Untitled Flow"
    enabled: bool = True

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return next((n for n in self.nodes if n.id == node_id), None)


@dataclass(frozen=True)
class GraphChange:
    """Notification payload.

    action – "add_node" | "move_node" | "update_node" | "remove_node" |
             "connect" | "remove_connection" | "replace" | "rename"
    """
    action: str
    node_id: Optional[str] = None
    connection_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Graph model
# ---------------------------------------------------------------------------

class GraphModel:
    """Mutable flow graph: nodes + connections."""

    def __init__(self):
        self.nodes: list[GraphNode] = []
        self.connections: list[GraphConnection] = []
        self.name: str = "Untitled Flow"
        self.enabled: bool = True
        self._listeners: list[Callable] = []

    # -- Observers --

    def on_change(self, callback: Callable) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def notify(self, change: GraphChange) -> None:
        for cb in list(self._listeners):
            cb(change)

    # -- Node accessors --

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def add_node(self, kind, position=(0.0, 0.0), label: Optional[str] = None) -> str:
        node = GraphNode(kind=kind, x=float(position[0]), y=float(position[1]))
        if label is not None:
            node.config.label = label
        self.nodes.append(node)
        self.notify(GraphChange("add_node", node_id=node.id))
        return node.id

    def move_node(self, node_id: str, position) -> None:
        node = self.get_node(node_id)
        if node is None:
            return
        node.x, node.y = float(position[0]), float(position[1])
        self.notify(GraphChange("move_node", node_id=node_id))

    def update_node_config(self, node_id: str, partial: dict) -> None:
        node = self.get_node(node_id)
        if node is None:
            return
        applied = node.config.merge(partial)
        skipped = set(partial) - set(applied)
        if skipped:
            logger.warning("Ignoring invalid values for %s on node %s",
                           sorted(skipped), node_id)
        if applied:
            self.notify(GraphChange("update_node", node_id=node_id))

    def remove_node(self, node_id: str) -> None:
        if self.get_node(node_id) is None:
            return
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.connections = [c for c in self.connections if not c.touches(node_id)]
        self.notify(GraphChange("remove_node", node_id=node_id))

    # -- Connection accessors --

    def get_connection(self, conn_id: str) -> Optional[GraphConnection]:
        return next((c for c in self.connections if c.id == conn_id), None)

    def can_connect(self, source: str, source_port: Optional[str],
                    target: str, target_port: Optional[str]) -> bool:
        if source == target:
            return False
        src = self.get_node(source)
        dst = self.get_node(target)
        if src is None or dst is None:
            return False
        if describe(src.kind).find_port(source_port, is_output=True) is None:
            return False
        return describe(dst.kind).find_port(target_port, is_output=False) is not None

    def connect(self, source: str, source_port: Optional[str],
                target: str, target_port: Optional[str] = None,
                conn_id: Optional[str] = None) -> Optional[str]:
        """Add a connection.  Returns its id, or None if rejected."""
        if conn_id is not None and self.get_connection(conn_id) is not None:
            logger.debug("Rejected connection: id %s already in use", conn_id)
            return None
        if not self.can_connect(source, source_port, target, target_port):
            logger.debug("Rejected connection %s:%s -> %s:%s",
                         source, source_port, target, target_port)
            return None
        conn = GraphConnection(source=source, target=target,
                               source_port=source_port, target_port=target_port,
                               id=conn_id or new_id("edge"))
        self.connections.append(conn)
        self.notify(GraphChange("connect", connection_id=conn.id))
        return conn.id

    def remove_connection(self, conn_id: str) -> None:
        if self.get_connection(conn_id) is None:
            return
        self.connections = [c for c in self.connections if c.id != conn_id]
        self.notify(GraphChange("remove_connection", connection_id=conn_id))

    def connections_for_node(self, node_id: str) -> list[GraphConnection]:
        return [c for c in self.connections if c.touches(node_id)]

    # -- Flow metadata --

    def rename(self, name: str) -> None:
        self.name = name
        self.notify(GraphChange("rename"))

    # -- Snapshot / replace --

    def snapshot(self) -> Graph:
        return Graph(
            nodes=tuple(copy.deepcopy(n) for n in self.nodes),
            connections=tuple(self.connections),
            name=self.name,
            enabled=self.enabled,
        )

    def replace(self, graph: Graph) -> None:
        """Swap in a whole graph (e.g. after load)."""
        self.nodes = [copy.deepcopy(n) for n in graph.nodes]
        self.connections = list(graph.connections)
        self.name = graph.name
        self.enabled = graph.enabled
        self.notify(GraphChange("replace"))

    # -- Factory --

    @staticmethod
    def make_default() -> "GraphModel":
        """Build the seed graph: trigger → agent → output."""
        g = GraphModel()
        g.nodes = [
            GraphNode(NodeKind.TRIGGER, id="1", x=250, y=50),
            GraphNode(NodeKind.AGENT, id="2", x=250, y=200),
            GraphNode(NodeKind.OUTPUT, id="3", x=250, y=350),
        ]
        g.nodes[1].config.merge({"label": "Main Agent",
                                 "description": "Handles user requests"})
        g.nodes[2].config.merge({"label": "Return Result"})
        g.connections = [
            GraphConnection(source="1", target="2", id="e1-2"),
            GraphConnection(source="2", target="3", id="e2-3"),
        ]
        return g
