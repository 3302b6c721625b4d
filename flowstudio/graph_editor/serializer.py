"""Flow document serialisation.

Document format (version 1):

  {
    "version": 1,
    "name": "Untitled Flow",
    "enabled": true,
    "nodes": [
      {"id": "1", "kind": "trigger", "position": {"x": 250, "y": 50},
       "config": {"label": "Message Trigger", "triggerType": "user-message"}}
    ],
    "connections": [
      {"id": "e1-2", "source": "1", "target": "2"},
      {"id": "edge_…", "source": "4", "target": "5", "sourcePort": "true"}
    ]
  }

sourcePort / targetPort are written only for named ports.  version, name
and enabled are optional on read.

deserialize() validates everything the editor relies on — kinds, positions,
unique ids, endpoints that exist, ports that exist, no self-loops — and
raises DocumentError rather than returning a partially valid graph.
"""

from __future__ import annotations

import json
import math
import numbers

from .graph_model import Graph, GraphConnection, GraphNode
from .node_types import UnknownNodeKind, config_from_dict, describe, parse_kind

DOCUMENT_VERSION = 1


class DocumentError(ValueError):
    """The document is not a valid flow."""


# ---------------------------------------------------------------------------
# Serialise
# ---------------------------------------------------------------------------

def node_to_dict(node: GraphNode) -> dict:
    return {
        "id": node.id,
        "kind": node.kind.value,
        "position": {"x": node.x, "y": node.y},
        "config": node.config.to_dict(),
    }


def connection_to_dict(conn: GraphConnection) -> dict:
    d = {"id": conn.id, "source": conn.source, "target": conn.target}
    if conn.source_port is not None:
        d["sourcePort"] = conn.source_port
    if conn.target_port is not None:
        d["targetPort"] = conn.target_port
    return d


def serialize(graph: Graph) -> dict:
    return {
        "version": DOCUMENT_VERSION,
        "name": graph.name,
        "enabled": graph.enabled,
        "nodes": [node_to_dict(n) for n in graph.nodes],
        "connections": [connection_to_dict(c) for c in graph.connections],
    }


def dumps(graph: Graph) -> str:
    return json.dumps(serialize(graph), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Deserialise
# ---------------------------------------------------------------------------

def _require(d: dict, key: str, where: str):
    if key not in d:
        raise DocumentError(f"{where}: missing '{key}'")
    return d[key]


def _opt_str(d: dict, key: str, where: str):
    v = d.get(key)
    if v is not None and not isinstance(v, str):
        raise DocumentError(f"{where}: '{key}' must be a string")
    return v


def node_from_dict(d) -> GraphNode:
    if not isinstance(d, dict):
        raise DocumentError("node entry is not an object")
    node_id = _require(d, "id", "node")
    if not isinstance(node_id, str) or not node_id:
        raise DocumentError("node: 'id' must be a non-empty string")
    where = f"node {node_id!r}"

    try:
        kind = parse_kind(_require(d, "kind", where))
    except UnknownNodeKind as e:
        raise DocumentError(f"{where}: {e}") from None

    pos = _require(d, "position", where)
    if not isinstance(pos, dict):
        raise DocumentError(f"{where}: 'position' must be an object")
    x, y = pos.get("x"), pos.get("y")
    for v in (x, y):
        if isinstance(v, bool) or not isinstance(v, numbers.Real) or not math.isfinite(v):
            raise DocumentError(f"{where}: position must have finite numeric x and y")

    cfg = d.get("config", {})
    if not isinstance(cfg, dict):
        raise DocumentError(f"{where}: 'config' must be an object")

    return GraphNode(kind=kind, id=node_id, x=float(x), y=float(y),
                     config=config_from_dict(kind, cfg))


def connection_from_dict(d, nodes: dict) -> GraphConnection:
    if not isinstance(d, dict):
        raise DocumentError("connection entry is not an object")
    conn_id = _require(d, "id", "connection")
    if not isinstance(conn_id, str) or not conn_id:
        raise DocumentError("connection: 'id' must be a non-empty string")
    where = f"connection {conn_id!r}"

    source = _require(d, "source", where)
    target = _require(d, "target", where)
    if not isinstance(source, str) or not isinstance(target, str):
        raise DocumentError(f"{where}: source and target must be node ids")
    source_port = _opt_str(d, "sourcePort", where)
    target_port = _opt_str(d, "targetPort", where)

    src = nodes.get(source)
    dst = nodes.get(target)
    if src is None or dst is None:
        missing = source if src is None else target
        raise DocumentError(f"{where}: endpoint {missing!r} is not a node in this flow")
    if source == target:
        raise DocumentError(f"{where}: self-loop on {source!r}")
    if describe(src.kind).find_port(source_port, is_output=True) is None:
        raise DocumentError(f"{where}: {src.kind.value} node has no output port {source_port!r}")
    if describe(dst.kind).find_port(target_port, is_output=False) is None:
        raise DocumentError(f"{where}: {dst.kind.value} node has no input port {target_port!r}")

    return GraphConnection(source=source, target=target,
                           source_port=source_port, target_port=target_port,
                           id=conn_id)


def deserialize(doc) -> Graph:
    """Parse a document into a Graph.  Raises DocumentError."""
    if not isinstance(doc, dict):
        raise DocumentError("flow document must be an object")

    version = doc.get("version", DOCUMENT_VERSION)
    if version != DOCUMENT_VERSION:
        raise DocumentError(f"unsupported flow document version {version!r}")

    raw_nodes = doc.get("nodes", [])
    raw_conns = doc.get("connections", [])
    if not isinstance(raw_nodes, list) or not isinstance(raw_conns, list):
        raise DocumentError("'nodes' and 'connections' must be lists")

    nodes: dict[str, GraphNode] = {}
    for raw in raw_nodes:
        node = node_from_dict(raw)
        if node.id in nodes:
            raise DocumentError(f"duplicate node id {node.id!r}")
        nodes[node.id] = node

    conns: list[GraphConnection] = []
    seen: set = set()
    for raw in raw_conns:
        conn = connection_from_dict(raw, nodes)
        if conn.id in seen:
            raise DocumentError(f"duplicate connection id {conn.id!r}")
        seen.add(conn.id)
        conns.append(conn)

    name = doc.get("name", "Untitled Flow")
    enabled = doc.get("enabled", True)
    if not isinstance(name, str) or not isinstance(enabled, bool):
        raise DocumentError("'name' must be a string and 'enabled' a boolean")

    return Graph(nodes=tuple(nodes.values()), connections=tuple(conns),
                 name=name, enabled=enabled)


def loads(text: str) -> Graph:
    try:
        doc = json.loads(text)
    except ValueError as e:
        raise DocumentError(f"not valid JSON: {e}") from None
    return deserialize(doc)
