"""Execute intent: hand the current graph snapshot to an executor.

The editor does not run flows.  run_flow() only guarantees the executor
receives a complete, isolated snapshot, and refuses flows that could never
start (disabled, or no trigger node to start from).
"""

import logging
from typing import Callable

from ..graph_editor.graph_model import Graph, GraphModel
from ..graph_editor.node_types import NodeKind
from ..graph_editor.serializer import serialize

logger = logging.getLogger(__name__)


class FlowNotRunnable(Exception):
    """The flow cannot be handed to an executor as it stands."""


def start_nodes(graph: Graph) -> list:
    """Trigger nodes, in graph order — where execution begins."""
    return [n for n in graph.nodes if n.kind == NodeKind.TRIGGER]


def run_flow(model: GraphModel, executor: Callable):
    """Snapshot `model` and call executor(snapshot).

    Returns whatever the executor returns.  Raises FlowNotRunnable.
    """
    graph = model.snapshot()
    if not graph.enabled:
        raise FlowNotRunnable(f"flow {graph.name!r} is disabled")
    if not start_nodes(graph):
        raise FlowNotRunnable("no trigger node found")
    logger.info("Running flow %r (%d nodes, %d connections)",
                graph.name, len(graph.nodes), len(graph.connections))
    return executor(graph)


def execution_document(graph: Graph) -> dict:
    """The serialized graph with blank config values resolved to defaults."""
    doc = serialize(graph)
    for node, entry in zip(graph.nodes, doc["nodes"]):
        entry["config"] = node.config.resolved()
    return doc


def log_executor(graph: Graph) -> dict:
    """Default executor: logs the document an execution engine would get."""
    doc = execution_document(graph)
    logger.info("Execute flow document: %s", doc)
    return doc
