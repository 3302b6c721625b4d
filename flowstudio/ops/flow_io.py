"""Flow save/load operations, plus export of the current snapshot."""

import logging

from ..graph_editor.graph_model import GraphModel
from ..graph_editor.serializer import DocumentError, dumps, loads

logger = logging.getLogger(__name__)

FILE_FILTER = "Flow JSON (*.flow.json *.json)"


def save_flow(model: GraphModel, path: str):
    """Write the model's current snapshot to a JSON file.

    Raises on I/O error.
    """
    text = dumps(model.snapshot())
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)
    logger.info("Saved flow %r to %s", model.name, path)


def read_flow(path: str):
    """Parse a flow file into a Graph without touching any model.

    Raises DocumentError for a corrupt document, OSError for I/O problems.
    """
    with open(path, encoding='utf-8') as f:
        text = f.read()
    return loads(text)


def load_flow(model: GraphModel, path: str):
    """Replace the model's graph with the one stored at `path`.

    The file is parsed and validated completely before the model is touched,
    so on DocumentError / OSError the model still holds its last good graph.
    Returns the loaded Graph.
    """
    try:
        graph = read_flow(path)
    except DocumentError as e:
        logger.warning("Flow file %s is corrupted: %s", path, e)
        raise
    model.replace(graph)
    logger.info("Loaded flow %r from %s (%d nodes, %d connections)",
                graph.name, path, len(graph.nodes), len(graph.connections))
    return graph
