"""Flow graph editor package.

Public surface:
  GraphModel              – data model (nodes + connections)
  GraphNode, GraphConnection, Graph  – model primitives
  NodeKind, PortDef       – node catalogue
  CanvasController        – headless canvas interaction logic
  PropertyInspector       – selected-node config editing
  serialize, deserialize  – flow document codec

The Qt widgets (NodeGraphCanvas, GraphEditorWindow) are imported from their
own modules so the model layer loads without a display.
"""

from .node_types import NodeKind, PortDef, describe, default_config
from .graph_model import GraphModel, GraphNode, GraphConnection, Graph
from .controller import CanvasController, InteractionState
from .inspector import PropertyInspector
from .palette import PALETTE, DropTag
from .serializer import DocumentError, serialize, deserialize

__all__ = [
    "NodeKind", "PortDef", "describe", "default_config",
    "GraphModel", "GraphNode", "GraphConnection", "Graph",
    "CanvasController", "InteractionState", "PropertyInspector",
    "PALETTE", "DropTag", "DocumentError", "serialize", "deserialize",
]
