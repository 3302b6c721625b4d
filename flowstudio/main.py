#!/usr/bin/env python3
"""FlowStudio - visual editor for agent automation flows.

Compose a flow from trigger, agent, LLM, condition, tool and output nodes,
wire them on a canvas and save the result as a flow document.
Built with PySide6.

Usage:
    python -m flowstudio.main [FLOW_FILE] [--debug]
    python main.py [FLOW_FILE] [--debug]        # from project root
"""
import argparse
import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

# Allow running as a script (python flowstudio/main.py) in addition to
# running as a module (python -m flowstudio.main).
if not __package__:
    _parent = str(Path(__file__).resolve().parent.parent)
    if _parent not in sys.path:
        sys.path.insert(0, _parent)
    __package__ = "flowstudio"

logger = logging.getLogger("flowstudio")


def initial_model(flow_path, settings):
    """Seed graph, or the flow at `flow_path` / the last opened flow.

    Returns (model, path actually loaded or None).  A corrupt or missing
    file falls back to the seed graph.
    """
    from .graph_editor.graph_model import GraphModel
    from .graph_editor.serializer import DocumentError
    from .ops.flow_io import load_flow

    model = GraphModel.make_default()
    path = flow_path or settings.last_flow_path
    if not path:
        return model, None
    try:
        load_flow(model, path)
    except (DocumentError, OSError) as e:
        logger.warning("Starting from the default flow; could not open %s: %s", path, e)
        return model, None
    return model, path


def main(argv=None):
    parser = argparse.ArgumentParser(description='FlowStudio - flow editor')
    parser.add_argument('flow', nargs='?', default=None,
                        help='Flow file (.flow.json) to open')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    from .core.settings import Settings
    settings = Settings()
    model, path = initial_model(args.flow, settings)

    app = QApplication(sys.argv)
    app.setStyle('Fusion')

    # Import here so the model layer loads without Qt widgets
    from .graph_editor.graph_editor_window import GraphEditorWindow
    window = GraphEditorWindow(model, settings, flow_path=path)
    window.show()

    sys.exit(app.exec())


if __name__ == '__main__':
    main()
