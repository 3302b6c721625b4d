#!/usr/bin/env python3
"""FlowStudio - visual editor for agent automation flows.

Usage:
    python main.py [FLOW_FILE] [--debug]        # from project root
    python -m flowstudio.main [FLOW_FILE] [--debug]
"""
import sys
from pathlib import Path

# Ensure the project root (this file's directory) is on sys.path so that
# `import flowstudio` works regardless of how the script is invoked.
_root = str(Path(__file__).resolve().parent)
if _root not in sys.path:
    sys.path.insert(0, _root)

from flowstudio.main import main


if __name__ == '__main__':
    main()
