"""User-facing settings - persisted to ~/.config/flowstudio/settings.json.

Covers canvas ergonomics (grid snap, drop offset, background dot gap) and
the last flow file opened, which the window reopens on start.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / '.config' / 'flowstudio' / 'settings.json'

DEFAULTS = {
    'snap_to_grid': True,
    'grid_size': 15,
    # Added to the drop point.  The default puts the node up and to the left
    # of the cursor; (-90, -32), half the node size, centres it under the cursor.
    'drop_offset_x': -300.0,
    'drop_offset_y': -50.0,
    'background_gap': 12,
    'last_flow_path': '',   # empty string = start from the seed graph
}


class Settings:
    def __init__(self, path=None):
        self.path = Path(path) if path else CONFIG_PATH
        self._reset()
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                d = json.load(f)
            self.snap_to_grid = bool(d.get('snap_to_grid', self.snap_to_grid))
            self.grid_size = int(d.get('grid_size', self.grid_size))
            self.drop_offset_x = float(d.get('drop_offset_x', self.drop_offset_x))
            self.drop_offset_y = float(d.get('drop_offset_y', self.drop_offset_y))
            self.background_gap = int(d.get('background_gap', self.background_gap))
            self.last_flow_path = str(d.get('last_flow_path', self.last_flow_path))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            self._reset()

    def _reset(self):
        self.snap_to_grid: bool = DEFAULTS['snap_to_grid']
        self.grid_size: int = DEFAULTS['grid_size']
        self.drop_offset_x = DEFAULTS['drop_offset_x']
        self.drop_offset_y = DEFAULTS['drop_offset_y']
        self.background_gap = DEFAULTS['background_gap']
        self.last_flow_path = DEFAULTS['last_flow_path']

    def to_dict(self) -> dict:
        return {
            'snap_to_grid': self.snap_to_grid,
            'grid_size': self.grid_size,
            'drop_offset_x': self.drop_offset_x,
            'drop_offset_y': self.drop_offset_y,
            'background_gap': self.background_gap,
            'last_flow_path': self.last_flow_path,
        }

    def save(self):
        """Persist current settings to the user config file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning("Could not write settings to %s: %s", self.path, e)
