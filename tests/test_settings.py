"""User settings persistence."""

import json

from flowstudio.core.settings import DEFAULTS, Settings


def test_defaults_when_file_missing(tmp_path):
    s = Settings(tmp_path / "settings.json")
    assert s.to_dict() == DEFAULTS


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    s = Settings(path)
    s.snap_to_grid = False
    s.grid_size = 20
    s.last_flow_path = "/tmp/a.flow.json"
    s.save()

    again = Settings(path)
    assert again.snap_to_grid is False
    assert again.grid_size == 20
    assert again.last_flow_path == "/tmp/a.flow.json"
    assert again.drop_offset_x == -300.0


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"background_gap": 20}))
    s = Settings(path)
    assert s.background_gap == 20
    assert s.grid_size == 15


def test_corrupt_file_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert Settings(path).to_dict() == DEFAULTS
    assert "Ignoring unreadable settings" in caplog.text


def test_bad_value_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"snap_to_grid": False, "grid_size": "wide"}))
    assert Settings(path).to_dict() == DEFAULTS


def test_non_object_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]")
    assert Settings(path).to_dict() == DEFAULTS
