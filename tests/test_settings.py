from __future__ import annotations

import json
from pathlib import Path

from subburn.utils.settings import DEFAULT_SETTINGS, encode_options_from, load_settings, save_settings


def test_first_run_writes_defaults(tmp_path: Path) -> None:
    path = tmp_path / "subburn_settings.json"

    settings = load_settings(path)

    assert settings == DEFAULT_SETTINGS
    assert json.loads(path.read_text()) == DEFAULT_SETTINGS


def test_saved_values_override_defaults(tmp_path: Path) -> None:
    path = tmp_path / "subburn_settings.json"
    save_settings({"crf": 23, "preset": "fast"}, path)

    settings = load_settings(path)

    assert settings["crf"] == 23
    assert settings["preset"] == "fast"
    assert settings["ffmpeg_path"] == "ffmpeg"


def test_broken_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "subburn_settings.json"
    path.write_text("{not json")

    assert load_settings(path) == DEFAULT_SETTINGS


def test_encode_options_from_settings() -> None:
    options = encode_options_from({**DEFAULT_SETTINGS, "crf": "20", "preset": "", "video_codec": "libx265"})

    assert options.crf == 20
    assert options.preset == "slow"
    assert options.video_codec == "libx265"
    assert options.audio_codec == "copy"
    assert options.container_ext == ".mp4"
