# subburn/utils/settings.py
import json
import logging
from pathlib import Path

from ..workers.renderer import EncodeOptions

logger = logging.getLogger(__name__)

# Top directory = folder that contains the `subburn/` package
def _top_dir() -> Path:
    # This file is subburn/utils/settings.py → parents[2] is the folder above subburn/
    return Path(__file__).resolve().parents[2]

SETTINGS_FILENAME = "subburn_settings.json"
APP_SETTINGS_FILE = _top_dir() / SETTINGS_FILENAME

DEFAULT_SETTINGS = {
    "ffmpeg_path": "ffmpeg",
    "crf": 18,
    "preset": "slow",
    "video_codec": "libx264",
    "write_log": True,                 # keep <output>_ffmpeg.log next to the render
    "last_dir": str(Path.home()),
}

PRESETS = ["ultrafast", "superfast", "veryfast", "faster", "fast",
           "medium", "slow", "slower", "veryslow"]

def load_settings(path: Path | None = None) -> dict:
    p = path or APP_SETTINGS_FILE
    if p.exists():
        try:
            data = json.loads(p.read_text())
            return {**DEFAULT_SETTINGS, **data}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", p, e)
    # First run or broken file → write defaults so the file exists
    save_settings(DEFAULT_SETTINGS, p)
    return DEFAULT_SETTINGS.copy()

def save_settings(data: dict, path: Path | None = None) -> None:
    p = path or APP_SETTINGS_FILE
    try:
        p.write_text(json.dumps(data, indent=2))
    except OSError:
        # Last resort fallback to CWD
        fallback = Path(SETTINGS_FILENAME)
        try:
            fallback.write_text(json.dumps(data, indent=2))
        except OSError as e:
            logger.warning("Could not save settings to %s or %s: %s", p, fallback, e)

def encode_options_from(settings: dict) -> EncodeOptions:
    return EncodeOptions(
        crf=int(settings.get("crf", DEFAULT_SETTINGS["crf"])),
        preset=settings.get("preset") or DEFAULT_SETTINGS["preset"],
        video_codec=settings.get("video_codec") or DEFAULT_SETTINGS["video_codec"],
    )
