# subburn/utils/paths.py
from pathlib import Path

VIDEO_EXT = ".mp4"
SUBTITLE_EXT = ".ass"


def escape_filter_path(path: str) -> str:
    """Make ``path`` usable as a single filter-graph argument value.

    Separators are normalized to '/' first; ':' separates filter options, so
    every colon (drive letters included) is escaped as '\\:'.
    """
    return path.replace("\\", "/").replace(":", "\\:")


def unescape_filter_path(escaped: str) -> str:
    return escaped.replace("\\:", ":")


def subtitle_filter(subtitle_path: str) -> str:
    return f"ass='{escape_filter_path(subtitle_path)}'"


def ensure_extension(path: str, ext: str = VIDEO_EXT) -> str:
    if path.lower().endswith(ext.lower()):
        return path
    return path + ext


def trim_path(path: str, keep: int = 40) -> str:
    if len(path) < keep:
        return path
    return "..." + path[-keep:]


def default_log_path(output_path: str, log_dir: Path | None = None) -> Path:
    out = Path(output_path)
    return (log_dir or out.parent) / f"{out.stem}_ffmpeg.log"
