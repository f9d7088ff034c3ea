# subburn/parsers/ffmpeg_progress.py
import re

# ffmpeg's -progress output reports out_time_ms in microseconds despite the name;
# newer builds also print the same value as out_time_us.
PROGRESS_KEYS = ("out_time_ms", "out_time_us")

_KEY_VALUE = re.compile(r"^\s*([A-Za-z0-9_]+)\s*=(.*)$")


def split_key_value(line: str) -> tuple[str, str] | None:
    if m := _KEY_VALUE.match(line):
        return m.group(1), m.group(2).strip()
    return None


def is_progress_field(line: str) -> bool:
    """True for any line of the -progress block (frame=, fps=, progress=, ...)."""
    kv = split_key_value(line)
    return kv is not None and " " not in kv[1]


def parse_progress_line(line: str) -> int | None:
    """Return elapsed output time in microseconds, or None for any other line."""
    if not (kv := split_key_value(line)):
        return None
    key, value = kv
    if key not in PROGRESS_KEYS:
        return None
    # N/A and the negative values ffmpeg prints before the first frame are skipped
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def microseconds_to_seconds(us: int) -> int:
    return us // 1_000_000
