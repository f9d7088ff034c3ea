# subburn/parsers/mp4_header.py
"""
Read the total duration of an MP4 file from its movie header.

Only box headers are read while walking the file; the ``mdat`` payload is
seeked over, never read. The duration comes from ``moov/mvhd``:

    mvhd v0:  version(1) flags(3) ctime(4) mtime(4) timescale(4) duration(4)
    mvhd v1:  version(1) flags(3) ctime(8) mtime(8) timescale(4) duration(8)
"""
import logging
import os
import struct
from pathlib import Path
from typing import BinaryIO, Iterator

from ..models.job import MediaDuration

logger = logging.getLogger(__name__)

_TOP_LEVEL_BOXES = {
    b"ftyp", b"styp", b"moov", b"mdat", b"free", b"skip", b"wide",
    b"pdin", b"uuid", b"meta", b"moof", b"mfra", b"sidx",
}

_UNKNOWN_DURATION = {0xFFFFFFFF, 0xFFFFFFFFFFFFFFFF}


class ProbeError(Exception):
    """Base class for duration probe failures."""


class MediaNotFound(ProbeError):
    pass


class MalformedContainer(ProbeError):
    pass


class UnsupportedContainer(ProbeError):
    pass


def _read_exact(f: BinaryIO, n: int) -> bytes:
    data = f.read(n)
    if len(data) != n:
        raise MalformedContainer(f"unexpected end of file (wanted {n} bytes, got {len(data)})")
    return data


def _iter_boxes(f: BinaryIO, start: int, end: int) -> Iterator[tuple[bytes, int, int]]:
    """Yield ``(type, payload_offset, box_end)`` for boxes in ``[start, end)``."""
    pos = start
    while pos < end:
        if end - pos < 8:
            raise MalformedContainer(f"truncated box header at offset {pos}")
        f.seek(pos)
        size, box_type = struct.unpack(">I4s", _read_exact(f, 8))
        header = 8
        if size == 1:
            (size,) = struct.unpack(">Q", _read_exact(f, 8))
            header = 16
        elif size == 0:
            size = end - pos
        if size < header:
            raise MalformedContainer(f"box {box_type!r} at offset {pos} has invalid size {size}")
        if pos + size > end:
            raise MalformedContainer(f"box {box_type!r} at offset {pos} overruns its parent")
        yield box_type, pos + header, pos + size
        pos += size


def _parse_mvhd(f: BinaryIO, offset: int, end: int) -> MediaDuration:
    f.seek(offset)
    if end - offset < 4:
        raise MalformedContainer("mvhd box is truncated")
    version = _read_exact(f, 4)[0]
    if version == 1:
        if end - offset < 4 + 28:
            raise MalformedContainer("mvhd box is truncated")
        _, _, timescale, duration = struct.unpack(">QQIQ", _read_exact(f, 28))
    elif version == 0:
        if end - offset < 4 + 16:
            raise MalformedContainer("mvhd box is truncated")
        _, _, timescale, duration = struct.unpack(">IIII", _read_exact(f, 16))
    else:
        raise UnsupportedContainer(f"unknown mvhd version {version}")

    if timescale == 0:
        raise UnsupportedContainer("movie header has a zero timescale")
    if duration in _UNKNOWN_DURATION:
        raise UnsupportedContainer("movie header does not declare a duration")
    return MediaDuration(duration * 1000 // timescale)


def probe_duration(path: str | Path) -> MediaDuration:
    """Return the total duration of the MP4 at ``path``.

    Raises MediaNotFound, MalformedContainer or UnsupportedContainer.
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        raise MediaNotFound(f"cannot open {path}: {e.strerror or e}") from e

    with f:
        file_size = os.fstat(f.fileno()).st_size
        if file_size < 8:
            raise MalformedContainer(f"{path} is too small to be an MP4 file")

        moov = None
        for index, (box_type, payload, box_end) in enumerate(_iter_boxes(f, 0, file_size)):
            if index == 0 and box_type not in _TOP_LEVEL_BOXES:
                raise MalformedContainer(f"{path} does not look like an MP4 file (first box {box_type!r})")
            if box_type == b"moov":
                moov = (payload, box_end)
                break

        if moov is None:
            raise UnsupportedContainer(f"{path} has no movie header (moov)")

        for box_type, payload, box_end in _iter_boxes(f, *moov):
            if box_type == b"mvhd":
                duration = _parse_mvhd(f, payload, box_end)
                logger.debug("probed %s: %d ms", path, duration.milliseconds)
                return duration

    raise UnsupportedContainer(f"{path} has no mvhd box")
