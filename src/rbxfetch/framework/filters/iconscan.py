"""
Icon-scan filter: find an icon sheet embedded in a binary.

The upstream (typically the Studio executable) may embed many PNG images.
Every PNG in the stream is located by its signature and decoded with Pillow
to read its dimensions. An image qualifies as an icon sheet when its height
equals ``Size`` and its width is a multiple of ``Size`` (a horizontal strip of
square tiles). The first of the widest qualifying images is kept, so the scan
always runs to the end of the stream.

What is read from the filter is the selected PNG's encoded bytes.
"""

from __future__ import annotations

import io
import struct
from collections.abc import Iterator
from typing import Any

from PIL import Image, UnidentifiedImageError

from rbxfetch.core.errors import BadParamsError, ScanError
from rbxfetch.core.logging import get_logger
from rbxfetch.framework.filters.protocol import Filter, Params

logger = get_logger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

_CHUNK_HEADER = struct.Struct(">I4s")
_CHUNK_OVERHEAD = _CHUNK_HEADER.size + 4  # length + type + crc

READ_SIZE = 1 << 20
MAX_IMAGE_BYTES = 32 << 20


def png_end(data: bytes | bytearray, start: int) -> int | None:
    """Offset just past the ``IEND`` chunk of the PNG starting at *start*.

    Returns ``None`` if the chunk structure runs past the end of *data*.
    """
    pos = start + len(PNG_SIGNATURE)
    while pos + _CHUNK_OVERHEAD <= len(data):
        length, ctype = _CHUNK_HEADER.unpack_from(data, pos)
        pos += _CHUNK_OVERHEAD + length
        if pos > len(data):
            return None
        if ctype == b"IEND":
            return pos
    return None


def _decoded_size(encoded: bytes) -> tuple[int, int] | None:
    try:
        with Image.open(io.BytesIO(encoded), formats=["PNG"]) as img:
            img.load()
            return img.size
    except (Image.DecompressionBombError, UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None


def _fill(stream: Any, buf: bytearray, read_size: int) -> bool:
    chunk = stream.read(read_size)
    if not chunk:
        return False
    buf += chunk
    return True


def embedded_pngs(source: Any, read_size: int = READ_SIZE) -> Iterator[tuple[bytes, int, int]]:
    """Yield ``(encoded, width, height)`` for each decodable PNG in *source*.

    *source* is bytes or a readable binary stream. A stream is consumed in
    ``read_size`` chunks and only the current candidate is held in memory.
    A candidate whose chunks would run past ``MAX_IMAGE_BYTES`` is skipped.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    buf = bytearray()
    eof = False
    while True:
        pos = buf.find(PNG_SIGNATURE)
        if pos < 0:
            if eof:
                return
            # keep a tail that may hold the start of a split signature
            del buf[: max(len(buf) - len(PNG_SIGNATURE) + 1, 0)]
            eof = not _fill(source, buf, read_size)
            continue

        del buf[:pos]
        end = png_end(buf, 0)
        if end is None:
            if not eof and len(buf) < MAX_IMAGE_BYTES:
                eof = not _fill(source, buf, read_size)
            else:
                del buf[:1]
            continue

        encoded = bytes(buf[:end])
        size = _decoded_size(encoded)
        if size is None:
            del buf[:1]
            continue
        yield encoded, size[0], size[1]
        del buf[:end]


def select_icon_sheet(source: Any, size: int) -> bytes | None:
    """Encoded bytes of the first widest ``size``-tall sheet in *source*."""
    best: bytes | None = None
    best_width = 0
    for encoded, width, height in embedded_pngs(source):
        if height != size or width % size != 0:
            continue
        if best is None or width > best_width:
            best, best_width = encoded, width
    return best


class IconScanFilter(Filter):
    """Selects an icon sheet image from the upstream bytes."""

    kind = "iconscan"

    def __init__(self, source: Any = None, *, size: int):
        if size <= 0:
            raise BadParamsError(f"Size must be a positive integer, got {size}", invalid_params=["Size"])
        super().__init__(source)
        self.size = size

    @classmethod
    def new(cls, params: Params, source: Any) -> IconScanFilter:
        return cls(source, size=params.get_int("Size"))

    def _open(self) -> io.BytesIO:
        source = self._source
        if source is None:
            raise ScanError("iconscan filter has no upstream")
        try:
            sheet = select_icon_sheet(source, self.size)
        except Exception:
            if not getattr(source, "closed", False):
                source.close()
            raise
        source.close()

        if sheet is None:
            raise ScanError(f"no {self.size}px icon sheet found in {self.describe()}").with_context(size=self.size)
        logger.debug("iconscan.selected", source=self.describe(), bytes=len(sheet))
        return io.BytesIO(sheet)


__all__ = [
    "PNG_SIGNATURE",
    "READ_SIZE",
    "MAX_IMAGE_BYTES",
    "png_end",
    "embedded_pngs",
    "select_icon_sheet",
    "IconScanFilter",
]
