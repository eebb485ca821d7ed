"""Pixel dimensions from raw JPEG/PNG bytes, without decoding the image.

Only the header structures are read: the first Start-Of-Frame segment for
JPEG and the fixed-offset IHDR chunk for PNG.  Anything else, or any
malformed/truncated buffer, yields ``None``.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# SOF0 (baseline) .. SOF3 (lossless)
_JPEG_SOF_MARKERS = range(0xC0, 0xC4)


def _jpeg_dimensions(data: bytes) -> tuple[int, int] | None:
    offset = 2
    while offset < len(data):
        if data[offset] != 0xFF:
            break
        marker = data[offset + 1]
        if marker in _JPEG_SOF_MARKERS:
            height = (data[offset + 5] << 8) | data[offset + 6]
            width = (data[offset + 7] << 8) | data[offset + 8]
            return width, height
        segment_length = (data[offset + 2] << 8) | data[offset + 3]
        offset += 2 + segment_length
    return None


def _png_dimensions(data: bytes) -> tuple[int, int] | None:
    if len(data) < 24 or not data.startswith(PNG_SIGNATURE):
        return None
    width = int.from_bytes(data[16:20], "big")
    height = int.from_bytes(data[20:24], "big")
    return width, height


def sniff_dimensions(data: bytes, mime_type: str | None) -> tuple[int, int] | None:
    """Return ``(width, height)`` for JPEG/PNG bytes, or ``None``.

    The declared MIME type picks the parser; the bytes are not used to guess
    the format.  Never raises.
    """
    if not data or not mime_type:
        return None
    mime = mime_type.lower()
    try:
        if "jpeg" in mime or "jpg" in mime:
            return _jpeg_dimensions(data)
        if "png" in mime:
            return _png_dimensions(data)
    except (IndexError, ValueError) as e:
        logger.debug("Malformed %s header (%d bytes): %s", mime, len(data), e)
    return None
