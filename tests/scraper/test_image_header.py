"""Tests for JPEG/PNG dimension sniffing."""
import struct

from app.scraper.image_header import PNG_SIGNATURE, sniff_dimensions


def make_png(width: int, height: int) -> bytes:
    ihdr = struct.pack(">II", width, height) + b"\x08\x06\x00\x00\x00"
    return PNG_SIGNATURE + struct.pack(">I", 13) + b"IHDR" + ihdr + b"\x00\x00\x00\x00"


def make_jpeg(width: int, height: int, sof: int = 0xC0) -> bytes:
    app0 = b"\xff\xe0" + struct.pack(">H", 16) + b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    frame = b"\xff" + bytes([sof]) + struct.pack(">HBHHB", 17, 8, height, width, 3)
    frame += b"\x01\x22\x00\x02\x11\x01\x03\x11\x01"
    return b"\xff\xd8" + app0 + frame + b"\xff\xda\x00\x08" + b"\x00" * 6 + b"\xff\xd9"


def test_png_dimensions():
    assert sniff_dimensions(make_png(640, 480), "image/png") == (640, 480)


def test_png_large_dimensions_are_unsigned():
    assert sniff_dimensions(make_png(3_000_000_000, 2), "image/png") == (3_000_000_000, 2)


def test_png_truncated_returns_none():
    assert sniff_dimensions(make_png(640, 480)[:20], "image/png") is None


def test_png_bad_signature_returns_none():
    data = b"\x89PNX" + make_png(640, 480)[4:]
    assert sniff_dimensions(data, "image/png") is None


def test_jpeg_sof0_dimensions():
    assert sniff_dimensions(make_jpeg(1920, 1080), "image/jpeg") == (1920, 1080)


def test_jpeg_sof1_dimensions():
    """Extended sequential frames are read the same way as baseline."""
    assert sniff_dimensions(make_jpeg(300, 200, sof=0xC1), "image/jpg") == (300, 200)


def test_jpeg_progressive_dimensions():
    assert sniff_dimensions(make_jpeg(1024, 768, sof=0xC2), "image/jpeg; charset=binary") == (1024, 768)


def test_jpeg_truncated_inside_frame_returns_none():
    data = make_jpeg(1920, 1080)
    sof_at = data.index(b"\xff\xc0")
    assert sniff_dimensions(data[: sof_at + 6], "image/jpeg") is None


def test_jpeg_missing_marker_stops_scan():
    """A non-0xFF byte where a marker should be ends the scan."""
    data = bytearray(make_jpeg(800, 600))
    data[2] = 0x00
    assert sniff_dimensions(bytes(data), "image/jpeg") is None


def test_jpeg_without_frame_returns_none():
    assert sniff_dimensions(b"\xff\xd8\xff\xd9", "image/jpeg") is None


def test_mime_type_selects_parser():
    """PNG bytes declared as JPEG are not guessed."""
    assert sniff_dimensions(make_png(10, 10), "image/jpeg") is None


def test_unsupported_types_return_none():
    assert sniff_dimensions(make_png(10, 10), "image/gif") is None
    assert sniff_dimensions(make_png(10, 10), None) is None
    assert sniff_dimensions(b"", "image/png") is None
