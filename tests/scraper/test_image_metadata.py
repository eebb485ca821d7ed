"""Tests for image metadata resolution and quality tiers."""
import struct

import httpx
import pytest

from app.schemas.image import ImageQuality
from app.scraper.image_header import PNG_SIGNATURE
from app.scraper.image_metadata import classify_quality, resolve_metadata

IMAGE_URL = "https://cdn.example.com/img/photo.png"


def make_png(width: int, height: int) -> bytes:
    ihdr = struct.pack(">II", width, height) + b"\x08\x06\x00\x00\x00"
    return PNG_SIGNATURE + struct.pack(">I", 13) + b"IHDR" + ihdr + b"\x00\x00\x00\x00"


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_quality_high_by_resolution():
    """6MB at 2000x1200 is ~2.5 bytes/pixel but exceeds 1920x1080."""
    assert classify_quality(6 * 1000 * 1000, 2000, 1200) == ImageQuality.HIGH


def test_quality_high_by_bytes_per_pixel():
    assert classify_quality(400_000, 300, 300) == ImageQuality.HIGH


def test_quality_medium():
    assert classify_quality(100_000, 300, 200) == ImageQuality.MEDIUM
    assert classify_quality(50_000, 1000, 700) == ImageQuality.MEDIUM


def test_quality_low():
    assert classify_quality(50_000, 500, 500) == ImageQuality.LOW


def test_quality_boundaries_are_exclusive():
    assert classify_quality(3 * 100 * 100, 100, 100) == ImageQuality.MEDIUM
    assert classify_quality(100 * 100, 100, 100) == ImageQuality.LOW
    assert classify_quality(10, 1920, 1081) == ImageQuality.MEDIUM


def test_quality_requires_dimensions_and_size():
    assert classify_quality(5_000_000, None, None) is None
    assert classify_quality(None, 2000, 2000) is None


@pytest.mark.asyncio
async def test_resolve_png_metadata():
    body = make_png(1000, 800)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(
                200, headers={"content-length": "3000000", "content-type": "image/png"}
            )
        return httpx.Response(200, content=body, headers={"content-type": "image/png"})

    async with mock_client(handler) as client:
        meta = await resolve_metadata(IMAGE_URL, client)

    assert meta.size == 3_000_000
    assert meta.type == "image/png"
    assert (meta.width, meta.height) == (1000, 800)
    assert meta.quality == ImageQuality.HIGH


@pytest.mark.asyncio
async def test_resolve_skips_body_for_unsniffable_types():
    methods = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return httpx.Response(
            200, headers={"content-length": "2048", "content-type": "image/gif"}
        )

    async with mock_client(handler) as client:
        meta = await resolve_metadata("https://example.com/anim.gif", client)

    assert methods == ["HEAD"]
    assert meta.size == 2048
    assert meta.type == "image/gif"
    assert meta.width is None
    assert meta.quality is None


@pytest.mark.asyncio
async def test_resolve_head_failure_returns_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        meta = await resolve_metadata(IMAGE_URL, client)

    assert meta.size is None
    assert meta.type is None
    assert meta.quality is None


@pytest.mark.asyncio
async def test_resolve_head_error_status_returns_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    async with mock_client(handler) as client:
        meta = await resolve_metadata(IMAGE_URL, client)

    assert meta.type is None
    assert meta.width is None


@pytest.mark.asyncio
async def test_resolve_body_timeout_keeps_head_fields():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(
                200, headers={"content-length": "1234", "content-type": "image/jpeg"}
            )
        raise httpx.ReadTimeout("too slow", request=request)

    async with mock_client(handler) as client:
        meta = await resolve_metadata("https://example.com/a.jpg", client)

    assert meta.size == 1234
    assert meta.type == "image/jpeg"
    assert meta.width is None
    assert meta.quality is None


@pytest.mark.asyncio
async def test_resolve_corrupt_body_leaves_dimensions_unset():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(200, headers={"content-type": "image/png"})
        return httpx.Response(200, content=b"<html>not an image</html>")

    async with mock_client(handler) as client:
        meta = await resolve_metadata(IMAGE_URL, client)

    assert meta.type == "image/png"
    assert meta.width is None
    assert meta.height is None


@pytest.mark.asyncio
async def test_resolve_invalid_content_length_is_ignored():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(
                200, headers={"content-length": "lots", "content-type": "image/png"}
            )
        return httpx.Response(200, content=make_png(10, 10))

    async with mock_client(handler) as client:
        meta = await resolve_metadata(IMAGE_URL, client)

    assert meta.size is None
    assert (meta.width, meta.height) == (10, 10)
    assert meta.quality is None
