"""Size, type, dimensions and quality tier for a single image URL.

HEAD supplies ``Content-Length``/``Content-Type``; JPEG and PNG bodies are
then fetched and sniffed for pixel dimensions.  Network failures only leave
fields unset; ``resolve_metadata`` never raises ``httpx`` errors.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.config import settings
from app.scraper.http_client import fetch_bytes, fetch_head
from app.scraper.image_header import sniff_dimensions
from app.schemas.image import ImageQuality

logger = logging.getLogger(__name__)

_SNIFFABLE_TYPES = ("jpeg", "jpg", "png")


@dataclass
class ImageMetadata:
    size: int | None = None
    width: int | None = None
    height: int | None = None
    type: str | None = None
    quality: ImageQuality | None = None


def classify_quality(
    size: int | None, width: int | None, height: int | None
) -> ImageQuality | None:
    """Quality tier from bytes-per-pixel and resolution; ``None`` without all three."""
    if not size or not width or not height:
        return None
    bytes_per_pixel = size / (width * height)
    if bytes_per_pixel > 3 or (width > 1920 and height > 1080):
        return ImageQuality.HIGH
    if bytes_per_pixel > 1 or (width > 800 and height > 600):
        return ImageQuality.MEDIUM
    return ImageQuality.LOW


def _parse_content_length(value: str | None) -> int | None:
    if not value:
        return None
    try:
        size = int(value.strip())
    except ValueError:
        return None
    return size if size >= 0 else None


async def resolve_metadata(
    url: str,
    client: httpx.AsyncClient,
    *,
    timeout: float | None = None,
) -> ImageMetadata:
    timeout = timeout or settings.METADATA_TIMEOUT
    meta = ImageMetadata()

    try:
        headers = await fetch_head(client, url, timeout=timeout)
        meta.size = _parse_content_length(headers.get("content-length"))
        meta.type = headers.get("content-type") or None
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.debug("HEAD failed for %s: %s", url, e)

    if meta.type and any(t in meta.type.lower() for t in _SNIFFABLE_TYPES):
        try:
            data = await fetch_bytes(client, url, timeout=timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Could not fetch image body for %s: %s", url, e)
        else:
            dimensions = sniff_dimensions(data, meta.type)
            if dimensions:
                meta.width, meta.height = dimensions

    meta.quality = classify_quality(meta.size, meta.width, meta.height)
    return meta
