"""Image extraction for a single page: fetch, harvest, dedup, resolve metadata."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import httpx
from bs4 import BeautifulSoup

from app.config import settings
from app.schemas.image import ResolvedImage
from app.scraper.dedup import (
    compute_content_hash,
    derive_filename,
    has_non_image_extension,
    normalize_url,
)
from app.scraper.http_client import fetch_page, new_client
from app.scraper.image_extractor import harvest_candidates, harvest_fallback, iter_image_urls
from app.scraper.image_metadata import ImageMetadata, resolve_metadata

logger = logging.getLogger(__name__)

# An entry at least this wide (exclusive) is not replaced by a duplicate
GOOD_ENOUGH_WIDTH = 250


class PageFetchError(Exception):
    """Raised when the page to scrape cannot be fetched."""

    def __init__(
        self,
        url: str,
        reason: str,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason
        self.status_code = status_code
        self.timed_out = timed_out


def is_good_enough(image: ResolvedImage) -> bool:
    return image.width is not None and image.width > GOOD_ENOUGH_WIDTH


@dataclass
class _Entry:
    image: ResolvedImage
    alternates: list[str] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)


class ImageIndex:
    """Images keyed by content hash, in first-discovery order.

    A later candidate with an existing key never takes the slot directly.  It
    is dropped when the stored image is already wider than
    ``GOOD_ENOUGH_WIDTH``, otherwise it is kept as an alternate that metadata
    resolution may promote.
    """

    def __init__(self, max_alternates: int | None = None) -> None:
        if max_alternates is None:
            max_alternates = settings.MAX_ALTERNATES_PER_IMAGE
        self.max_alternates = max_alternates
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def offer(self, url: str) -> bool:
        """Add ``url``; True if it opened a new slot."""
        key = compute_content_hash(url)
        entry = self._entries.get(key)
        normalized = normalize_url(url)
        if entry is None:
            image = ResolvedImage(url=url, filename=derive_filename(url))
            self._entries[key] = _Entry(image=image, seen={normalized})
            return True
        if is_good_enough(entry.image):
            return False
        if normalized in entry.seen or len(entry.alternates) >= self.max_alternates:
            return False
        entry.seen.add(normalized)
        entry.alternates.append(url)
        return False

    def get(self, key: str) -> ResolvedImage | None:
        entry = self._entries.get(key)
        return entry.image if entry else None

    def entries(self) -> list[_Entry]:
        return list(self._entries.values())

    def images(self) -> list[ResolvedImage]:
        return [entry.image for entry in self._entries.values()]


def _collect(index: ImageIndex, candidates: Iterable[str], page_url: str) -> int:
    count = 0
    for url in iter_image_urls(candidates, page_url):
        if has_non_image_extension(url):
            continue
        count += 1
        index.offer(url)
    return count


def _with_metadata(url: str, meta: ImageMetadata) -> ResolvedImage:
    return ResolvedImage(
        url=url,
        filename=derive_filename(url),
        size=meta.size,
        width=meta.width,
        height=meta.height,
        type=meta.type,
        quality=meta.quality,
    )


async def _resolve_entry(
    entry: _Entry, client: httpx.AsyncClient, semaphore: asyncio.Semaphore
) -> None:
    async with semaphore:
        meta = await resolve_metadata(entry.image.url, client)
    entry.image = _with_metadata(entry.image.url, meta)
    if is_good_enough(entry.image):
        return

    for alternate in entry.alternates:
        async with semaphore:
            meta = await resolve_metadata(alternate, client)
        if meta.width is not None and meta.width > GOOD_ENOUGH_WIDTH:
            logger.debug("Preferring %s over %s", alternate, entry.image.url)
            entry.image = _with_metadata(alternate, meta)
            return


async def resolve_all(
    index: ImageIndex,
    client: httpx.AsyncClient,
    *,
    concurrency: int | None = None,
) -> None:
    """Resolve metadata for every entry concurrently, in place."""
    semaphore = asyncio.Semaphore(concurrency or settings.METADATA_CONCURRENCY)
    await asyncio.gather(
        *(_resolve_entry(entry, client, semaphore) for entry in index.entries())
    )


async def _fetch_html(client: httpx.AsyncClient, page_url: str) -> str:
    try:
        return await fetch_page(client, page_url, timeout=settings.SCRAPE_PAGE_TIMEOUT)
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise PageFetchError(
            page_url, f"HTTP error! status: {status}", status_code=status
        ) from e
    except httpx.TimeoutException as e:
        raise PageFetchError(page_url, "Timed out fetching page", timed_out=True) from e
    except (httpx.RequestError, httpx.InvalidURL) as e:
        raise PageFetchError(page_url, f"Could not fetch page: {e}") from e


async def _extract(
    page_url: str, client: httpx.AsyncClient, resolve: bool
) -> list[ResolvedImage]:
    try:
        html = await _fetch_html(client, page_url)
    except PageFetchError as e:
        logger.warning("Scrape failed for %s: %s", page_url, e.reason)
        raise

    soup = BeautifulSoup(html, "lxml")
    index = ImageIndex()
    candidates = _collect(index, harvest_candidates(soup), page_url)

    if len(index) < settings.SCRAPE_FALLBACK_THRESHOLD:
        logger.info("Low image count on %s, trying aggressive scraping", page_url)
        candidates += _collect(index, harvest_fallback(soup), page_url)

    logger.info(
        "Found %d image candidates on %s, deduplicated to %d unique images",
        candidates, page_url, len(index),
    )

    if resolve and len(index):
        await resolve_all(index, client)
    return index.images()


async def extract_images(
    page_url: str,
    *,
    client: httpx.AsyncClient | None = None,
    resolve: bool | None = None,
) -> list[ResolvedImage]:
    """Scrape ``page_url`` and return its unique images in discovery order.

    Only page fetch failures are fatal (``PageFetchError``); bad candidates
    are dropped and metadata failures leave optional fields unset.
    """
    if resolve is None:
        resolve = settings.RESOLVE_METADATA
    if client is None:
        async with new_client() as own_client:
            return await _extract(page_url, own_client, resolve)
    return await _extract(page_url, client, resolve)
