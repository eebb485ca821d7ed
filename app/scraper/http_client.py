from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

# User-Agent rotation pool
_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.2 Safari/605.1.15",
]

PAGE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

IMAGE_HEADERS = {
    "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
}


def _get_random_ua() -> str:
    return random.choice(_USER_AGENTS)


def new_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Client shared by every fetch of one extraction."""
    return httpx.AsyncClient(
        timeout=timeout or settings.SCRAPE_PAGE_TIMEOUT,
        follow_redirects=True,
        headers={"User-Agent": _get_random_ua()},
    )


async def _request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    max_retries: int = 1,
    extract: Callable[[httpx.Response], object],
) -> object:
    """Core request logic shared by the fetch helpers.

    ``max_retries`` counts attempts (at least one); the last failure is re-raised.
    """
    max_retries = max(1, max_retries)
    last_exc: Exception | None = None
    for attempt in range(max_retries):
        try:
            response = await client.request(
                method,
                url,
                headers=headers,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
            response.raise_for_status()
            return extract(response)
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            last_exc = e
            if attempt + 1 >= max_retries:
                break
            wait_time = 2**attempt + random.uniform(0, 1)
            logger.warning(
                "%s failed (attempt %d/%d) for %s: %s. Retrying in %.1fs",
                method, attempt + 1, max_retries, url, e, wait_time,
            )
            await asyncio.sleep(wait_time)

    raise last_exc  # type: ignore[misc]


async def fetch_page(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float | None = None,
    max_retries: int = 1,
) -> str:
    """GET an HTML page. Raises ``httpx.HTTPError`` on network failure or non-2xx."""
    return await _request_with_retry(  # type: ignore[return-value]
        client,
        "GET",
        url,
        headers=PAGE_HEADERS,
        timeout=timeout,
        max_retries=max_retries,
        extract=lambda r: r.text,
    )


async def fetch_head(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float | None = None,
) -> httpx.Headers:
    """HEAD an image URL and return its response headers."""
    return await _request_with_retry(  # type: ignore[return-value]
        client,
        "HEAD",
        url,
        headers=IMAGE_HEADERS,
        timeout=timeout,
        extract=lambda r: r.headers,
    )


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float | None = None,
) -> bytes:
    """GET an image URL and return the whole body."""
    return await _request_with_retry(  # type: ignore[return-value]
        client,
        "GET",
        url,
        headers=IMAGE_HEADERS,
        timeout=timeout,
        extract=lambda r: r.content,
    )


async def fetch_image(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float | None = None,
) -> httpx.Response:
    """GET an image URL and return the full response (body and headers)."""
    return await _request_with_retry(  # type: ignore[return-value]
        client,
        "GET",
        url,
        headers=IMAGE_HEADERS,
        timeout=timeout,
        extract=lambda r: r,
    )
