"""Image candidate discovery from static HTML.

``harvest_candidates`` walks every source of image references on a page and
yields the raw strings as found in the markup.  A single image may be yielded
several times from different sources; deduplication happens downstream.
``iter_image_urls`` filters the raw stream and resolves it against the page URL.
"""
from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator
from typing import Any
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

SLIDER_IMAGE_SELECTOR = (
    '[class*="slider"] [class*="image-wrap"] img, '
    '[class*="slider"] img[class*="image-wrap"]'
)

LAZY_IMG_ATTRS = (
    "data-lazy-src", "data-original", "data-lazy", "data-img-src", "data-image-src",
)

IMAGE_CONTAINER_SELECTORS = (
    ".image", ".img", ".photo", ".picture", ".gallery", ".carousel",
    ".slider", ".banner", ".hero", ".thumbnail", ".avatar", ".logo",
    ".product-image", ".gallery-item", "[data-bg]", "[data-background]",
)
CONTAINER_DATA_ATTRS = ("data-bg", "data-background", "data-image", "data-img")

FALLBACK_ATTRS = (
    "src", "data-src", "data-lazy-src", "data-original", "data-img", "data-image",
)

IMAGE_LINK_EXTENSIONS = (
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp", ".tiff", ".ico", ".avif",
)

_BACKGROUND_URL_RE = re.compile(r"""url\(\s*['"]?([^'"()]+?)['"]?\s*\)""", re.IGNORECASE)

MIN_CANDIDATE_LENGTH = 4


def _attr(el: Tag, name: str) -> str | None:
    value = el.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


def parse_srcset(value: str | None) -> list[str]:
    """URLs of a ``srcset`` list, width/density descriptors dropped."""
    if not value:
        return []
    urls = []
    for entry in value.split(","):
        tokens = entry.split()
        if tokens:
            urls.append(tokens[0])
    return urls


def background_image_url(style: str | None) -> str | None:
    """First ``url(...)`` in an inline style, quotes optional."""
    if not style:
        return None
    m = _BACKGROUND_URL_RE.search(style)
    return m.group(1).strip() if m else None


def background_urls(style: str | None) -> list[str]:
    """Every ``url(...)`` in an inline style, for multi-layer backgrounds."""
    if not style:
        return []
    return [m.strip() for m in _BACKGROUND_URL_RE.findall(style)]


def _image_url(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("url"), str):
        # schema.org ImageObject
        return value["url"]
    return None


def _image_values(value: Any) -> Iterator[str]:
    """A string, an ImageObject, or a flat list of either. Nested lists are ignored."""
    items = value if isinstance(value, list) else [value]
    for item in items:
        if url := _image_url(item):
            yield url


def _node_images(node: dict) -> Iterator[str]:
    if "image" in node:
        yield from _image_values(node["image"])

    offers = node.get("offers")
    if isinstance(offers, dict):
        offers = [offers]
    if isinstance(offers, list):
        for offer in offers:
            if isinstance(offer, dict) and "image" in offer:
                yield from _image_values(offer["image"])


def iter_json_ld_images(data: Any) -> Iterator[str]:
    """Image URLs in a parsed JSON-LD value: ``image`` and ``offers[*].image``.

    Top-level arrays and ``@graph`` arrays are walked one level deep.
    """
    nodes = data if isinstance(data, list) else [data]
    for node in nodes:
        if not isinstance(node, dict):
            continue
        yield from _node_images(node)
        graph = node.get("@graph")
        if isinstance(graph, list):
            for child in graph:
                if isinstance(child, dict):
                    yield from _node_images(child)


def _srcset_attrs(el: Tag) -> Iterator[str]:
    yield from parse_srcset(_attr(el, "srcset"))
    yield from parse_srcset(_attr(el, "data-srcset"))


def harvest_candidates(soup: BeautifulSoup) -> Iterator[str]:
    """Yield every raw image reference on the page, source by source."""
    # 1. Slider image-wrap images
    for img in soup.select(SLIDER_IMAGE_SELECTOR):
        for name in ("src", "data-src"):
            if value := _attr(img, name):
                yield value
        yield from _srcset_attrs(img)

    # 2. Plain <img>
    for img in soup.find_all("img"):
        for name in ("src", "data-src"):
            if value := _attr(img, name):
                yield value

    # 3. <picture><source srcset>
    for source in soup.select("picture source"):
        yield from parse_srcset(_attr(source, "srcset"))

    # 4. Inline background images
    for el in soup.select('[style*="background-image"]'):
        if url := background_image_url(_attr(el, "style")):
            yield url

    # 5. JSON-LD structured data
    for script in soup.select('script[type="application/ld+json"]'):
        try:
            data = json.loads(script.get_text())
        except (ValueError, RecursionError):
            logger.debug("Skipping unparseable JSON-LD block")
            continue
        yield from iter_json_ld_images(data)

    # 6. background shorthand, every url(...)
    for el in soup.select('[style*="background:"]'):
        yield from background_urls(_attr(el, "style"))

    # 7. srcset lists and lazy-loading attributes
    for img in soup.find_all("img"):
        for name in LAZY_IMG_ATTRS:
            if value := _attr(img, name):
                yield value
        yield from _srcset_attrs(img)
    for source in soup.select("picture source"):
        yield from parse_srcset(_attr(source, "data-srcset"))

    # 8. Data attributes on image containers
    for el in soup.select(", ".join(IMAGE_CONTAINER_SELECTORS)):
        for name in CONTAINER_DATA_ATTRS:
            if value := _attr(el, name):
                yield value

    # 9. Links straight to image files
    for link in soup.select("a[href]"):
        href = _attr(link, "href")
        if href and urlsplit(href).path.lower().endswith(IMAGE_LINK_EXTENSIONS):
            yield href

    # 10. Image inputs
    for el in soup.select('input[type="image"], input[src]'):
        if value := _attr(el, "src"):
            yield value


def harvest_fallback(soup: BeautifulSoup) -> Iterator[str]:
    """Aggressive pass: any src-like attribute on any element."""
    for el in soup.find_all(True):
        for name in FALLBACK_ATTRS:
            value = _attr(el, name)
            if value and len(value) > 10 and not value.startswith("data:"):
                yield value


def is_candidate(raw: str | None) -> bool:
    if not raw:
        return False
    raw = raw.strip()
    return len(raw) >= MIN_CANDIDATE_LENGTH and not raw.lower().startswith("data:")


def resolve_candidate(raw: str, base_url: str) -> str | None:
    """Absolute http(s) URL for a raw candidate, or ``None`` to drop it."""
    try:
        absolute = urljoin(base_url, raw.strip())
        scheme = urlsplit(absolute).scheme.lower()
    except ValueError:
        logger.debug("Dropping unresolvable image reference %r", raw)
        return None
    if scheme not in ("http", "https"):
        return None
    return absolute


def iter_image_urls(candidates: Iterator[str], base_url: str) -> Iterator[str]:
    """Filter raw candidates and resolve the survivors to absolute URLs."""
    for raw in candidates:
        if not is_candidate(raw):
            continue
        absolute = resolve_candidate(raw, base_url)
        if absolute is not None:
            yield absolute
