import re
from urllib.parse import parse_qsl, urlencode, urlsplit

# Cache-busting parameters that never change the image content
_CACHE_BUST_PARAMS = {"t", "v", "cache", "timestamp", "_", "cb", "bust"}

# Resize parameters: a URL carrying one of these is identified by its path alone
_SIZE_PARAMS = {"w", "width", "h", "height", "s", "size", "resize"}

# Leading host labels that only mark an asset host of the same site
_ASSET_SUBDOMAINS = {"www", "cdn", "static", "img", "images", "media", "assets"}

# Trailing resolution suffix on a file name: -300x300, _150, -1024x
_SIZE_SUFFIX_RE = re.compile(r"[-_]\d+x?\d*$")

_NON_IMAGE_EXTENSIONS = (".js", ".css", ".html", ".pdf", ".doc", ".txt", ".xml", ".json")

DEFAULT_FILENAME = "image.jpg"


def _origin(scheme: str, hostname: str, port: int | None) -> str:
    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and (scheme, port) not in (("http", 80), ("https", 443)):
        host = f"{host}:{port}"
    return f"{scheme}://{host}"


def normalize_url(url: str) -> str:
    """Normalize a URL for comparison: drop cache-busting params, collapse resize variants.

    If a size parameter survives the cache-busting strip, only origin + path is
    kept.  Unparseable URLs are returned unchanged.
    """
    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.hostname:
            return url
        scheme = parts.scheme.lower()
        origin = _origin(scheme, parts.hostname, parts.port)
    except ValueError:
        return url

    path = parts.path or "/"
    params = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k not in _CACHE_BUST_PARAMS
    ]
    if any(k in _SIZE_PARAMS for k, _ in params):
        return origin + path

    normalized = origin + path
    if params:
        normalized += "?" + urlencode(params)
    if parts.fragment:
        normalized += "#" + parts.fragment
    return normalized


def _site_key(hostname: str, port: int | None) -> str:
    labels = hostname.split(".")
    if len(labels) > 2 and labels[0] in _ASSET_SUBDOMAINS:
        labels = labels[1:]
    site = ".".join(labels)
    if port is not None and port not in (80, 443):
        site = f"{site}:{port}"
    return site


def compute_content_hash(url: str) -> str:
    """Dedup key that ignores resolution-only differences between image URLs.

    ``https://cdn.example.com/img/a-300x300.jpg?v=2`` and
    ``https://example.com/img/a.jpg`` both map to ``example.com/img/a.jpg``:
    scheme, query and fragment are ignored, an asset subdomain is folded into
    the site, and a trailing ``-WxH``/``_N`` size suffix is stripped from the
    file's base name.  Unparseable URLs are returned unchanged.
    """
    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.hostname:
            return url
        site = _site_key(parts.hostname, parts.port)
    except ValueError:
        return url

    directory, _, filename = parts.path.rpartition("/")
    base_name = filename.split(".", 1)[0]
    cleaned = _SIZE_SUFFIX_RE.sub("", base_name)
    if "." in filename:
        cleaned += "." + filename.rsplit(".", 1)[1]
    return f"{site}{directory}/{cleaned}"


def derive_filename(url: str) -> str:
    """Last path segment of ``url`` without query, or ``image.jpg``."""
    try:
        path = urlsplit(url).path
    except ValueError:
        path = url.split("?", 1)[0]
    return path.rsplit("/", 1)[-1] or DEFAULT_FILENAME


def has_non_image_extension(url: str) -> bool:
    """True for URLs that clearly point at scripts, stylesheets, pages or documents."""
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    return path.endswith(_NON_IMAGE_EXTENSIONS)
