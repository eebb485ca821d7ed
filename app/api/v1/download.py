import logging
from urllib.parse import quote, unquote

import httpx
from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from app.config import settings
from app.schemas.common import ErrorResponse
from app.scraper.dedup import DEFAULT_FILENAME, derive_filename
from app.scraper.http_client import fetch_image, new_client

logger = logging.getLogger(__name__)

router = APIRouter()


def content_disposition(filename: str) -> str:
    """Attachment header safe for latin-1 transport, RFC 6266 style.

    Non-ASCII names get an ASCII ``filename`` plus a UTF-8 ``filename*``.
    """
    filename = unquote(filename)
    for ch in ('"', "\\", "\r", "\n"):
        filename = filename.replace(ch, "")
    filename = filename or DEFAULT_FILENAME

    fallback = "".join(ch if " " <= ch < "\x7f" else "_" for ch in filename)
    header = f'attachment; filename="{fallback}"'
    if fallback != filename:
        header += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return header


@router.get(
    "",
    summary="Download an image",
    description="Proxy a single image so the browser saves it as an attachment, "
    "bypassing hotlink protection and cross-origin restrictions.",
    responses={
        200: {"content": {"image/*": {}}, "description": "Image bytes"},
        400: {"model": ErrorResponse, "description": "Missing or invalid URL"},
        502: {"model": ErrorResponse, "description": "Image could not be fetched"},
    },
)
async def download(
    url: str | None = Query(None, description="Absolute image URL"),
):
    if not url or not url.lower().startswith(("http://", "https://")):
        raise HTTPException(status_code=400, detail="URL parameter is required")

    try:
        async with new_client(settings.DOWNLOAD_TIMEOUT) as client:
            response = await fetch_image(client, url)
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise HTTPException(status_code=status, detail=f"HTTP error! status: {status}") from e
    except (httpx.RequestError, httpx.InvalidURL) as e:
        logger.warning("Download failed for %s: %s", url, e)
        raise HTTPException(status_code=502, detail="Failed to download image") from e

    return Response(
        content=response.content,
        media_type=response.headers.get("content-type", "image/jpeg"),
        headers={
            "Content-Disposition": content_disposition(derive_filename(url)),
        },
    )
