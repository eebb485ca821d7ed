import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import CallerAccount, require_credits
from app.schemas.common import ErrorResponse
from app.schemas.image import ScrapeResponse
from app.services import credits_service, history_service, scrape_service
from app.services.scrape_service import PageFetchError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ScrapeResponse,
    response_model_exclude_none=True,
    summary="Extract images from a page",
    description="Fetch the page, collect every image it references (img, srcset, picture, "
    "inline backgrounds, JSON-LD), collapse resolution variants and resolve size, "
    "dimensions and quality. Costs one credit when at least one image is found.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid URL"},
        401: {"model": ErrorResponse, "description": "Not logged in"},
        402: {"model": ErrorResponse, "description": "No credits left"},
        502: {"model": ErrorResponse, "description": "Page could not be fetched"},
        504: {"model": ErrorResponse, "description": "Page fetch timed out"},
    },
)
async def scrape(
    url: str | None = Query(None, description="Absolute URL of the page to scrape"),
    account: CallerAccount = Depends(require_credits),
):
    if not url or not url.strip():
        raise HTTPException(status_code=400, detail="URL parameter is required")
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        raise HTTPException(status_code=400, detail="URL must start with http:// or https://")

    try:
        images = await scrape_service.extract_images(url)
    except PageFetchError as e:
        if e.status_code is not None:
            raise HTTPException(status_code=e.status_code, detail=e.reason) from e
        if e.timed_out:
            raise HTTPException(status_code=504, detail=e.reason) from e
        raise HTTPException(status_code=502, detail="Failed to scrape images") from e

    remaining = account.credits
    if images:
        try:
            remaining = await credits_service.deduct_credits(account.user_id)
        except Exception:
            logger.exception("Failed to deduct credit for %s", account.user_id)

    try:
        await history_service.record_search(account.user_id, url, images)
    except Exception:
        logger.exception("Failed to record search history for %s", url)

    return ScrapeResponse(
        url=url,
        images=images,
        total=len(images),
        credits_remaining=remaining,
    )
