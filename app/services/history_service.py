"""Search history records in the ``search_history`` table."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit

from app.schemas.image import ResolvedImage
from app.services.supabase_client import get_supabase

logger = logging.getLogger(__name__)


async def record_search(
    user_id: str, url: str, images: list[ResolvedImage]
) -> dict[str, Any]:
    """Insert or refresh the history row for ``(user_id, url)``."""
    sb = get_supabase()

    row = {
        "title": urlsplit(url).hostname or url,
        "image_count": len(images),
        "results": [img.model_dump(mode="json", exclude_none=True) for img in images],
    }

    existing = (
        sb.table("search_history")
        .select("id")
        .eq("user_id", user_id)
        .eq("url", url)
        .limit(1)
        .execute()
    )
    if existing.data:
        row["created_at"] = datetime.now(timezone.utc).isoformat()
        result = (
            sb.table("search_history")
            .update(row)
            .eq("id", existing.data[0]["id"])
            .execute()
        )
    else:
        result = (
            sb.table("search_history")
            .insert({"user_id": user_id, "url": url, **row})
            .execute()
        )

    logger.info("Recorded search history for %s (%d images)", url, len(images))
    data = result.data or [{}]
    return data[0]
