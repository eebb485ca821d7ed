"""Credit balance reads and deductions on the ``profiles`` table."""

from __future__ import annotations

import logging

from app.config import settings
from app.services.supabase_client import get_supabase

logger = logging.getLogger(__name__)


async def get_credits(user_id: str) -> int:
    """Return the user's balance, creating a profile with the default balance if missing."""
    sb = get_supabase()

    result = (
        sb.table("profiles")
        .select("credits")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if result.data:
        return int(result.data[0].get("credits") or 0)

    logger.info("Profile not found for %s, creating with %d credits", user_id, settings.DEFAULT_CREDITS)
    sb.table("profiles").insert(
        {"id": user_id, "credits": settings.DEFAULT_CREDITS}
    ).execute()
    return settings.DEFAULT_CREDITS


async def deduct_credits(user_id: str, amount: int = 1) -> int:
    """Deduct ``amount`` credits (floored at zero) and return the new balance."""
    sb = get_supabase()

    current = await get_credits(user_id)
    remaining = max(0, current - amount)
    sb.table("profiles").update({"credits": remaining}).eq("id", user_id).execute()
    logger.info("Deducted %d credit(s) from %s, %d remaining", amount, user_id, remaining)
    return remaining
