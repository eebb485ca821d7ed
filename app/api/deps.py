import logging
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from app.services import credits_service
from app.services.supabase_client import get_supabase

logger = logging.getLogger(__name__)


@dataclass
class CallerAccount:
    """Authenticated caller and the balance seen before the request ran."""

    user_id: str
    credits: int


async def get_current_user_id(
    authorization: str | None = Header(None, description="Bearer <Supabase access token>"),
) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="You must be logged in.")
    token = authorization[len("bearer "):].strip()

    try:
        response = get_supabase().auth.get_user(token)
    except RuntimeError as e:
        logger.error("Auth unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Authentication is not configured") from e
    except Exception as e:
        logger.warning("Token verification failed: %s", e)
        raise HTTPException(status_code=401, detail="Authentication failed.") from e

    user = getattr(response, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="You must be logged in.")
    return str(user.id)


async def require_credits(user_id: str = Depends(get_current_user_id)) -> CallerAccount:
    """Gate: the caller must hold a positive credit balance."""
    credits = await credits_service.get_credits(user_id)
    if credits <= 0:
        raise HTTPException(
            status_code=402,
            detail="Insufficient credits. Please purchase more credits to continue.",
        )
    return CallerAccount(user_id=user_id, credits=credits)
