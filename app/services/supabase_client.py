"""Supabase client singleton for auth, credits and search history."""

from __future__ import annotations

import logging

from supabase import Client, create_client

from app.config import settings

logger = logging.getLogger(__name__)

_client: Client | None = None


def is_configured() -> bool:
    return bool(
        settings.SUPABASE_URL
        and (settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY)
    )


def get_supabase() -> Client:
    """Return a shared Supabase client instance (lazy-init).

    The service-role key is used when present so that profile and history
    writes bypass row-level security; otherwise the anon key is used.
    """
    global _client
    if _client is None:
        if not is_configured():
            raise RuntimeError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY or SUPABASE_KEY "
                "must be set in .env"
            )
        key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY
        _client = create_client(settings.SUPABASE_URL, key)
        logger.info(
            "Supabase client initialized for %s (%s)",
            settings.SUPABASE_URL,
            "admin" if settings.SUPABASE_SERVICE_ROLE_KEY else "anon",
        )
    return _client
