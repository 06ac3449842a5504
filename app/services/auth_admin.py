"""
Hosted backend auth admin lookups.

Email addresses live in the backend's auth service, not in our tables.
API: GET {SUPABASE_URL}/auth/v1/admin/users/{id}  (service role key)
Response: {"id": "...", "email": "...", ...}
"""
import logging
import uuid
from typing import Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


async def fetch_auth_user(user_id: uuid.UUID) -> dict:
    """Raw HTTP call to the auth admin API. Returns parsed JSON."""
    url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/admin/users/{user_id}"
    headers = {
        "apikey": settings.SUPABASE_SERVICE_ROLE_KEY,
        "Authorization": f"Bearer {settings.SUPABASE_SERVICE_ROLE_KEY}",
    }
    async with httpx.AsyncClient(timeout=15.0) as client:
        resp = await client.get(url, headers=headers)
        resp.raise_for_status()
        return resp.json()


async def get_user_email(user_id: uuid.UUID) -> Optional[str]:
    """Email address for an auth user, or None when it can't be resolved."""
    if not settings.SUPABASE_URL:
        logger.warning("auth_admin: SUPABASE_URL not configured, cannot resolve email")
        return None
    try:
        data = await fetch_auth_user(user_id)
    except httpx.HTTPError as exc:
        logger.error("auth_admin: lookup failed for user %s: %s", user_id, exc)
        return None
    return data.get("email") or None
