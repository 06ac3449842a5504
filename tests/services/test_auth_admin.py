import uuid

import httpx

from app.core.config import settings
from app.services import auth_admin


async def test_no_backend_url_means_no_email(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_URL", "")
    assert await auth_admin.get_user_email(uuid.uuid4()) is None


async def test_email_from_auth_admin(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_URL", "https://backend.example.com")

    async def fake_fetch(user_id):
        return {"id": str(user_id), "email": "sam@example.com"}

    monkeypatch.setattr(auth_admin, "fetch_auth_user", fake_fetch)
    assert await auth_admin.get_user_email(uuid.uuid4()) == "sam@example.com"


async def test_lookup_failure_is_not_fatal(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_URL", "https://backend.example.com")

    async def failing_fetch(user_id):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(auth_admin, "fetch_auth_user", failing_fetch)
    assert await auth_admin.get_user_email(uuid.uuid4()) is None
