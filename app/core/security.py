from jose import jwt

from app.core.config import settings


def decode_token(token: str) -> dict:
    """Verify a token issued by the hosted backend's auth service."""
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
    )
