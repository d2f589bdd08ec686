"""
JWT handling for identities issued by the external user service.

This service never stores credentials. It only verifies the signature of a
bearer token and reads its subject as an opaque user id.
"""
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError

from restohub.core.config import get_settings

settings = get_settings()

ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(subject: str | Any, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token (used by tooling and tests)."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "type": "access"
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Decode and validate a JWT token. Returns payload or None if invalid."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def subject_from_token(token: str) -> str | None:
    """Return the ``sub`` claim of a valid access token, else None."""
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None
