"""
Request dependencies shared by routers.
"""
from typing import Optional

from fastapi import Header, HTTPException, status

from restohub.core.security import subject_from_token


def get_optional_user_id(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
) -> Optional[str]:
    """
    Resolve the acting user's id once per request.

    A bearer token takes precedence; the ``X-User-Id`` header is the
    gateway-forwarded identity used by internal callers.
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authorization header",
            )
        user_id = subject_from_token(token)
        if user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
            )
        return user_id

    if x_user_id and x_user_id.strip():
        return x_user_id.strip()

    return None


def get_current_user_id(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
) -> str:
    """Like ``get_optional_user_id`` but rejects anonymous requests."""
    user_id = get_optional_user_id(authorization, x_user_id)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user_id
