"""
Bearer token authentication.

Tokens are issued by the auth service; this service only verifies them.
Payload: {"sub": "<user id>", "roles": ["seller", "admin", ...], "exp": ...}
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import jwt
from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

from seller_service.app.core.settings import get_settings

ADMIN_ROLE = "admin"
TOKEN_EXPIRY_HOURS = 24


class CurrentUser(BaseModel):
    id: int
    roles: List[str] = []

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


def create_access_token(user_id: int, roles: Optional[List[str]] = None) -> str:
    """Sign a token the same way the auth service does. Used by tooling and tests."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "roles": roles or [],
        "iat": now,
        "exp": now + timedelta(hours=TOKEN_EXPIRY_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[CurrentUser]:
    """
    Decode a bearer token.

    Returns:
        CurrentUser or None if the token is invalid or expired
    """
    settings = get_settings()
    if not settings.JWT_SECRET:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        roles = payload.get("roles") or []
        if isinstance(roles, str):
            roles = [roles]
        return CurrentUser(id=int(payload["sub"]), roles=[str(r).lower() for r in roles])
    except (jwt.InvalidTokenError, ValueError, KeyError, TypeError):
        return None


async def get_current_user(
    authorization: Optional[str] = Header(None)
) -> CurrentUser:
    """
    FastAPI dependency: validate the "Authorization: Bearer <token>" header.

    Raises:
        HTTPException 401: If authentication fails
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format. Expected: Bearer <token>"
        )

    user = decode_access_token(parts[1])
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Require the admin role."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user
