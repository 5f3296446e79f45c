from __future__ import annotations

"""Caller identity resolution: signed-in users versus guests."""

from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from mds_chatbot.app.settings import settings


@dataclass(frozen=True)
class UserContext:
    """Resolved identity for the current request."""
    user_id: str | None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


GUEST = UserContext(user_id=None)


async def get_user_context(request: Request) -> UserContext:
    """Resolve the caller from an API key or a trusted proxy header.

    An API key that is present but unknown is rejected; a request with no
    credentials is a guest unless guests are disabled.
    """
    api_key = _extract_api_key(request)
    if api_key is not None:
        user_id = settings.api_key_map.get(api_key)
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing API key",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return UserContext(user_id=user_id)
    header = settings.trusted_user_header
    if header:
        user_id = (request.headers.get(header) or "").strip()
        if user_id:
            return UserContext(user_id=user_id)
    if not settings.allow_guests:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return GUEST


def require_authenticated(user: UserContext) -> str:
    """Return the user ID or reject guests."""
    if user.user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user.user_id


def _extract_api_key(request: Request) -> str | None:
    """Extract API key from headers."""
    header_key = request.headers.get("x-api-key")
    if header_key:
        return header_key.strip()
    auth = request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip()
    return None
