"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, status

from core.config import Settings
from core.deps import get_settings

from . import security

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _extract_bearer_token(authorization: str | None) -> str:
    """
    "Bearer <jwt>" -> "<jwt>". The scheme is case-insensitive.
    """
    scheme, _, token = (authorization or "").strip().partition(" ")
    if not scheme:
        raise _unauthorized("Missing Authorization header.")
    if scheme.lower() != "bearer":
        raise _unauthorized("Authorization must use the Bearer scheme.")
    token = token.strip()
    if not token:
        raise _unauthorized("Bearer token is empty.")
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_claims(
    access_token: str = Depends(get_bearer_token),
    settings: Settings = Depends(get_settings),
) -> dict:
    try:
        return security.decode_access_token(
            access_token,
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


async def require_admin(claims: dict = Depends(get_current_claims)) -> dict:
    if not security.is_admin(claims):
        logger.warning("admin_required sub=%s", claims.get("sub"))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required.",
        )
    return claims
