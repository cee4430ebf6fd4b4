"""
Access token helpers.

Tokens are issued by the account service; this API only verifies them and
reads the `is_admin` claim. `build_access_token` exists for operators and
tests that need to mint a token with the shared secret.
"""

from __future__ import annotations

import time
from typing import Any

import jwt

DEFAULT_EXPIRES_IN_S = 15 * 60


class AuthSecurityError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def build_access_token(
    *,
    user_id: int,
    is_admin: bool,
    secret: str,
    algorithm: str = "HS256",
    expires_in_s: int = DEFAULT_EXPIRES_IN_S,
) -> str:
    issued_at = now_epoch_s()
    payload = {
        "sub": str(user_id),
        "is_admin": bool(is_admin),
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + expires_in_s,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, *, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(raw, secret, algorithms=[algorithm])
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    token_type = str(payload.get("type") or "").strip().lower()
    if token_type != "access":
        raise AuthSecurityError("Token is not an access token.")

    return payload


def is_admin(claims: dict[str, Any]) -> bool:
    # Only a real JSON boolean counts; "true" strings are not admin.
    return claims.get("is_admin") is True
