"""JWT token validation utilities.

Tokens are issued by the identity service and signed with the shared
secret from settings. Claims: `sub` (user id), `role` (user, business,
admin), plus the standard `iat`/`exp`.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from servicehub.lib.settings import settings


def create_access_token(
    user_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed access token.

    Used by operational tooling and the test suite; production tokens come
    from the identity service using the same secret.

    Example:
        >>> token = create_access_token("123e4567-e89b-12d3-a456-426614174000", "user")
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expiration_minutes)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Raises:
        jwt.InvalidTokenError: If token is invalid, expired, or signature doesn't match
    """
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
    )


def get_caller_from_token(token: str) -> tuple[str, Optional[str]]:
    """Extract (user_id, role) from a verified token.

    Raises:
        jwt.InvalidTokenError: If token is invalid
        KeyError: If the subject claim is missing
    """
    payload = verify_token(token)
    return payload["sub"], payload.get("role")
