"""Session tokens.

Learn: A session is a pair of signed JWTs.
- access token: short-lived (GHUB_ACCESS_TOKEN_EXPIRE_MINUTES), sent as
  "Authorization: Bearer" on every API call. It carries the user's id,
  email and sign-up time, so the backend builds an Identity from the
  token alone.
- refresh token: long-lived (GHUB_REFRESH_TOKEN_EXPIRE_DAYS), only good
  for POST /auth/v1/token/refresh.

Both carry aud="authenticated"; a token of the wrong type is rejected.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ghub.config import settings
from ghub.session.state import Identity

AUDIENCE = "authenticated"


class TokenError(Exception):
    """The token is expired, tampered with, or of the wrong type."""


def _encode(subject: str, token_type: str, lifetime: timedelta, **claims) -> tuple[str, datetime]:
    issued = datetime.now(timezone.utc)
    expires = issued + lifetime
    payload = {
        "sub": subject,
        "aud": AUDIENCE,
        "type": token_type,
        "iat": issued,
        "exp": expires,
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm), expires


def create_access_token(
    user_id: str,
    email: str,
    created_at: Optional[datetime] = None,
) -> tuple[str, datetime]:
    """Returns (token, expiry)."""
    claims = {"email": email}
    if created_at:
        claims["user_created_at"] = created_at.isoformat()
    return _encode(
        user_id,
        "access",
        timedelta(minutes=settings.access_token_expire_minutes),
        **claims,
    )


def create_refresh_token(user_id: str) -> str:
    token, _ = _encode(
        user_id, "refresh", timedelta(days=settings.refresh_token_expire_days)
    )
    return token


def verify_token(token: str, expected_type: Optional[str] = None) -> dict:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")
    if expected_type and payload.get("type") != expected_type:
        raise TokenError(f"Expected a {expected_type} token")
    return payload


def identity_from_claims(payload: dict) -> Identity:
    """The Identity an access token speaks for."""
    created_at = payload.get("user_created_at")
    return Identity(
        id=payload["sub"],
        email=payload.get("email", ""),
        created_at=datetime.fromisoformat(created_at) if created_at else None,
    )
