"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the caller's identity from the request.

Two checks:
1. apikey header — the project's anon key, required when GHUB_ANON_KEY is set
2. Bearer JWT access token — the signed-in user, optional for public reads
"""

import hmac
from typing import Optional

from fastapi import Depends, HTTPException, Header

from ghub.auth.jwt import TokenError, identity_from_claims, verify_token
from ghub.config import settings
from ghub.session.state import Identity


class RequestIdentity:
    """The identity making this request.

    Learn: Satisfies the gateway's IdentitySource protocol, so the same
    ScopedGateway that runs in a client process against the session
    resolver runs here against the request's bearer token.
    """

    def __init__(self, identity: Optional[Identity] = None, token: Optional[str] = None):
        self.identity = identity
        self.token = token

    def current_identity(self) -> Optional[Identity]:
        return self.identity

    def is_authenticated(self) -> bool:
        return self.identity is not None


async def require_api_key(apikey: Optional[str] = Header(None)) -> None:
    """Reject requests without the project's anon key (when one is configured)."""
    if not settings.anon_key:
        return
    if not apikey or not hmac.compare_digest(apikey.encode(), settings.anon_key.encode()):
        raise HTTPException(status_code=401, detail="Invalid API key")


async def get_request_identity(
    authorization: Optional[str] = Header(None),
) -> RequestIdentity:
    """Extract the caller (optional — anonymous if no bearer token).

    Learn: This is the "soft" auth dependency. An invalid token is still
    a 401; only a missing one means anonymous.
    """
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:]
        return RequestIdentity(_authenticate_jwt(token), token)
    return RequestIdentity()


async def get_current_user(
    caller: RequestIdentity = Depends(get_request_identity),
) -> RequestIdentity:
    """Extract the caller (required — 401 if anonymous)."""
    if not caller.is_authenticated():
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller


def _authenticate_jwt(token: str) -> Identity:
    """Authenticate via JWT access token."""
    try:
        payload = verify_token(token, expected_type="access")
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity_from_claims(payload)
