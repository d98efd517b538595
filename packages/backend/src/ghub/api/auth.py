"""Auth API — sign-up, sign-in, token refresh, sign-out, current user.

Learn: Routes for the auth service a client process talks to:
- POST /auth/v1/signup → create account + profile row (no session!)
- POST /auth/v1/token → email/password → JWT access/refresh tokens
- POST /auth/v1/token/refresh → refresh token → new token pair
- POST /auth/v1/logout → acknowledge sign-out
- GET /auth/v1/user → current user info

Sign-up deliberately does not sign the user in; clients must not assume
a session exists right after registering.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ghub.auth.dependencies import RequestIdentity, get_current_user
from ghub.auth.jwt import TokenError, create_access_token, create_refresh_token, verify_token
from ghub.auth.password import hash_password, verify_password
from ghub.config import settings
from ghub.db.engine import get_db
from ghub.db.models import Profile, User
from ghub.schemas.auth import (
    Credentials,
    RefreshRequest,
    SessionRead,
    SignUpRequest,
    SignUpResponse,
    UserRead,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/auth/v1")


def _issue_session(user: User) -> SessionRead:
    access_token, expires = create_access_token(user.id, user.email, user.created_at)
    return SessionRead(
        access_token=access_token,
        refresh_token=create_refresh_token(user.id),
        expires_in=settings.access_token_expire_minutes * 60,
        expires_at=int(expires.timestamp()),
        user=UserRead.model_validate(user),
    )


async def _find_user(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


# ─── Sign up ────────────────────────────────────────────


@router.post("/signup", response_model=SignUpResponse, status_code=201)
async def sign_up(body: SignUpRequest, db: AsyncSession = Depends(get_db)):
    """Create a new account and its profile row."""
    email = body.email.strip().lower()
    if await _find_user(db, email):
        raise HTTPException(status_code=409, detail="User already registered")

    user = User(
        email=email,
        password_hash=hash_password(body.password),
    )
    db.add(user)
    await db.flush()  # assigns user.id

    db.add(Profile(id=user.id, email=email))
    await db.commit()
    await db.refresh(user)

    logger.info("auth.signed_up", user_id=user.id)
    return {"user": user}


# ─── Sign in ────────────────────────────────────────────


@router.post("/token", response_model=SessionRead)
async def sign_in(body: Credentials, db: AsyncSession = Depends(get_db)):
    """Email and password → session."""
    user = await _find_user(db, body.email.strip().lower())
    stored_hash = user.password_hash if user else None
    if not verify_password(body.password, stored_hash):
        logger.info("auth.sign_in_rejected")
        raise HTTPException(status_code=400, detail="Invalid login credentials")

    logger.info("auth.signed_in", user_id=user.id)
    return _issue_session(user)


# ─── Refresh ────────────────────────────────────────────


@router.post("/token/refresh", response_model=SessionRead)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new token pair."""
    try:
        payload = verify_token(body.refresh_token, expected_type="refresh")
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))

    user = await db.get(User, payload["sub"])
    if not user:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return _issue_session(user)


# ─── Sign out ───────────────────────────────────────────


@router.post("/logout", status_code=204)
async def sign_out(caller: RequestIdentity = Depends(get_current_user)):
    """Tokens are stateless; the client drops its session."""
    logger.info("auth.signed_out", user_id=caller.identity.id)
    return Response(status_code=204)


# ─── Current user ───────────────────────────────────────


@router.get("/user", response_model=UserRead)
async def get_user(
    caller: RequestIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the signed-in user's account."""
    user = await db.get(User, caller.identity.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
