"""Pydantic schemas for the auth endpoints and the registration-code check."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=1)


class SignUpRequest(Credentials):
    password: str = Field(..., min_length=6)


class RefreshRequest(BaseModel):
    refresh_token: str


class UserRead(BaseModel):
    id: str
    email: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SignUpResponse(BaseModel):
    """Sign-up never returns a session; the user signs in separately."""
    user: UserRead
    session: None = None


class SessionRead(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: int
    user: UserRead


class VerifyCodeRequest(BaseModel):
    code: Optional[str] = None
