"""Identity and session state value objects.

Learn: Session State is tri-state — unknown while the first resolution is
in flight, anonymous once resolved with nobody signed in, authenticated
with an Identity otherwise. All of these are immutable; the resolver swaps
whole objects instead of mutating fields, so a reader can never observe a
half-updated identity.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class Identity:
    """The authenticated principal. `id` is stable across sessions."""

    id: str
    email: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Identity":
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(id=str(data["id"]), email=data.get("email", ""), created_at=created_at)

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class AuthSession:
    """Tokens issued by the auth service plus the user they belong to."""

    access_token: str
    refresh_token: str
    expires_at: int  # epoch seconds
    user: Identity
    token_type: str = "bearer"

    def is_expired(self, leeway: int = 10) -> bool:
        return self.expires_at <= int(time.time()) + leeway

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "AuthSession":
        expires_at = data.get("expires_at")
        if expires_at is None:
            expires_at = int(time.time()) + int(data.get("expires_in", 0))
        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=int(expires_at),
            user=Identity.from_payload(data["user"]),
            token_type=data.get("token_type", "bearer"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "token_type": self.token_type,
            "user": self.user.to_payload(),
        }


class SessionStatus(str, Enum):
    UNKNOWN = "unknown"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True, eq=False)
class SessionState:
    """One resolution of "who is calling".

    eq=False on purpose: two anonymous states reached at different times
    are different resolutions, which the route guard relies on.
    """

    status: SessionStatus
    identity: Optional[Identity] = None

    @classmethod
    def unknown(cls) -> "SessionState":
        return cls(SessionStatus.UNKNOWN)

    @classmethod
    def anonymous(cls) -> "SessionState":
        return cls(SessionStatus.ANONYMOUS)

    @classmethod
    def authenticated(cls, identity: Identity) -> "SessionState":
        return cls(SessionStatus.AUTHENTICATED, identity)

    @property
    def is_resolved(self) -> bool:
        return self.status is not SessionStatus.UNKNOWN


@dataclass(frozen=True)
class AuthError:
    """Rejected sign-in/up/out, surfaced verbatim to the UI."""

    message: str
    status: Optional[int] = None


@dataclass(frozen=True)
class AuthResponse:
    """What the auth service returns for sign-in and sign-up."""

    user: Optional[Identity] = None
    session: Optional[AuthSession] = None
    error: Optional[AuthError] = None
