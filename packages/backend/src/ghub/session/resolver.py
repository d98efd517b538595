"""Session resolver — the one owner of "who is calling".

Learn: A client process has exactly one SessionResolver. It starts in
UNKNOWN, asks the auth service for the current session once, and listens
to the auth service's push stream for everything after that. Pages only
read from it (current_identity, is_authenticated, wait_until_resolved)
or go through its three actions (sign_in, sign_up, sign_out).

Ordering rule: push events are the newer authority. Once any push event
has been applied, the initial get_session() result is dropped when it
finally arrives, so a sign-out can never be undone by a slow first fetch.

Degraded mode: without a usable backend configuration there is no auth
service at all. The resolver is ANONYMOUS from construction, never does
I/O, and its actions fail fast with "Database not configured".
"""

import asyncio
from typing import Callable, Optional, Protocol

import structlog

from ghub.results import Result
from ghub.session.events import AuthCallback, Subscription
from ghub.session.state import (
    AuthError,
    AuthResponse,
    AuthSession,
    Identity,
    SessionState,
    SessionStatus,
)

logger = structlog.get_logger()

NOT_CONFIGURED = "Database not configured"
UNEXPECTED = "An unexpected error occurred"

StateListener = Callable[[SessionState], None]


class AuthService(Protocol):
    """The external auth collaborator (see ghub.client.HttpAuthClient)."""

    async def get_session(self) -> Optional[AuthSession]: ...

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription: ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse: ...

    async def sign_up(self, email: str, password: str) -> AuthResponse: ...

    async def sign_out(self) -> Optional[AuthError]: ...


class SessionResolver:
    """Owns the process-wide Session State."""

    def __init__(self, auth: Optional[AuthService] = None):
        self._auth = auth
        self._listeners: list[StateListener] = []
        self._resolved = asyncio.Event()
        self._subscription: Optional[Subscription] = None
        self._initial_task: Optional[asyncio.Task] = None
        self._push_seen = False
        self._closed = False

        if auth is None:
            self._state = SessionState.anonymous()
            self._resolved.set()
        else:
            self._state = SessionState.unknown()

    # ─── Read side ──────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def configured(self) -> bool:
        return self._auth is not None

    def current_identity(self) -> Optional[Identity]:
        return self._state.identity

    def is_resolving(self) -> bool:
        return self._state.status is SessionStatus.UNKNOWN

    def is_authenticated(self) -> bool:
        return self._state.status is SessionStatus.AUTHENTICATED

    async def wait_until_resolved(self) -> SessionState:
        """Suspend until the state has left UNKNOWN.

        No timeout: a backend that never answers keeps callers waiting.
        """
        await self._resolved.wait()
        return self._state

    def subscribe(self, listener: StateListener) -> Subscription:
        """Call `listener(state)` after every state change."""
        self._listeners.append(listener)
        return Subscription(lambda: self._listeners.remove(listener))

    # ─── Lifecycle ──────────────────────────────────────

    async def start(self) -> None:
        """Subscribe to push events and kick off the initial resolution.

        Returns immediately; use wait_until_resolved() to block.
        """
        if self._auth is None or self._subscription is not None:
            return
        self._subscription = self._auth.on_auth_state_change(self._on_auth_event)
        self._initial_task = asyncio.create_task(self._resolve_initial())

    async def close(self) -> None:
        """Release the push subscription; later events are ignored.

        A resolver closed while still UNKNOWN settles as ANONYMOUS so that
        wait_until_resolved() and guards waiting on it return.
        """
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._initial_task is not None and not self._initial_task.done():
            self._initial_task.cancel()
            try:
                await self._initial_task
            except asyncio.CancelledError:
                pass
        self._listeners.clear()
        if self._state.status is SessionStatus.UNKNOWN:
            self._state = SessionState.anonymous()
        self._resolved.set()

    async def __aenter__(self) -> "SessionResolver":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _resolve_initial(self) -> None:
        try:
            session = await self._auth.get_session()
        except Exception as e:
            logger.error("session.initial_resolution_failed", error=str(e))
            session = None
        if self._closed:
            return
        if self._push_seen:
            logger.debug(
                "session.initial_resolution_discarded",
                had_session=session is not None,
            )
            return
        self._apply(session.user if session else None, source="initial")

    def _on_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        if self._closed:
            return
        self._push_seen = True
        self._apply(session.user if session else None, source=event)

    def _apply(self, identity: Optional[Identity], source: str) -> None:
        current = self._state
        if identity is None:
            if current.status is SessionStatus.ANONYMOUS:
                return
            new_state = SessionState.anonymous()
        else:
            if current.identity == identity:
                return
            new_state = SessionState.authenticated(identity)

        self._state = new_state
        self._resolved.set()
        logger.info(
            "session.state_changed",
            source=source,
            status=new_state.status.value,
            user_id=identity.id if identity else None,
        )
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("session.listener_failed", source=source)

    # ─── Actions ────────────────────────────────────────

    async def sign_in(self, email: str, password: str) -> Result[Identity, AuthError]:
        """Sign in with email and password.

        On success the auth service pushes SIGNED_IN, which is what moves
        the state; this method never assigns it directly.
        """
        if self._auth is None:
            return Result.failure(AuthError(NOT_CONFIGURED))
        try:
            response = await self._auth.sign_in_with_password(email, password)
        except Exception as e:
            logger.error("session.sign_in_failed", error=str(e))
            return Result.failure(AuthError(UNEXPECTED))
        if response.error:
            return Result.failure(response.error)
        return Result.success(response.user)

    async def sign_up(self, email: str, password: str) -> Result[Identity, AuthError]:
        """Register a new account. Does not sign the new user in."""
        if self._auth is None:
            return Result.failure(AuthError(NOT_CONFIGURED))
        try:
            response = await self._auth.sign_up(email, password)
        except Exception as e:
            logger.error("session.sign_up_failed", error=str(e))
            return Result.failure(AuthError(UNEXPECTED))
        if response.error:
            return Result.failure(response.error)
        return Result.success(response.user)

    async def sign_out(self) -> Result[None, AuthError]:
        if self._auth is None:
            return Result.failure(AuthError(NOT_CONFIGURED))
        try:
            error = await self._auth.sign_out()
        except Exception as e:
            logger.error("session.sign_out_failed", error=str(e))
            return Result.failure(AuthError(UNEXPECTED))
        if error:
            return Result.failure(error)
        return Result.success()
