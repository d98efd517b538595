"""HTTP auth client — the auth service as seen from a client process.

Learn: Talks to the backend's /auth/v1 routes with httpx and keeps the
current session in a SessionStorage. It is also the source of the push
stream the SessionResolver listens to: every sign-in, sign-out and token
refresh it performs is emitted to subscribers synchronously, in order.

Error contract:
- the backend said no (4xx/5xx) → AuthResponse.error / AuthError
- the backend could not be reached → httpx.HTTPError propagates; the
  resolver turns it into "An unexpected error occurred"
"""

from typing import Any, Optional

import httpx
import structlog

from ghub.client.storage import FileSessionStorage, MemorySessionStorage
from ghub.config import backend_usable, settings
from ghub.session.events import (
    SIGNED_IN,
    SIGNED_OUT,
    TOKEN_REFRESHED,
    AuthCallback,
    AuthEventEmitter,
    Subscription,
)
from ghub.session.state import AuthError, AuthResponse, AuthSession, Identity

logger = structlog.get_logger()


def _error_from_response(response: httpx.Response) -> AuthError:
    """Pull a displayable message out of a FastAPI error body."""
    message = f"Request failed ({response.status_code})"
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, list) and detail:
        message = detail[0].get("msg", message)
    return AuthError(message=message, status=response.status_code)


class HttpAuthClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        storage=None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.storage = storage or MemorySessionStorage()
        self._http = http or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=30.0
        )
        self._http.headers["apikey"] = api_key
        self._events = AuthEventEmitter()
        self._session: Optional[AuthSession] = None

    @property
    def current_session(self) -> Optional[AuthSession]:
        return self._session

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        return self._events.subscribe(callback)

    async def aclose(self) -> None:
        await self._http.aclose()

    # ─── Session ────────────────────────────────────────

    async def get_session(self) -> Optional[AuthSession]:
        """Return the stored session, refreshing it if the access token expired."""
        session = self._session or self.storage.load()
        if session is None:
            return None
        if session.is_expired():
            return await self.refresh_session(session.refresh_token)
        self._session = session
        return session

    async def refresh_session(self, refresh_token: str) -> Optional[AuthSession]:
        r = await self._http.post(
            "/auth/v1/token/refresh", json={"refresh_token": refresh_token}
        )
        if r.status_code >= 400:
            logger.info("auth.refresh_rejected", status=r.status_code)
            self._drop_session()
            return None
        session = AuthSession.from_payload(r.json())
        self._store(session)
        self._events.emit(TOKEN_REFRESHED, session)
        return session

    # ─── Actions ────────────────────────────────────────

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        r = await self._http.post(
            "/auth/v1/token", json={"email": email, "password": password}
        )
        if r.status_code >= 400:
            return AuthResponse(error=_error_from_response(r))
        session = AuthSession.from_payload(r.json())
        self._store(session)
        self._events.emit(SIGNED_IN, session)
        return AuthResponse(user=session.user, session=session)

    async def sign_up(self, email: str, password: str) -> AuthResponse:
        r = await self._http.post(
            "/auth/v1/signup", json={"email": email, "password": password}
        )
        if r.status_code >= 400:
            return AuthResponse(error=_error_from_response(r))
        return AuthResponse(user=Identity.from_payload(r.json()["user"]))

    async def sign_out(self) -> Optional[AuthError]:
        """Revoke server-side, then drop the local session no matter what."""
        session = self._session or self.storage.load()
        error = None
        try:
            if session is not None:
                r = await self._http.post(
                    "/auth/v1/logout",
                    headers={"Authorization": f"Bearer {session.access_token}"},
                )
                # An already-invalid token is as signed out as it gets
                if r.status_code >= 400 and r.status_code not in (401, 403, 404):
                    error = _error_from_response(r)
        finally:
            self._drop_session()
        return error

    # ─── Internals ──────────────────────────────────────

    def _store(self, session: AuthSession) -> None:
        self._session = session
        self.storage.save(session)

    def _drop_session(self) -> None:
        self._session = None
        self.storage.clear()
        self._events.emit(SIGNED_OUT, None)

    def auth_headers(self) -> dict[str, Any]:
        headers: dict[str, Any] = {"apikey": self._http.headers.get("apikey", "")}
        if self._session is not None:
            headers["Authorization"] = f"Bearer {self._session.access_token}"
        return headers

    async def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Call a backend route as the session's user, or anonymously."""
        headers = {**self.auth_headers(), **kwargs.pop("headers", {})}
        return await self._http.request(method, path, headers=headers, **kwargs)


def create_auth_client(storage=None) -> Optional[HttpAuthClient]:
    """Build the process auth client from settings.

    Returns None when the backend URL or key is unusable; a resolver built
    on None runs in degraded (anonymous, no I/O) mode.
    """
    if not backend_usable():
        return None

    return HttpAuthClient(
        settings.backend_url,
        settings.backend_key,
        storage=storage or FileSessionStorage(settings.session_file),
    )
