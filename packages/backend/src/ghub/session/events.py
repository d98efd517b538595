"""Auth state change events and subscription handles.

Learn: Centralizing event types as constants prevents typos and makes it
easy to discover every notification the auth service can push.
"""

from typing import Callable, Optional

import structlog

from ghub.session.state import AuthSession

logger = structlog.get_logger()

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"
USER_UPDATED = "USER_UPDATED"

AUTH_EVENTS = (SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED, USER_UPDATED)

AuthCallback = Callable[[str, Optional[AuthSession]], None]


class Subscription:
    """Explicit unsubscribe handle returned by every subscribe call."""

    def __init__(self, release: Callable[[], None]):
        self._release = release
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._release()


class AuthEventEmitter:
    """Synchronous fan-out of auth events, in emission order."""

    def __init__(self):
        self._callbacks: list[AuthCallback] = []

    def subscribe(self, callback: AuthCallback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(lambda: self._callbacks.remove(callback))

    def emit(self, event: str, session: Optional[AuthSession]) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event, session)
            except Exception:
                logger.exception("auth.callback_failed", auth_event=event)

    def __len__(self) -> int:
        return len(self._callbacks)
