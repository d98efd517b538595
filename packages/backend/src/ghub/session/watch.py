"""Identity-bound data loading.

Learn: A page's fetch depends on who is signed in. Two rules keep it
honest without cancelling anything in flight:
1. Re-fetch when the identity changes, not on every state event (a
   token refresh keeps the same user). Leaving UNKNOWN counts as a
   change, so a page waiting on the watcher loads once the session is
   known, signed in or not.
2. When a fetch completes, compare the identity it started with against
   the current one. If they differ the result is stale and is dropped;
   the last-resolved identity wins.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

import structlog

from ghub.session.events import Subscription
from ghub.session.resolver import SessionResolver
from ghub.session.state import Identity, SessionState, SessionStatus

logger = structlog.get_logger()

T = TypeVar("T")


def _identity_key(identity: Optional[Identity]) -> Optional[str]:
    return identity.id if identity else None


def _state_key(state: SessionState) -> Optional[str]:
    """None while unresolved, "" for anonymous, otherwise the user id."""
    if state.status is SessionStatus.UNKNOWN:
        return None
    return _identity_key(state.identity) or ""


@dataclass(frozen=True)
class Loaded(Generic[T]):
    value: Optional[T] = None
    stale: bool = False


async def load_for_current(
    resolver: SessionResolver,
    fetch: Callable[[Optional[Identity]], Awaitable[T]],
) -> Loaded[T]:
    """Run `fetch` for the current identity; mark the result stale if the
    identity changed before it finished."""
    started_with = resolver.current_identity()
    value = await fetch(started_with)
    if _identity_key(resolver.current_identity()) != _identity_key(started_with):
        logger.info(
            "session.stale_result_discarded",
            started_with=_identity_key(started_with),
            current=_identity_key(resolver.current_identity()),
        )
        return Loaded(stale=True)
    return Loaded(value=value)


class IdentityWatcher:
    """Calls `on_change(identity)` whenever the resolved identity changes."""

    def __init__(
        self,
        resolver: SessionResolver,
        on_change: Callable[[Optional[Identity]], Any],
    ):
        self.resolver = resolver
        self.on_change = on_change
        self._last_key: Optional[str] = _state_key(resolver.state)
        self._subscription: Optional[Subscription] = resolver.subscribe(self._on_state)

    def _on_state(self, state: SessionState) -> None:
        key = _state_key(state)
        if key == self._last_key:
            return
        self._last_key = key
        self.on_change(state.identity)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
