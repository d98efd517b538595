"""Route guard — blocks protected views until the session is known.

Learn: The guard holds no session state of its own. It looks at the
resolver's current state on every render:
- UNKNOWN → loading indicator, nothing else happens
- ANONYMOUS → one redirect to the sign-in entry point, render nothing
- AUTHENTICATED → render the protected content

"One redirect" is tracked per resolved state object, so re-rendering
while still anonymous does not loop, but signing in and out again gets
a fresh redirect.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from ghub.session.resolver import SessionResolver
from ghub.session.state import Identity, SessionState, SessionStatus

logger = structlog.get_logger()


class GuardView(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    CONTENT = "content"


@dataclass(frozen=True)
class GuardResult:
    view: GuardView
    content: Any = None
    redirect_to: Optional[str] = None


class RouteGuard:
    def __init__(
        self,
        resolver: SessionResolver,
        navigate: Callable[[str], None],
        sign_in_path: str = "/login",
    ):
        self.resolver = resolver
        self.navigate = navigate
        self.sign_in_path = sign_in_path
        self._redirected_for: Optional[SessionState] = None

    def render(self, protected: Callable[[Identity], Any]) -> GuardResult:
        state = self.resolver.state

        if state.status is SessionStatus.UNKNOWN:
            return GuardResult(GuardView.LOADING)

        if state.status is SessionStatus.ANONYMOUS:
            if self._redirected_for is not state:
                self._redirected_for = state
                logger.info("guard.redirect", to=self.sign_in_path)
                self.navigate(self.sign_in_path)
            return GuardResult(GuardView.REDIRECT, redirect_to=self.sign_in_path)

        return GuardResult(GuardView.CONTENT, content=protected(state.identity))

    async def guard(self, protected: Callable[[Identity], Any]) -> GuardResult:
        """Wait for resolution, then render."""
        await self.resolver.wait_until_resolved()
        return self.render(protected)
