"""Session resolution and route guarding.

Learn: Everything a page needs to know about the caller flows from the
single SessionResolver. Nothing outside this package mutates session
state.
"""

from ghub.session.guard import GuardResult, GuardView, RouteGuard
from ghub.session.resolver import SessionResolver
from ghub.session.state import Identity, SessionState, SessionStatus

__all__ = [
    "GuardResult",
    "GuardView",
    "Identity",
    "RouteGuard",
    "SessionResolver",
    "SessionState",
    "SessionStatus",
]
