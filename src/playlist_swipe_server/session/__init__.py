"""Cookie-backed sessions: transport, auth guard and login flow."""

from .cookies import SessionCookies, SessionTransport
from .flow import AuthFlow, LoginRequest, SessionStatus
from .guard import GuardResult, GuardState, SessionGuard, require_session

__all__ = [
    "SessionCookies",
    "SessionTransport",
    "AuthFlow",
    "LoginRequest",
    "SessionStatus",
    "GuardResult",
    "GuardState",
    "SessionGuard",
    "require_session",
]
