"""Cookie-backed session transport.

The cookie jar is the session: the server keeps nothing between requests.
All cookies are http-only; lifetimes come from the CookiePolicy.
"""

from __future__ import annotations

import msgspec
from starlette.requests import Request
from starlette.responses import Response

from ..config import CookiePolicy
from ..spotify import TokenPair

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
CODE_VERIFIER_COOKIE = "code_verifier"
AUTH_STATE_COOKIE = "auth_state"


class SessionCookies(msgspec.Struct, kw_only=True, frozen=True):
    """Cookie values read from one request. Missing or empty cookies are None."""

    access_token: str | None = None
    refresh_token: str | None = None
    code_verifier: str | None = None
    auth_state: str | None = None


class SessionTransport:
    """Reads and writes the session cookies."""

    def __init__(self, policy: CookiePolicy):
        self.policy = policy

    def read(self, request: Request) -> SessionCookies:
        cookies = request.cookies
        return SessionCookies(
            access_token=cookies.get(ACCESS_TOKEN_COOKIE) or None,
            refresh_token=cookies.get(REFRESH_TOKEN_COOKIE) or None,
            code_verifier=cookies.get(CODE_VERIFIER_COOKIE) or None,
            auth_state=cookies.get(AUTH_STATE_COOKIE) or None,
        )

    def _set(self, response: Response, key: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key,
            value,
            max_age=max_age,
            path=self.policy.path,
            domain=self.policy.domain,
            secure=self.policy.secure,
            httponly=self.policy.httponly,
            samesite=self.policy.samesite,
        )

    def _delete(self, response: Response, key: str) -> None:
        # Expire the cookie outright so "no token" never looks like "empty token"
        response.delete_cookie(
            key,
            path=self.policy.path,
            domain=self.policy.domain,
            secure=self.policy.secure,
            httponly=self.policy.httponly,
            samesite=self.policy.samesite,
        )

    def stash_login(self, response: Response, code_verifier: str, state: str) -> None:
        """Store the PKCE verifier and state for the callback."""
        self._set(response, CODE_VERIFIER_COOKIE, code_verifier, self.policy.login_ttl)
        self._set(response, AUTH_STATE_COOKIE, state, self.policy.login_ttl)

    def clear_login(self, response: Response) -> None:
        self._delete(response, CODE_VERIFIER_COOKIE)
        self._delete(response, AUTH_STATE_COOKIE)

    def store_tokens(self, response: Response, pair: TokenPair) -> None:
        """Write a token pair.

        The refresh-token cookie is only written when the pair carries one,
        so a non-rotating refresh leaves the existing cookie in place.
        """
        self._set(response, ACCESS_TOKEN_COOKIE, pair.access_token, pair.expires_in)
        if pair.refresh_token:
            self._set(
                response,
                REFRESH_TOKEN_COOKIE,
                pair.refresh_token,
                self.policy.refresh_token_ttl,
            )

    def clear_tokens(self, response: Response) -> None:
        self._delete(response, ACCESS_TOKEN_COOKIE)
        self._delete(response, REFRESH_TOKEN_COOKIE)
