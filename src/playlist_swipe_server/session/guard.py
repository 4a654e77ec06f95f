"""Auth guard for protected operations.

Each protected request runs this state machine once:

    NO_TOKEN ─────────────────────────────────────────────► 401 Unauthenticated
    VALIDATING ─► VALID ─────────────────────────────────► proceed
              └─► EXPIRED (401 + refresh token) ─► REFRESHING
                                                  ├─► REFRESHED ──► proceed
                                                  └─► REFRESH_FAILED ─► 401 SessionExpired
    VALIDATING ─► any other failure ─────────────────────► 401 Unauthenticated

Token validity is learned only from the identity check. There is at most one
refresh attempt per request, and concurrent requests from the same browser
are not serialized: the loser of a refresh race gets SessionExpired.

Usage:
    @require_session
    async def create_playlist(request: Request) -> Response:
        token = request.state.access_token
        ...
"""

from __future__ import annotations

import enum
import functools
from typing import Awaitable, Callable

import msgspec
from starlette.requests import Request
from starlette.responses import Response

from ..errors import (
    AuthenticationError,
    SessionExpiredError,
    TokenRefreshError,
    UnauthenticatedError,
    UpstreamError,
)
from ..logging_config import get_logger
from ..oauth.token_client import TokenExchangeClient
from ..responses import JSONResponse
from ..spotify import SpotifyClient, SpotifyUser, TokenPair
from .cookies import SessionCookies, SessionTransport

logger = get_logger("session.guard")

Endpoint = Callable[[Request], Awaitable[Response]]


class GuardState(enum.Enum):
    NO_TOKEN = "no_token"
    VALIDATING = "validating"
    VALID = "valid"
    EXPIRED = "expired"
    REFRESHING = "refreshing"
    REFRESHED = "refreshed"
    REFRESH_FAILED = "refresh_failed"


class GuardResult(msgspec.Struct, kw_only=True):
    """Outcome of a successful guard run.

    Attributes:
        state: VALID or REFRESHED
        access_token: Token the protected operation must use
        user: Profile returned by the identity check (None after a refresh)
        refreshed: New token pair to persist, set only when REFRESHED
    """

    state: GuardState
    access_token: str
    user: SpotifyUser | None = None
    refreshed: TokenPair | None = None


class SessionGuard:
    """Validates, and if needed refreshes, the session of one request."""

    def __init__(self, spotify: SpotifyClient, token_client: TokenExchangeClient):
        self.spotify = spotify
        self.token_client = token_client

    async def check(self, cookies: SessionCookies) -> GuardResult:
        """Run the guard for one request.

        Args:
            cookies: Session cookies sent with the request

        Returns:
            GuardResult for a request that may proceed

        Raises:
            UnauthenticatedError: No token, or a token that was rejected
                and cannot be refreshed
            SessionExpiredError: The refresh attempt failed; the caller
                must clear both token cookies
        """
        if not cookies.access_token:
            logger.debug("Guard state=%s", GuardState.NO_TOKEN.value)
            raise UnauthenticatedError()

        logger.debug("Guard state=%s", GuardState.VALIDATING.value)
        try:
            user = await self.spotify.get_current_user(cookies.access_token)
        except UpstreamError as e:
            if not (e.is_unauthorized and cookies.refresh_token):
                logger.warning(
                    "Access token rejected without refresh path: status=%s",
                    e.status_code,
                )
                raise UnauthenticatedError() from e
            logger.info("Guard state=%s, attempting refresh", GuardState.EXPIRED.value)
        else:
            return GuardResult(
                state=GuardState.VALID,
                access_token=cookies.access_token,
                user=user,
            )

        return await self._refresh(cookies.refresh_token)

    async def _refresh(self, refresh_token: str) -> GuardResult:
        logger.debug("Guard state=%s", GuardState.REFRESHING.value)
        try:
            pair = await self.token_client.refresh_access_token(refresh_token)
        except TokenRefreshError as e:
            logger.warning(
                "Guard state=%s: status=%s",
                GuardState.REFRESH_FAILED.value,
                e.status_code,
            )
            raise SessionExpiredError() from e

        return GuardResult(
            state=GuardState.REFRESHED,
            access_token=pair.access_token,
            refreshed=pair,
        )


def unauthorized_response(error: AuthenticationError) -> JSONResponse:
    """Structured 401 body; the frontend sends the user back to login."""
    return JSONResponse(
        {"error": error.detail, "reason": type(error).__name__},
        status_code=error.status_code,
    )


def require_session(endpoint: Endpoint) -> Endpoint:
    """Protect a Starlette endpoint with the auth guard.

    The guard and session transport are read from ``request.app.state``.
    On success the access token (and verified user, when known) are placed on
    ``request.state`` and any refreshed cookies are written onto the
    endpoint's response.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        guard: SessionGuard = request.app.state.guard
        transport: SessionTransport = request.app.state.session_transport

        try:
            result = await guard.check(transport.read(request))
        except SessionExpiredError as e:
            response = unauthorized_response(e)
            transport.clear_tokens(response)
            return response
        except AuthenticationError as e:
            return unauthorized_response(e)

        request.state.access_token = result.access_token
        request.state.user = result.user

        try:
            response = await endpoint(request)
        except Exception:
            if result.refreshed is None:
                raise
            # Spotify may already have retired the old refresh token
            logger.exception("Guarded endpoint failed after refresh; keeping new tokens")
            response = JSONResponse({"error": "Internal server error"}, status_code=500)

        if result.refreshed is not None:
            transport.store_tokens(response, result.refreshed)
        return response

    return wrapper
