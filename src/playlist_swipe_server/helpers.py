"""Helpers for endpoints protected by ``require_session``.

Usage:
    from .helpers import get_access_token

    @require_session
    async def playlist_details(request: Request) -> Response:
        token = get_access_token(request)
        ...
"""

from __future__ import annotations

from starlette.requests import Request

from .errors import UnauthenticatedError
from .logging_config import get_logger
from .spotify import SpotifyClient, SpotifyUser

logger = get_logger("helpers")


def get_access_token(request: Request) -> str:
    """Get the access token the guard attached to the request.

    Raises:
        UnauthenticatedError: If the endpoint did not run behind the guard
    """
    token = getattr(request.state, "access_token", None)
    if not token:
        logger.error("Protected operation called without a guarded session")
        raise UnauthenticatedError()
    return token


async def get_current_user(request: Request) -> SpotifyUser:
    """Get the profile for the guarded request.

    Reuses the profile from the guard's identity check when there was one;
    after a refresh the profile is fetched with the new token.
    """
    user: SpotifyUser | None = getattr(request.state, "user", None)
    if user is not None:
        return user

    spotify: SpotifyClient = request.app.state.spotify
    return await spotify.get_current_user(get_access_token(request))
