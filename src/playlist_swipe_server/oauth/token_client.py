"""Authorization code exchange and access token refresh.

Both operations are public-client PKCE grants: the client_id travels in the
form body and no client secret is used. Neither operation retries;
authorization codes are single-use and a failed refresh ends the session.
"""

from __future__ import annotations

from ..errors import TokenExchangeError, TokenRefreshError, UpstreamError
from ..logging_config import get_logger
from ..spotify import SpotifyClient, TokenPair

logger = get_logger("oauth.token_client")


class TokenExchangeClient:
    """Swaps authorization codes and refresh tokens for access tokens."""

    def __init__(self, spotify: SpotifyClient, client_id: str, redirect_uri: str):
        self.spotify = spotify
        self.client_id = client_id
        self.redirect_uri = redirect_uri

    async def exchange_code_for_tokens(self, code: str, code_verifier: str) -> TokenPair:
        """Exchange an authorization code for a token pair.

        Args:
            code: Authorization code from the callback
            code_verifier: Verifier stashed when the login started

        Returns:
            TokenPair issued by Spotify

        Raises:
            TokenExchangeError: If Spotify rejects the exchange or is unreachable
        """
        form = {
            "client_id": self.client_id,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "code_verifier": code_verifier,
        }
        try:
            pair = await self.spotify.request_token(form)
        except UpstreamError as e:
            raise TokenExchangeError(
                str(e), status_code=e.status_code, body=e.body
            ) from e

        logger.info(
            "Authorization code exchanged: expires_in=%d, refresh_token=%s",
            pair.expires_in,
            "yes" if pair.refresh_token else "no",
        )
        return pair

    async def refresh_access_token(self, refresh_token: str) -> TokenPair:
        """Obtain a new access token from a refresh token.

        The returned pair's refresh_token is None when Spotify did not rotate
        it; callers keep the previous one in that case.

        Raises:
            TokenRefreshError: If Spotify rejects the refresh or is unreachable
        """
        form = {
            "client_id": self.client_id,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        try:
            pair = await self.spotify.request_token(form)
        except UpstreamError as e:
            raise TokenRefreshError(
                str(e), status_code=e.status_code, body=e.body
            ) from e

        logger.info(
            "Access token refreshed: expires_in=%d, rotated=%s",
            pair.expires_in,
            pair.refresh_token is not None,
        )
        return pair
