"""Spotify HTTP client.

A small accessor for the two upstream calls the auth subsystem makes:

- ``POST {accounts_url}/api/token`` (form-encoded, code exchange and refresh)
- ``GET {api_url}/me`` (bearer, used to validate an access token)

The client holds only static configuration and a connection pool. It is
created once by the application lifespan and passed explicitly to the
components that need it; tests substitute the transport with
``httpx.MockTransport``.
"""

from __future__ import annotations

import httpx
import msgspec

from .errors import UpstreamError
from .logging_config import get_logger, token_preview

logger = get_logger("spotify")


class TokenPair(msgspec.Struct, kw_only=True):
    """Token response from the Spotify accounts service.

    ``refresh_token`` is None when a refresh did not rotate it.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600
    refresh_token: str | None = None
    scope: str | None = None


class SpotifyImage(msgspec.Struct):
    url: str
    height: int | None = None
    width: int | None = None


class SpotifyUser(msgspec.Struct, kw_only=True):
    """Subset of the ``/me`` profile exposed to the frontend."""

    id: str
    display_name: str | None = None
    email: str | None = None
    images: list[SpotifyImage] = []


class SpotifyClient:
    """Async client for the Spotify accounts service and Web API.

    Every request is a single attempt with an explicit timeout. Transport
    failures, non-2xx responses and malformed bodies are all reported as
    UpstreamError; ``httpx`` exceptions never leave this class.
    """

    def __init__(
        self,
        accounts_url: str = "https://accounts.spotify.com",
        api_url: str = "https://api.spotify.com/v1",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            accounts_url: Spotify accounts service base URL
            api_url: Spotify Web API base URL
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.accounts_url = accounts_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def token_url(self) -> str:
        return f"{self.accounts_url}/api/token"

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._http_client is None:
            logger.debug("Creating async HTTP client: timeout=%.1fs", self.timeout)
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def request_token(self, form: dict[str, str]) -> TokenPair:
        """POST a form-encoded grant to the token endpoint.

        Args:
            form: Grant parameters (grant_type, client_id, ...)

        Returns:
            TokenPair decoded from the JSON response

        Raises:
            UpstreamError: On transport failure, non-2xx status, or a body
                that is not a valid token response
        """
        grant_type = form.get("grant_type", "")
        logger.debug("Requesting token: grant_type=%s", grant_type)

        try:
            response = await self._get_client().post(
                self.token_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.error("Token request failed: grant_type=%s, error=%s", grant_type, e)
            raise UpstreamError(f"Token request failed: {e}", body=str(e)) from e

        if not response.is_success:
            logger.warning(
                "Token request rejected: grant_type=%s, status=%d, body=%s",
                grant_type,
                response.status_code,
                response.text,
            )
            raise UpstreamError(
                f"Token endpoint returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return msgspec.json.decode(response.content, type=TokenPair)
        except (msgspec.DecodeError, msgspec.ValidationError) as e:
            logger.error("Malformed token response: %s", e)
            raise UpstreamError(
                f"Malformed token response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def get_current_user(self, access_token: str) -> SpotifyUser:
        """Fetch the profile that owns ``access_token``.

        Raises:
            UpstreamError: With status_code 401 when the token is rejected,
                another status for other upstream errors, or None when the
                request never got a response
        """
        logger.debug("Fetching current user: token=%s", token_preview(access_token))

        try:
            response = await self._get_client().get(
                f"{self.api_url}/me",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            logger.error("Profile request failed: %s", e)
            raise UpstreamError(f"Profile request failed: {e}", body=str(e)) from e

        if response.status_code != 200:
            logger.info("Profile request rejected: status=%d", response.status_code)
            raise UpstreamError(
                f"Profile endpoint returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return msgspec.json.decode(response.content, type=SpotifyUser)
        except (msgspec.DecodeError, msgspec.ValidationError) as e:
            logger.error("Malformed profile response: %s", e)
            raise UpstreamError(
                f"Malformed profile response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
