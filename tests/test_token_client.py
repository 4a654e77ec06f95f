"""Tests for the Spotify client and the token exchange client."""

import httpx
import pytest

from playlist_swipe_server.errors import (
    TokenExchangeError,
    TokenRefreshError,
    UpstreamError,
)
from playlist_swipe_server.oauth.token_client import TokenExchangeClient
from playlist_swipe_server.spotify import SpotifyClient, TokenPair

REDIRECT_URI = "http://localhost:5000/api/auth/callback"


@pytest.fixture
def token_client(spotify_client):
    return TokenExchangeClient(spotify_client, "test-client-id", REDIRECT_URI)


class TestSpotifyClient:
    """Tests for SpotifyClient."""

    def test_trailing_slash_removed(self):
        """Test that trailing slashes are removed from URLs."""
        client = SpotifyClient(
            accounts_url="https://accounts.example.com/",
            api_url="https://api.example.com/v1/",
        )
        assert client.token_url == "https://accounts.example.com/api/token"
        assert client.api_url == "https://api.example.com/v1"

    @pytest.mark.asyncio
    async def test_get_current_user(self, spotify_client, fake_spotify):
        """Test the profile is decoded and unknown fields are ignored."""
        user = await spotify_client.get_current_user("valid-token")

        assert user.id == "user-123"
        assert user.display_name == "Test User"
        assert user.images[0].url == "https://i.scdn.co/image/abc"
        assert fake_spotify.requests[0].headers["authorization"] == "Bearer valid-token"

    @pytest.mark.asyncio
    async def test_get_current_user_unauthorized(self, spotify_client):
        """Test a rejected token is reported as an unauthorized UpstreamError."""
        with pytest.raises(UpstreamError) as exc_info:
            await spotify_client.get_current_user("expired-token")
        assert exc_info.value.is_unauthorized

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, spotify_client, fake_spotify):
        """Test httpx errors never escape the client."""
        fake_spotify.raise_on_request = httpx.ConnectTimeout("timed out")

        with pytest.raises(UpstreamError) as exc_info:
            await spotify_client.get_current_user("valid-token")
        assert exc_info.value.status_code is None
        assert not exc_info.value.is_unauthorized

    @pytest.mark.asyncio
    async def test_close(self, spotify_client):
        """Test closing the client releases the HTTP client."""
        await spotify_client.get_current_user("valid-token")
        assert spotify_client._http_client is not None

        await spotify_client.close()
        assert spotify_client._http_client is None


class TestExchangeCodeForTokens:
    """Tests for the authorization code exchange."""

    @pytest.mark.asyncio
    async def test_success(self, token_client, fake_spotify):
        """Test the form body and the returned pair."""
        pair = await token_client.exchange_code_for_tokens("auth-code", "verifier-abc")

        assert pair == TokenPair(
            access_token="new-access-token",
            token_type="Bearer",
            expires_in=3600,
            refresh_token="new-refresh-token",
            scope="user-read-private user-read-email",
        )
        assert fake_spotify.token_forms == [
            {
                "client_id": "test-client-id",
                "grant_type": "authorization_code",
                "code": "auth-code",
                "redirect_uri": REDIRECT_URI,
                "code_verifier": "verifier-abc",
            }
        ]
        request = fake_spotify.requests[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"

    @pytest.mark.asyncio
    async def test_rejected(self, token_client, fake_spotify):
        """Test an upstream error carries status and body."""
        fake_spotify.token_status = 400
        fake_spotify.token_body = {"error": "invalid_grant"}

        with pytest.raises(TokenExchangeError) as exc_info:
            await token_client.exchange_code_for_tokens("used-code", "verifier")

        assert exc_info.value.status_code == 400
        assert "invalid_grant" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_no_retry(self, token_client, fake_spotify):
        """Test a failed exchange is attempted only once."""
        fake_spotify.token_status = 500

        with pytest.raises(TokenExchangeError):
            await token_client.exchange_code_for_tokens("code", "verifier")
        assert len(fake_spotify.token_forms) == 1

    @pytest.mark.asyncio
    async def test_malformed_body(self, token_client, fake_spotify):
        """Test a 200 response without access_token is an exchange error."""
        fake_spotify.token_body = {"token_type": "Bearer"}

        with pytest.raises(TokenExchangeError):
            await token_client.exchange_code_for_tokens("code", "verifier")

    @pytest.mark.asyncio
    async def test_unreachable(self, token_client, fake_spotify):
        """Test transport failures become TokenExchangeError."""
        fake_spotify.raise_on_request = httpx.ConnectError("refused")

        with pytest.raises(TokenExchangeError) as exc_info:
            await token_client.exchange_code_for_tokens("code", "verifier")
        assert exc_info.value.status_code is None


class TestRefreshAccessToken:
    """Tests for access token refresh."""

    @pytest.mark.asyncio
    async def test_rotated(self, token_client, fake_spotify):
        """Test a refresh that rotates the refresh token."""
        pair = await token_client.refresh_access_token("old-refresh-token")

        assert pair.access_token == "new-access-token"
        assert pair.refresh_token == "new-refresh-token"
        assert fake_spotify.token_forms == [
            {
                "client_id": "test-client-id",
                "grant_type": "refresh_token",
                "refresh_token": "old-refresh-token",
            }
        ]

    @pytest.mark.asyncio
    async def test_not_rotated(self, token_client, fake_spotify):
        """Test a refresh without a new refresh token."""
        fake_spotify.token_body = {"access_token": "fresh", "expires_in": 1800}

        pair = await token_client.refresh_access_token("old-refresh-token")

        assert pair.access_token == "fresh"
        assert pair.expires_in == 1800
        assert pair.refresh_token is None

    @pytest.mark.asyncio
    async def test_rejected(self, token_client, fake_spotify):
        """Test a revoked refresh token raises TokenRefreshError."""
        fake_spotify.token_status = 400
        fake_spotify.token_body = {"error": "invalid_grant"}

        with pytest.raises(TokenRefreshError) as exc_info:
            await token_client.refresh_access_token("revoked")
        assert exc_info.value.status_code == 400
