"""Shared fixtures: a fake Spotify service behind httpx.MockTransport."""

from http.cookies import Morsel, SimpleCookie
from urllib.parse import parse_qs

import httpx
import pytest

from playlist_swipe_server.config import AppConfig
from playlist_swipe_server.spotify import SpotifyClient

TEST_USER = {
    "id": "user-123",
    "display_name": "Test User",
    "email": "test@example.com",
    "images": [{"url": "https://i.scdn.co/image/abc", "height": 64, "width": 64}],
    "country": "BR",
    "product": "premium",
}


class FakeSpotify:
    """Minimal stand-in for the Spotify accounts service and Web API.

    - ``GET /v1/me`` returns TEST_USER for tokens in ``valid_tokens``, 401
      otherwise, or ``me_status`` when set.
    - ``POST /api/token`` returns ``token_status``/``token_body`` and records
      each submitted form in ``token_forms``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_forms: list[dict[str, str]] = []
        self.valid_tokens: set[str] = {"valid-token"}
        self.me_status: int | None = None
        self.token_status = 200
        self.token_body: dict = {
            "access_token": "new-access-token",
            "token_type": "Bearer",
            "expires_in": 3600,
            "refresh_token": "new-refresh-token",
            "scope": "user-read-private user-read-email",
        }
        self.raise_on_request: Exception | None = None

    @property
    def me_calls(self) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith("/me"))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_on_request is not None:
            raise self.raise_on_request

        if request.url.path == "/v1/me":
            if self.me_status is not None:
                return httpx.Response(self.me_status, json={"error": "upstream"})
            token = request.headers.get("authorization", "").removeprefix("Bearer ")
            if token in self.valid_tokens:
                return httpx.Response(200, json=TEST_USER)
            return httpx.Response(
                401,
                json={"error": {"status": 401, "message": "The access token expired"}},
            )

        if request.url.path == "/api/token":
            form = parse_qs(request.content.decode())
            self.token_forms.append({k: v[0] for k, v in form.items()})
            return httpx.Response(self.token_status, json=self.token_body)

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def response_cookies(response: httpx.Response) -> dict[str, Morsel]:
    """Parse every Set-Cookie header of a response."""
    jar: SimpleCookie = SimpleCookie()
    for header in response.headers.get_list("set-cookie"):
        jar.load(header)
    return dict(jar)


def is_deleted(morsel: Morsel) -> bool:
    return morsel["max-age"] == "0"


@pytest.fixture
def fake_spotify() -> FakeSpotify:
    return FakeSpotify()


@pytest.fixture
def spotify_client(fake_spotify: FakeSpotify) -> SpotifyClient:
    return SpotifyClient(transport=fake_spotify.transport)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        client_id="test-client-id",
        redirect_uri="http://localhost:5000/api/auth/callback",
        frontend_uri="http://localhost:3000",
    )
