"""Application configuration loaded from the environment."""

from __future__ import annotations

import os

import msgspec

from .errors import ConfigurationError
from .logging_config import get_logger

logger = get_logger("config")

DEFAULT_SCOPES = [
    "user-read-private",
    "user-read-email",
    "user-top-read",
    "playlist-modify-public",
    "playlist-modify-private",
    "user-read-playback-state",
    "streaming",
]

LOGIN_TTL_SECONDS = 10 * 60
REFRESH_TOKEN_TTL_SECONDS = 30 * 24 * 60 * 60


class CookiePolicy(msgspec.Struct, kw_only=True, frozen=True):
    """Attributes and lifetimes of the session cookies.

    The access-token lifetime is not part of the policy: it always follows
    the ``expires_in`` of the token pair being stored.
    """

    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    path: str = "/"
    domain: str | None = None
    login_ttl: int = LOGIN_TTL_SECONDS
    refresh_token_ttl: int = REFRESH_TOKEN_TTL_SECONDS


class AppConfig(msgspec.Struct, kw_only=True):
    """Server configuration."""

    client_id: str
    redirect_uri: str
    frontend_uri: str = "http://localhost:3000"
    scopes: list[str] = msgspec.field(default_factory=lambda: list(DEFAULT_SCOPES))
    accounts_url: str = "https://accounts.spotify.com"
    api_url: str = "https://api.spotify.com/v1"
    environment: str = "development"
    http_timeout: float = 10.0
    port: int = 5000
    post_login_path: str = "/create-playlist"

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ConfigurationError("SPOTIFY_CLIENT_ID is required")
        if not self.redirect_uri:
            raise ConfigurationError("SPOTIFY_REDIRECT_URI is required")
        self.frontend_uri = self.frontend_uri.rstrip("/")
        self.accounts_url = self.accounts_url.rstrip("/")
        self.api_url = self.api_url.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def authorize_url(self) -> str:
        return f"{self.accounts_url}/authorize"

    def cookie_policy(self) -> CookiePolicy:
        """Cookie policy for this deployment; cookies are secure in production."""
        return CookiePolicy(secure=self.is_production)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig from environment variables.

        Required environment variables:
            SPOTIFY_CLIENT_ID: Spotify application client ID
            SPOTIFY_REDIRECT_URI: Callback URL registered with Spotify

        Optional environment variables:
            FRONTEND_URI: Browser app URL (default: http://localhost:3000)
            SPOTIFY_SCOPES: Comma-separated scopes (default: DEFAULT_SCOPES)
            SPOTIFY_ACCOUNTS_URL: Accounts service (default: https://accounts.spotify.com)
            SPOTIFY_API_URL: Web API base (default: https://api.spotify.com/v1)
            ENVIRONMENT: 'production' enables secure cookies (default: development)
            HTTP_TIMEOUT_SECONDS: Upstream request timeout (default: 10)
            PORT: HTTP port (default: 5000)

        Raises:
            ConfigurationError: If a required variable is missing or a
                numeric variable does not parse
        """
        client_id = os.getenv("SPOTIFY_CLIENT_ID", "")
        redirect_uri = os.getenv("SPOTIFY_REDIRECT_URI", "")

        scopes_str = os.getenv("SPOTIFY_SCOPES")
        if scopes_str is None:
            scopes = list(DEFAULT_SCOPES)
        else:
            scopes = [s.strip() for s in scopes_str.split(",") if s.strip()]

        try:
            http_timeout = float(os.getenv("HTTP_TIMEOUT_SECONDS") or "10")
            port = int(os.getenv("PORT") or "5000")
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        config = cls(
            client_id=client_id,
            redirect_uri=redirect_uri,
            frontend_uri=os.getenv("FRONTEND_URI", "http://localhost:3000"),
            scopes=scopes,
            accounts_url=os.getenv(
                "SPOTIFY_ACCOUNTS_URL", "https://accounts.spotify.com"
            ),
            api_url=os.getenv("SPOTIFY_API_URL", "https://api.spotify.com/v1"),
            environment=os.getenv("ENVIRONMENT", "development"),
            http_timeout=http_timeout,
            port=port,
        )

        logger.debug(
            "Loaded config: accounts_url=%s, api_url=%s, environment=%s",
            config.accounts_url,
            config.api_url,
            config.environment,
        )
        return config
