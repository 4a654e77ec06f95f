"""Starlette application setup and lifecycle management for Playlist Swipe."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

import httpx
import typer
import uvicorn
from dotenv import load_dotenv
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware

from .config import AppConfig
from .errors import ConfigurationError
from .logging_config import get_logger, setup_logging
from .oauth.token_client import TokenExchangeClient
from .routes import routes
from .session.cookies import SessionTransport
from .session.flow import AuthFlow
from .session.guard import SessionGuard
from .spotify import SpotifyClient

load_dotenv()
setup_logging()

logger = get_logger("server")


def create_app(
    config: AppConfig,
    spotify_transport: httpx.AsyncBaseTransport | None = None,
) -> Starlette:
    """Create and configure the Starlette application.

    Collaborators are built once here and shared through ``app.state``;
    none of them holds per-session state.

    Args:
        config: Application configuration
        spotify_transport: Optional httpx transport for the Spotify client

    Returns:
        Configured Starlette application
    """
    spotify = SpotifyClient(
        accounts_url=config.accounts_url,
        api_url=config.api_url,
        timeout=config.http_timeout,
        transport=spotify_transport,
    )
    token_client = TokenExchangeClient(spotify, config.client_id, config.redirect_uri)
    session_transport = SessionTransport(config.cookie_policy())

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("Starting Playlist Swipe server")
        try:
            yield
        finally:
            logger.info("Shutting down Playlist Swipe server")
            await spotify.close()

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=[config.frontend_uri],
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            )
        ],
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.spotify = spotify
    app.state.session_transport = session_transport
    app.state.guard = SessionGuard(spotify, token_client)
    app.state.auth_flow = AuthFlow(config, spotify, token_client, session_transport)

    logger.debug("Application created: routes=%d", len(routes))
    return app


def _mask_secret(value: str | None) -> str:
    """Mask sensitive values for display."""
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "****"
    return value[:4] + "****" + value[-4:]


def _print_config(config: AppConfig, host: str, port: int) -> None:
    """Print server configuration at startup."""
    sections: list[tuple[str, list[tuple[str, str]]]] = [
        (
            "Server",
            [
                ("Host", host),
                ("Port", str(port)),
                ("Environment", config.environment),
                ("Frontend URI", config.frontend_uri),
            ],
        ),
        (
            "Spotify",
            [
                ("Client ID", _mask_secret(config.client_id)),
                ("Redirect URI", config.redirect_uri),
                ("Accounts URL", config.accounts_url),
                ("API URL", config.api_url),
                ("Scopes", ", ".join(config.scopes) or "(none)"),
                ("Timeout", f"{config.http_timeout:g}s"),
            ],
        ),
        (
            "Cookies",
            [
                ("Secure", "yes" if config.is_production else "no"),
            ],
        ),
    ]

    logger.info("")
    logger.info("=" * 55)
    logger.info("  Playlist Swipe Server Configuration")
    logger.info("=" * 55)

    for section_name, items in sections:
        logger.info("")
        logger.info("  [%s]", section_name)
        for key, value in items:
            logger.info("    %-20s %s", key, value)

    logger.info("")
    logger.info("=" * 55)

    if not config.is_production and config.redirect_uri.startswith("https://"):
        logger.warning("  HTTPS redirect URI with ENVIRONMENT!=production: cookies are not secure")


async def run_server_async(config: AppConfig, host: str, port: int) -> None:
    """Run the server until uvicorn receives a shutdown signal."""
    _print_config(config, host, port)
    app = create_app(config)

    server = uvicorn.Server(
        uvicorn.Config(app, host=host, port=port, log_config=None)
    )
    logger.info("Starting server on %s:%d", host, port)

    try:
        await server.serve()
    except asyncio.CancelledError:
        logger.info("Server task cancelled")


cli = typer.Typer(
    name="playlist-swipe-server",
    help="Playlist Swipe Server - Spotify PKCE login and session backend.",
    add_completion=False,
)


@cli.command()
def main(
    host: Annotated[
        str,
        typer.Option("--host", help="Interface to bind"),
    ] = "127.0.0.1",
    port: Annotated[
        int | None,
        typer.Option(
            "--port",
            "-p",
            help="HTTP port (default: from PORT env or 5000)",
        ),
    ] = None,
) -> None:
    """Run the Playlist Swipe Server."""
    try:
        config = AppConfig.from_env()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        raise typer.Exit(code=1) from e

    actual_port = port or config.port

    try:
        asyncio.run(run_server_async(config, host, actual_port))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    cli()
