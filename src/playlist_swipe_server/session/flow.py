"""Login, callback, session status and logout operations."""

from __future__ import annotations

import msgspec
from starlette.responses import Response

from ..config import AppConfig
from ..errors import (
    AuthorizationDeniedError,
    CsrfMismatchError,
    MissingVerifierError,
    UpstreamError,
)
from ..logging_config import get_logger
from ..oauth.authorize import build_authorization_url
from ..oauth.pkce import derive_challenge, generate_state, generate_verifier, states_match
from ..oauth.token_client import TokenExchangeClient
from ..spotify import SpotifyClient, SpotifyUser, TokenPair
from .cookies import SessionCookies, SessionTransport

logger = get_logger("session.flow")


class LoginRequest(msgspec.Struct, kw_only=True, frozen=True):
    auth_url: str
    code_verifier: str
    state: str


class SessionStatus(msgspec.Struct, kw_only=True, omit_defaults=True):
    authenticated: bool
    user: SpotifyUser | None = None


class AuthFlow:
    """The PKCE login handshake and session lifecycle.

    Each operation is request-scoped; all state lives in the cookies handed
    in and written out.
    """

    def __init__(
        self,
        config: AppConfig,
        spotify: SpotifyClient,
        token_client: TokenExchangeClient,
        transport: SessionTransport,
    ):
        self.config = config
        self.spotify = spotify
        self.token_client = token_client
        self.transport = transport

    def login(self) -> LoginRequest:
        """Start a login attempt with a fresh verifier and state.

        The caller returns ``auth_url`` to the browser and passes the result
        to ``stash_login`` on the same response.
        """
        code_verifier = generate_verifier()
        state = generate_state()

        auth_url = build_authorization_url(
            self.config.client_id,
            self.config.redirect_uri,
            derive_challenge(code_verifier),
            state,
            self.config.scopes,
            authorize_url=self.config.authorize_url,
        )
        logger.info("Login started: scopes=%d", len(self.config.scopes))
        return LoginRequest(auth_url=auth_url, code_verifier=code_verifier, state=state)

    def stash_login(self, response: Response, login: LoginRequest) -> None:
        self.transport.stash_login(response, login.code_verifier, login.state)

    async def callback(
        self,
        cookies: SessionCookies,
        code: str | None,
        state: str | None,
        error: str | None = None,
    ) -> TokenPair:
        """Complete a login attempt.

        The caller must clear the login cookies whatever the outcome, so the
        verifier is never reused.

        Returns:
            TokenPair to persist

        Raises:
            AuthorizationDeniedError: Spotify returned an error or no code
            CsrfMismatchError: state differs from the one issued at login
            MissingVerifierError: no stashed verifier (expired or cleared)
            TokenExchangeError: Spotify rejected the code exchange
        """
        if error:
            logger.warning("Authorization denied by Spotify: error=%s", error)
            raise AuthorizationDeniedError()

        if not states_match(state, cookies.auth_state):
            logger.warning("Callback state mismatch")
            raise CsrfMismatchError()

        if not cookies.code_verifier:
            logger.warning("Callback without stashed code verifier")
            raise MissingVerifierError()

        if not code:
            logger.warning("Callback without authorization code")
            raise AuthorizationDeniedError("Missing authorization code")

        return await self.token_client.exchange_code_for_tokens(
            code, cookies.code_verifier
        )

    async def current_session(self, cookies: SessionCookies) -> SessionStatus:
        """Report whether the access-token cookie identifies a user.

        Never raises for "not authenticated".

        Raises:
            UpstreamError: Spotify failed for a reason other than a rejected token
        """
        if not cookies.access_token:
            return SessionStatus(authenticated=False)

        try:
            user = await self.spotify.get_current_user(cookies.access_token)
        except UpstreamError as e:
            if e.is_unauthorized:
                return SessionStatus(authenticated=False)
            raise

        return SessionStatus(authenticated=True, user=user)

    def logout(self, response: Response) -> None:
        """Drop both token cookies. Safe to call without a session."""
        self.transport.clear_tokens(response)
        logger.info("Session cookies cleared")
