"""Exception hierarchy for the Playlist Swipe server.

Every failure an operation can report is translated into one of these
classes at the boundary of that operation. Raw ``httpx`` exceptions are
never allowed to escape.

    PlaylistSwipeError
    ├── ConfigurationError
    ├── UpstreamError
    ├── LoginFlowError            (callback: redirect to the error page)
    │   ├── AuthorizationDeniedError
    │   ├── CsrfMismatchError
    │   ├── MissingVerifierError
    │   └── TokenExchangeError
    ├── TokenRefreshError
    └── AuthenticationError       (protected calls: HTTP 401)
        ├── UnauthenticatedError
        └── SessionExpiredError
"""

from __future__ import annotations


class PlaylistSwipeError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(PlaylistSwipeError):
    """Required configuration is missing. Fatal at startup."""


class UpstreamError(PlaylistSwipeError):
    """A call to the Spotify service failed.

    Attributes:
        status_code: HTTP status returned upstream, or None when the request
            never produced a response (timeout, connection error).
        body: Response body text, or the transport error message.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class LoginFlowError(PlaylistSwipeError):
    """A login attempt cannot complete.

    ``message`` is short and safe to show to the user.
    """

    message = "Authentication failed"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class AuthorizationDeniedError(LoginFlowError):
    """Spotify redirected back with an ``error`` parameter or no code."""

    message = "Spotify authorization was not granted"


class CsrfMismatchError(LoginFlowError):
    """Callback state does not match the state issued at login."""

    message = "Security check failed during authentication"


class MissingVerifierError(LoginFlowError):
    """Callback arrived without a stashed code verifier (expired or cleared)."""

    message = "Authentication session expired, please try again"


class TokenExchangeError(LoginFlowError):
    """Spotify rejected the authorization code exchange."""

    message = "Could not obtain an access token"

    def __init__(
        self,
        detail: str | None = None,
        status_code: int | None = None,
        body: str = "",
    ):
        super().__init__(detail)
        self.status_code = status_code
        self.body = body


class TokenRefreshError(PlaylistSwipeError):
    """Spotify rejected a refresh token."""

    def __init__(self, detail: str, status_code: int | None = None, body: str = ""):
        super().__init__(detail)
        self.status_code = status_code
        self.body = body


class AuthenticationError(PlaylistSwipeError):
    """A protected operation was called without valid credentials."""

    status_code = 401
    message = "Authentication error. Please log in again."

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class UnauthenticatedError(AuthenticationError):
    """No access token, or the access token was rejected and cannot be refreshed."""

    message = "Not authorized. Please log in again."


class SessionExpiredError(AuthenticationError):
    """The access token expired and refreshing it failed."""

    message = "Session expired. Please log in again."
