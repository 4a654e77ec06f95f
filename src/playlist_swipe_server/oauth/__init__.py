"""OAuth module for Playlist Swipe.

Client side of the Spotify authorization-code flow with PKCE:

- PKCE utilities: generate_verifier, derive_challenge, generate_state
- build_authorization_url: the browser redirect target for consent
- TokenExchangeClient: code exchange and access token refresh

The flow is a public-client flow; no client secret is held.
"""

from .authorize import build_authorization_url
from .pkce import derive_challenge, generate_state, generate_verifier
from .token_client import TokenExchangeClient

__all__ = [
    # PKCE utilities
    "generate_verifier",
    "derive_challenge",
    "generate_state",
    # Authorization URL
    "build_authorization_url",
    # Token exchange
    "TokenExchangeClient",
]
