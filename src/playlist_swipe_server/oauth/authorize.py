"""Spotify authorization URL construction."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlencode

DEFAULT_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    code_challenge: str,
    state: str,
    scopes: Sequence[str] = (),
    authorize_url: str = DEFAULT_AUTHORIZE_URL,
) -> str:
    """Build the URL the browser is sent to for user consent.

    The scope parameter is only included when scopes are given.

    Args:
        client_id: Spotify application client ID
        redirect_uri: Registered callback URL
        code_challenge: S256 challenge derived from the login's verifier
        state: Anti-CSRF state issued for this login
        scopes: Requested permission scopes
        authorize_url: Authorization endpoint

    Returns:
        str: Fully formed authorization URL
    """
    params = {
        "client_id": client_id,
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "code_challenge_method": "S256",
        "code_challenge": code_challenge,
        "state": state,
    }
    if scopes:
        params["scope"] = " ".join(scopes)

    return f"{authorize_url}?{urlencode(params)}"
