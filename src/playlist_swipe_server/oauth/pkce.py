"""PKCE (Proof Key for Code Exchange) utilities.

Implements the client side of RFC 7636 with the S256 challenge method,
plus the anti-CSRF ``state`` value sent alongside it.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

# RFC 7636 section 4.1 unreserved characters
VERIFIER_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
)
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128
DEFAULT_VERIFIER_LENGTH = 64

MIN_STATE_BYTES = 16


def generate_verifier(length: int = DEFAULT_VERIFIER_LENGTH) -> str:
    """Generate a random code_verifier.

    Args:
        length: Requested length. Values outside [43, 128] are clamped
            to the nearest bound.

    Returns:
        str: Verifier made of unreserved URI characters

    Example:
        >>> len(generate_verifier(10))
        43
    """
    length = max(MIN_VERIFIER_LENGTH, min(MAX_VERIFIER_LENGTH, length))
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def derive_challenge(code_verifier: str) -> str:
    """Compute the S256 code_challenge from a code_verifier.

    Args:
        code_verifier: The code verifier string

    Returns:
        str: BASE64URL(SHA256(code_verifier)) without padding

    Raises:
        TypeError: If code_verifier is not a string
    """
    if not isinstance(code_verifier, str):
        raise TypeError(
            f"code_verifier must be str, not {type(code_verifier).__name__}"
        )
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_state(byte_length: int = MIN_STATE_BYTES) -> str:
    """Generate a hex-encoded state token for CSRF binding.

    Never uses fewer than 16 random bytes (128 bits).
    """
    return secrets.token_hex(max(MIN_STATE_BYTES, byte_length))


def states_match(received: str | None, expected: str | None) -> bool:
    """Compare callback state against the issued state in constant time."""
    if not received or not expected:
        return False
    return secrets.compare_digest(received.encode(), expected.encode())
