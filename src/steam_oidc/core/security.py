"""Low-level cryptographic helpers shared by the protocol services."""
from __future__ import annotations

import base64
import hashlib
import secrets

CODE_BYTES = 32  # 256 bits


def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(data: str) -> bytes:
    """Decode unpadded URL-safe base64.

    Raises:
        ValueError: If the input is not canonical base64url text.
    """
    raw = data.encode("ascii")
    padding = b"=" * (-len(raw) % 4)
    decoded = base64.b64decode(raw + padding, altchars=b"-_", validate=True)
    # Reject encodings that only differ in the unused trailing bits.
    if b64url_encode(decoded) != data:
        raise ValueError("Non-canonical base64url encoding")
    return decoded


def generate_code(num_bytes: int = CODE_BYTES) -> str:
    """Return a random base64url token with `num_bytes` of entropy."""
    return secrets.token_urlsafe(num_bytes)


def safe_compare(left: str, right: str) -> bool:
    """Compare two strings in constant time."""
    return secrets.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


def pkce_s256(code_verifier: str) -> str:
    """Return the S256 PKCE challenge for a verifier."""
    return b64url_encode(hashlib.sha256(code_verifier.encode("utf-8")).digest())
