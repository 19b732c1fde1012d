"""HMAC integrity protection for the authorization state cookie.

The cookie is not encrypted: redirect URI, client id, PKCE challenge, nonce and
the caller's state are not confidential, they only must not be forged.
"""
from __future__ import annotations

import hashlib
import hmac
import json
from collections.abc import Mapping
from typing import Any

from steam_oidc.core.security import b64url_decode, b64url_encode

SEPARATOR = "."


class StateCodec:
    """Signs and verifies `base64url(payload).base64url(hmac_sha256)` blobs."""

    @staticmethod
    def _mac(data: bytes, secret: str) -> str:
        return b64url_encode(hmac.new(secret.encode("utf-8"), data, hashlib.sha256).digest())

    def sign(self, payload: Mapping[str, Any], secret: str) -> str:
        """Serialize `payload` and return the signed blob."""
        data = json.dumps(dict(payload), separators=(",", ":"), sort_keys=True).encode("utf-8")
        return f"{b64url_encode(data)}{SEPARATOR}{self._mac(data, secret)}"

    def verify(self, blob: str, secret: str) -> dict[str, Any] | None:
        """Return the payload of a blob signed with `secret`, or None.

        Malformed input and signature mismatches are indistinguishable to the
        caller.
        """
        parts = blob.split(SEPARATOR)
        if len(parts) != 2:
            return None
        encoded_data, supplied_mac = parts
        try:
            data = b64url_decode(encoded_data)
            expected_mac = self._mac(data, secret)
            if not hmac.compare_digest(supplied_mac.encode("ascii"), expected_mac.encode("ascii")):
                return None
            payload = json.loads(data)
        except (UnicodeError, ValueError):
            return None
        if not isinstance(payload, dict):
            return None
        return payload
