"""Deterministic Ed25519 signing keys and JWT issuance."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import jwt
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from steam_oidc.core.errors import KeyManagerError
from steam_oidc.core.security import b64url_encode
from steam_oidc.schemas import IdTokenClaims

logger = logging.getLogger(__name__)

KEY_ID = "steam-oidc-key-1"
ALGORITHM = "EdDSA"
SEED_LENGTH = 32

# Domain separation labels for the seed derivation. Changing either one
# changes the published JWKS.
KDF_CONTEXT_LABEL = b"steam-oidc-provider"
KDF_PURPOSE_LABEL = b"ed25519-seed"


def derive_seed(secret: str) -> bytes:
    """Derive the 32-byte Ed25519 seed for `secret` with HKDF-SHA256."""
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=SEED_LENGTH,
        salt=KDF_CONTEXT_LABEL,
        info=KDF_PURPOSE_LABEL,
    )
    return hkdf.derive(secret.encode("utf-8"))


def derive_keypair(secret: str) -> tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    """Return the keypair for `secret`; the same secret always yields the same keys."""
    private_key = Ed25519PrivateKey.from_private_bytes(derive_seed(secret))
    return private_key, private_key.public_key()


def public_jwk(public_key: Ed25519PublicKey) -> dict[str, str]:
    """Export a public key as an OKP JWK. Never includes the private `d` member."""
    raw = public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return {
        "kty": "OKP",
        "crv": "Ed25519",
        "x": b64url_encode(raw),
        "kid": KEY_ID,
        "use": "sig",
        "alg": ALGORITHM,
    }


class KeyManager:
    """Holds the provider signing key and signs ID and access tokens.

    The key is re-derived from the configured secret on every start, so the
    JWKS is stable across restarts and across instances without persisting
    the private key.
    """

    def __init__(self, issuer: str, access_token_ttl: int) -> None:
        self._issuer = issuer
        self._access_token_ttl = access_token_ttl
        self._private_key: Ed25519PrivateKey | None = None
        self._public_key: Ed25519PublicKey | None = None
        self._public_jwk: dict[str, str] | None = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._private_key is not None

    def initialize(self, secret: str) -> None:
        """Derive the signing keypair from `secret`. Repeated calls are no-ops.

        Raises:
            KeyManagerError: If the key cannot be derived. The provider cannot
                serve traffic in that case.
        """
        with self._lock:
            if self._private_key is not None:
                return
            try:
                private_key, public_key = derive_keypair(secret)
                jwk = public_jwk(public_key)
            except (TypeError, ValueError) as err:
                raise KeyManagerError(f"Failed to initialize signing key: {err}") from err
            self._private_key = private_key
            self._public_key = public_key
            self._public_jwk = jwk
        logger.info("Signing key %s initialized", KEY_ID)

    def _require_private_key(self) -> Ed25519PrivateKey:
        if self._private_key is None:
            raise KeyManagerError("Key manager not initialized")
        return self._private_key

    def _sign(self, payload: dict[str, Any]) -> str:
        token: str = jwt.encode(
            payload,
            self._require_private_key(),
            algorithm=ALGORITHM,
            headers={"kid": KEY_ID, "typ": "JWT"},
        )
        return token

    def sign_id_token(self, claims: IdTokenClaims) -> str:
        """Sign an ID token carrying the supplied claims."""
        return self._sign(claims.model_dump(exclude_none=True))

    def sign_access_token(self, subject_id: str, *, issued_at: int | None = None) -> str:
        """Sign an access token carrying only sub, iss, iat and exp.

        The credential store, not the embedded expiry, decides validity.
        """
        now = int(time.time()) if issued_at is None else issued_at
        return self._sign(
            {
                "sub": subject_id,
                "iss": self._issuer,
                "iat": now,
                "exp": now + self._access_token_ttl,
            }
        )

    def verify_token(self, token: str, *, audience: str | None = None) -> dict[str, Any]:
        """Verify signature, issuer and expiry of a token issued by this provider.

        Raises:
            jwt.InvalidTokenError: If the token does not verify.
        """
        self._require_private_key()
        options = {"verify_aud": audience is not None}
        claims: dict[str, Any] = jwt.decode(
            token,
            self._public_key,
            algorithms=[ALGORITHM],
            issuer=self._issuer,
            audience=audience,
            options=options,
        )
        return claims

    def get_jwks(self) -> dict[str, list[dict[str, str]]]:
        """Return the public key set published at /jwks."""
        if self._public_jwk is None:
            raise KeyManagerError("Key manager not initialized")
        return {"keys": [dict(self._public_jwk)]}
