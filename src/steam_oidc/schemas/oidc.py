"""Pydantic schemas for the OIDC protocol records and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

STEAM_ID_PATTERN = r"^\d{17}$"


class AuthorizationCode(BaseModel):
    """A one-time-redeemable authorization grant."""

    code: str = Field(..., min_length=1)
    subject_id: str = Field(..., pattern=STEAM_ID_PATTERN, description="64-bit Steam id")
    client_id: str = Field(..., min_length=1)
    redirect_uri: str = Field(..., min_length=1)
    nonce: str | None = None
    code_challenge: str | None = None
    code_challenge_method: Literal["S256"] | None = None
    created_at: AwareDatetime
    expires_at: AwareDatetime

    model_config = ConfigDict(frozen=True)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class AccessToken(BaseModel):
    """An issued bearer credential; the token string is the lookup key."""

    token: str = Field(..., min_length=1)
    subject_id: str = Field(..., pattern=STEAM_ID_PATTERN, description="64-bit Steam id")
    created_at: AwareDatetime
    expires_at: AwareDatetime

    model_config = ConfigDict(frozen=True)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class AuthState(BaseModel):
    """Authorization request context carried in the signed state cookie."""

    state: str | None = None
    nonce: str | None = None
    redirect_uri: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    code_challenge: str | None = None
    code_challenge_method: Literal["S256"] | None = None


class IdTokenClaims(BaseModel):
    """Claims embedded in a signed ID token."""

    iss: str
    sub: str
    aud: str
    iat: int
    exp: int
    nonce: str | None = None
    name: str
    picture: str
    preferred_username: str


class TokenRequest(BaseModel):
    """Token endpoint parameters, from a form or JSON body."""

    grant_type: str | None = None
    code: str | None = None
    redirect_uri: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    code_verifier: str | None = None

    model_config = ConfigDict(extra="ignore")


class TokenResponse(BaseModel):
    access_token: str
    token_type: Literal["Bearer"] = "Bearer"
    expires_in: int
    id_token: str


class UserInfoResponse(BaseModel):
    sub: str
    name: str
    picture: str
    preferred_username: str


class ErrorResponse(BaseModel):
    error: str
    error_description: str | None = None


class DiscoveryDocument(BaseModel):
    """OpenID Provider metadata published at the well-known endpoint."""

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: str
    jwks_uri: str
    response_types_supported: list[str] = ["code"]
    subject_types_supported: list[str] = ["public"]
    id_token_signing_alg_values_supported: list[str] = ["EdDSA"]
    scopes_supported: list[str] = ["openid", "profile"]
    token_endpoint_auth_methods_supported: list[str] = [
        "client_secret_post",
        "client_secret_basic",
    ]
    claims_supported: list[str] = ["sub", "name", "picture", "preferred_username"]
    grant_types_supported: list[str] = ["authorization_code"]
    code_challenge_methods_supported: list[str] = ["S256"]

    @classmethod
    def for_issuer(cls, issuer: str) -> DiscoveryDocument:
        return cls(
            issuer=issuer,
            authorization_endpoint=f"{issuer}/authorize",
            token_endpoint=f"{issuer}/token",
            userinfo_endpoint=f"{issuer}/userinfo",
            jwks_uri=f"{issuer}/jwks",
        )
