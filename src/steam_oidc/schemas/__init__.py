"""Pydantic schemas for the provider."""

from .oidc import (
    AccessToken,
    AuthorizationCode,
    AuthState,
    DiscoveryDocument,
    ErrorResponse,
    IdTokenClaims,
    TokenRequest,
    TokenResponse,
    UserInfoResponse,
)
from .steam import SteamApiResponse, SteamProfile

__all__ = [
    "AccessToken",
    "AuthState",
    "AuthorizationCode",
    "DiscoveryDocument",
    "ErrorResponse",
    "IdTokenClaims",
    "SteamApiResponse",
    "SteamProfile",
    "TokenRequest",
    "TokenResponse",
    "UserInfoResponse",
]
