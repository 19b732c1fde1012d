# src/steam_oidc/services/__init__.py
"""Protocol services for the provider."""

from .flow import AuthorizationFlow, AuthorizeResult
from .keys import KeyManager
from .openid import SteamOpenIdClient
from .state import StateCodec
from .steam import ProfileCache, SteamProfileClient
from .storage import CredentialStore, create_credential_store

__all__ = [
    "AuthorizationFlow",
    "AuthorizeResult",
    "CredentialStore",
    "KeyManager",
    "ProfileCache",
    "StateCodec",
    "SteamOpenIdClient",
    "SteamProfileClient",
    "create_credential_store",
]
