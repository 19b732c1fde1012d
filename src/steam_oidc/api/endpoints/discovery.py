"""Provider metadata and public keys."""

from __future__ import annotations

from fastapi import APIRouter

from steam_oidc.api.dependencies import KeyManagerDep, SettingsDep
from steam_oidc.schemas import DiscoveryDocument

router = APIRouter(tags=["discovery"])


@router.get(
    "/.well-known/openid-configuration",
    summary="OpenID Connect discovery document",
    response_model=DiscoveryDocument,
)
async def openid_configuration(settings: SettingsDep) -> DiscoveryDocument:
    return DiscoveryDocument.for_issuer(settings.issuer_url)


@router.get("/jwks", summary="JSON Web Key Set")
async def jwks(key_manager: KeyManagerDep) -> dict[str, list[dict[str, str]]]:
    """Return the public signing key. The private component is never exported."""
    return key_manager.get_jwks()
