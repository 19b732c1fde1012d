"""Shared API dependencies resolving the collaborators built at startup."""

from typing import Annotated, Any

from fastapi import Depends, Request

from steam_oidc.core.settings import Settings
from steam_oidc.schemas import ErrorResponse
from steam_oidc.services import AuthorizationFlow, KeyManager, SteamOpenIdClient

STATE_COOKIE = "oidc_state"
STATE_COOKIE_MAX_AGE = 600  # 10 minutes


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_flow(request: Request) -> AuthorizationFlow:
    return request.app.state.flow


def get_key_manager(request: Request) -> KeyManager:
    return request.app.state.key_manager


def get_openid_client(request: Request) -> SteamOpenIdClient:
    return request.app.state.openid_client


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
FlowDep = Annotated[AuthorizationFlow, Depends(get_flow)]
KeyManagerDep = Annotated[KeyManager, Depends(get_key_manager)]
OpenIdClientDep = Annotated[SteamOpenIdClient, Depends(get_openid_client)]


def error_responses(*status_codes: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI `responses` entry documenting the JSON error body for each status."""
    return {code: {"model": ErrorResponse} for code in status_codes}


def request_protocol(request: Request, settings: Settings) -> str:
    """Return the scheme the client used, trusting proxies only when configured."""
    if settings.trusted_proxy:
        forwarded = request.headers.get("x-forwarded-proto", "").split(",")[0].strip()
        if forwarded in ("http", "https"):
            return forwarded
    return request.url.scheme


def is_secure_request(request: Request, settings: Settings) -> bool:
    return request_protocol(request, settings) == "https"


def external_url(request: Request, settings: Settings) -> str:
    """Reconstruct the full URL the client requested."""
    url = request.url.replace(scheme=request_protocol(request, settings))
    if settings.trusted_proxy:
        forwarded_host = request.headers.get("x-forwarded-host", "").split(",")[0].strip()
        if forwarded_host:
            url = url.replace(netloc=forwarded_host)
    return str(url)
