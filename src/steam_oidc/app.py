"""Application factory wiring settings, services and routers together."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlsplit

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from steam_oidc import __version__
from steam_oidc.api import (
    authorize_router,
    callback_router,
    discovery_router,
    health_router,
    token_router,
    userinfo_router,
)
from steam_oidc.api.middleware import SecurityHeadersMiddleware
from steam_oidc.core.errors import register_exception_handlers
from steam_oidc.core.settings import Settings, get_settings
from steam_oidc.services import (
    AuthorizationFlow,
    CredentialStore,
    KeyManager,
    ProfileCache,
    StateCodec,
    SteamOpenIdClient,
    SteamProfileClient,
    create_credential_store,
)

logger = logging.getLogger(__name__)


def _realm(issuer_url: str) -> str:
    parts = urlsplit(issuer_url)
    return f"{parts.scheme}://{parts.netloc}"


def create_app(
    settings: Settings | None = None,
    *,
    key_manager: KeyManager | None = None,
    store: CredentialStore | None = None,
    openid_client: SteamOpenIdClient | None = None,
    profile_client: SteamProfileClient | None = None,
) -> FastAPI:
    """Build the provider application.

    Every collaborator is created here once and shared through ``app.state``;
    tests pass their own instances to get an isolated provider.
    """
    settings = settings or get_settings()

    if key_manager is None:
        key_manager = KeyManager(settings.issuer_url, settings.access_token_ttl)
    # Raises KeyManagerError at startup when no signing key can be derived.
    key_manager.initialize(settings.jwt_secret)

    store = store or create_credential_store(settings)
    openid_client = openid_client or SteamOpenIdClient(
        settings.callback_url,
        _realm(settings.issuer_url),
        timeout_seconds=settings.steam_openid_timeout_seconds,
    )
    profile_client = profile_client or SteamProfileClient(
        settings.steam_api_key,
        timeout_seconds=settings.steam_api_timeout_seconds,
        cache=ProfileCache(
            max_size=settings.profile_cache_max_size,
            ttl_seconds=settings.profile_cache_ttl_seconds,
        ),
    )
    flow = AuthorizationFlow(
        settings,
        key_manager=key_manager,
        store=store,
        verifier=openid_client,
        profiles=profile_client,
        state_codec=StateCodec(),
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info("Issuer URL: %s", settings.issuer_url)
        try:
            yield
        finally:
            logger.info("Shutting down, closing storage and upstream clients")
            await store.close()
            await openid_client.close()
            await profile_client.close()

    app = FastAPI(
        title="Steam OIDC Provider",
        description="OpenID Connect provider backed by Steam OpenID 2.0",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.key_manager = key_manager
    app.state.store = store
    app.state.openid_client = openid_client
    app.state.profile_client = profile_client
    app.state.flow = flow

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=86400,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    register_exception_handlers(app)

    prefix = settings.route_prefix
    app.include_router(discovery_router, prefix=prefix)
    app.include_router(authorize_router, prefix=prefix)
    app.include_router(callback_router, prefix=prefix)
    app.include_router(token_router, prefix=prefix)
    app.include_router(userinfo_router, prefix=prefix)
    app.include_router(health_router, prefix=prefix)
    return app
