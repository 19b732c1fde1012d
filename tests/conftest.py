# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tests.helpers import (
    STEAM_AUTH_URL,
    TEST_CLIENT_ID,
    TEST_CLIENT_SECRET,
    TEST_ISSUER,
    TEST_REDIRECT_URI,
    TEST_SECRET,
    TEST_STEAM_ID,
    make_profile,
    make_settings,
)

os.environ.setdefault("STEAM_API_KEY", "test-steam-api-key")
os.environ.setdefault("CLIENT_ID", TEST_CLIENT_ID)
os.environ.setdefault("CLIENT_SECRET", TEST_CLIENT_SECRET)
os.environ.setdefault("ISSUER_URL", TEST_ISSUER)
os.environ.setdefault("REDIRECT_URIS", TEST_REDIRECT_URI)
os.environ.setdefault("JWT_SECRET", TEST_SECRET)

from steam_oidc.app import create_app
from steam_oidc.core.settings import Settings
from steam_oidc.services import KeyManager, SteamOpenIdClient, SteamProfileClient
from steam_oidc.services.storage import MemoryCredentialStore


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def key_manager(settings: Settings) -> KeyManager:
    manager = KeyManager(settings.issuer_url, settings.access_token_ttl)
    manager.initialize(settings.jwt_secret)
    return manager


@pytest.fixture()
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture()
def mock_openid_client() -> AsyncMock:
    """Steam OpenID collaborator that vouches for TEST_STEAM_ID by default."""
    client = AsyncMock(spec=SteamOpenIdClient)
    client.get_auth_url.return_value = STEAM_AUTH_URL
    client.verify_assertion.return_value = TEST_STEAM_ID
    client.check_reachability.return_value = True
    return client


@pytest.fixture()
def mock_profile_client() -> AsyncMock:
    client = AsyncMock(spec=SteamProfileClient)
    client.get_profile.return_value = make_profile()
    return client


@pytest.fixture()
def app(
    settings: Settings,
    key_manager: KeyManager,
    store: MemoryCredentialStore,
    mock_openid_client: AsyncMock,
    mock_profile_client: AsyncMock,
) -> FastAPI:
    return create_app(
        settings,
        key_manager=key_manager,
        store=store,
        openid_client=mock_openid_client,
        profile_client=mock_profile_client,
    )


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url=TEST_ISSUER, follow_redirects=False) as test_client:
        yield test_client
