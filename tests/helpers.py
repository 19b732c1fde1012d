# tests/helpers.py
"""Constants and builders shared by the test modules."""
from __future__ import annotations

import base64
import json
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import parse_qs, urlsplit

from steam_oidc.core.settings import Settings
from steam_oidc.schemas import AccessToken, AuthorizationCode, SteamProfile

TEST_CLIENT_ID = "C1"
TEST_CLIENT_SECRET = "client-secret-value"
TEST_REDIRECT_URI = "https://cb"
SECOND_REDIRECT_URI = "https://app.example.com/oidc/callback"
TEST_SECRET = "0123456789abcdef0123456789abcdef-test-signing-secret"
TEST_ISSUER = "http://testserver"
TEST_STEAM_ID = "76561198000000001"
STEAM_AUTH_URL = "https://steamcommunity.com/openid/login?openid.mode=checkid_setup"


def make_settings(**overrides: Any) -> Settings:
    """Build settings that do not depend on the developer's environment."""
    values: dict[str, Any] = {
        "STEAM_API_KEY": "test-steam-api-key",
        "CLIENT_ID": TEST_CLIENT_ID,
        "CLIENT_SECRET": TEST_CLIENT_SECRET,
        "ISSUER_URL": TEST_ISSUER,
        "REDIRECT_URIS": f"{TEST_REDIRECT_URI},{SECOND_REDIRECT_URI}",
        "JWT_SECRET": TEST_SECRET,
        "REDIS_URL": None,
        "BASE_PATH": "/",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_profile(steam_id: str = TEST_STEAM_ID, name: str = "Gordon") -> SteamProfile:
    return SteamProfile(
        steamid=steam_id,
        personaname=name,
        avatar="https://avatars.example.com/a.jpg",
        avatarmedium="https://avatars.example.com/a_medium.jpg",
        avatarfull="https://avatars.example.com/a_full.jpg",
        profileurl=f"https://steamcommunity.com/profiles/{steam_id}/",
    )


def authorize_params(**overrides: str) -> dict[str, str]:
    params = {
        "client_id": TEST_CLIENT_ID,
        "redirect_uri": TEST_REDIRECT_URI,
        "response_type": "code",
        "state": "client-state-123",
        "nonce": "n-0S6_WzA2Mj",
    }
    params.update(overrides)
    return params


def token_form(code: str, **overrides: str) -> dict[str, str]:
    form = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": TEST_REDIRECT_URI,
        "client_id": TEST_CLIENT_ID,
        "client_secret": TEST_CLIENT_SECRET,
    }
    form.update(overrides)
    return form


def basic_auth(client_id: str, client_secret: str) -> dict[str, str]:
    encoded = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode()
    return {"Authorization": f"Basic {encoded}"}


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def jwt_segments(token: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return the decoded header and payload of a compact JWT without verifying it."""
    header, payload, _signature = token.split(".")
    return json.loads(_b64url_decode(header)), json.loads(_b64url_decode(payload))


def make_code(
    code: str = "code-1",
    ttl: float = 300,
    now: datetime | None = None,
) -> AuthorizationCode:
    now = now or datetime.now(UTC)
    return AuthorizationCode(
        code=code,
        subject_id=TEST_STEAM_ID,
        client_id=TEST_CLIENT_ID,
        redirect_uri=TEST_REDIRECT_URI,
        nonce="n",
        created_at=now,
        expires_at=now + timedelta(seconds=ttl),
    )


def make_token(
    token: str = "token-1",
    ttl: float = 3600,
    now: datetime | None = None,
) -> AccessToken:
    now = now or datetime.now(UTC)
    return AccessToken(
        token=token,
        subject_id=TEST_STEAM_ID,
        created_at=now,
        expires_at=now + timedelta(seconds=ttl),
    )


class FakeClock:
    """Settable UTC clock for stores that take an injected clock."""

    def __init__(self) -> None:
        self.now = datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def obtain_code(client: Any, **params: str) -> str:
    """Drive /authorize and /callback through a TestClient and return the issued code."""
    client.get("/authorize", params=authorize_params(**params))
    response = client.get("/callback", params={"openid.mode": "id_res"})
    location = response.headers["location"]
    return parse_qs(urlsplit(location).query)["code"][0]
