# tests/api/test_end_to_end.py
"""Full sign-in scenarios across every endpoint."""

import base64

from fastapi import status
from fastapi.testclient import TestClient
from nacl.signing import VerifyKey

from steam_oidc.core.security import pkce_s256
from tests.helpers import (
    TEST_CLIENT_ID,
    TEST_CLIENT_SECRET,
    TEST_ISSUER,
    TEST_STEAM_ID,
    authorize_params,
    basic_auth,
    jwt_segments,
    token_form,
)


def _b64url_decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _verify_signature(token: str, jwk: dict) -> None:
    signing_input, _, signature = token.rpartition(".")
    VerifyKey(_b64url_decode(jwk["x"])).verify(
        signing_input.encode("ascii"), _b64url_decode(signature)
    )


def test_relying_party_sign_in(client):
    """A relying party discovers the provider, signs a user in and reads their profile."""
    discovery = client.get("/.well-known/openid-configuration").json()
    jwk = client.get("/jwks").json()["keys"][0]
    verifier = "a" * 43

    authorize = client.get(
        "/authorize",
        params=authorize_params(
            state="xyz", nonce="n1", code_challenge=pkce_s256(verifier), code_challenge_method="S256"
        ),
    )
    assert authorize.status_code == status.HTTP_302_FOUND

    callback = client.get("/callback", params={"openid.mode": "id_res"})
    location = callback.headers["location"]
    assert location.startswith("https://cb?code=")
    assert location.endswith("&state=xyz")
    code = location.split("code=", 1)[1].split("&", 1)[0]

    form = token_form(code, code_verifier=verifier)
    del form["client_id"], form["client_secret"]
    tokens = client.post(
        "/token", data=form, headers=basic_auth(TEST_CLIENT_ID, TEST_CLIENT_SECRET)
    ).json()

    header, claims = jwt_segments(tokens["id_token"])
    assert header["kid"] == jwk["kid"]
    _verify_signature(tokens["id_token"], jwk)
    assert claims["iss"] == discovery["issuer"] == TEST_ISSUER
    assert claims["aud"] == TEST_CLIENT_ID
    assert claims["sub"] == TEST_STEAM_ID
    assert claims["nonce"] == "n1"
    assert claims["exp"] == claims["iat"] + tokens["expires_in"]

    userinfo = client.get(
        "/userinfo", headers={"Authorization": f"Bearer {tokens['access_token']}"}
    ).json()
    assert userinfo["sub"] == claims["sub"]

    replay = client.post("/token", data=token_form(code, code_verifier=verifier))
    assert replay.status_code == status.HTTP_400_BAD_REQUEST
    assert replay.json()["error"] == "invalid_grant"


def test_cors_preflight_for_registered_client(client):
    response = client.options(
        "/token",
        headers={"Origin": "https://app.example.com", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["access-control-allow-origin"] == "https://app.example.com"


def test_cors_rejects_unknown_origin(client):
    response = client.options(
        "/token",
        headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "POST"},
    )
    assert "access-control-allow-origin" not in response.headers


def test_unexpected_errors_are_generic(app, mock_profile_client):
    mock_profile_client.get_profile.side_effect = RuntimeError("database password is hunter2")
    with TestClient(
        app, base_url=TEST_ISSUER, follow_redirects=False, raise_server_exceptions=False
    ) as client:
        client.get("/authorize", params=authorize_params())
        location = client.get("/callback", params={"openid.mode": "id_res"}).headers["location"]
        code = location.split("code=", 1)[1].split("&", 1)[0]

        response = client.post("/token", data=token_form(code))

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {
        "error": "server_error",
        "error_description": "An unexpected error occurred",
    }
