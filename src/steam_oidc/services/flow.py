"""Authorization-code flow: authorize, callback, token exchange and userinfo.

An in-flight authorization moves through these states::

    initiated -> returned -> granted | denied -> exchanged

``initiated`` lives only in the signed state cookie, ``granted`` is an
authorization code in the credential store and ``exchanged`` is the moment the
code is consumed and tokens are issued.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import ValidationError

from steam_oidc.core.errors import (
    UNSUPPORTED_GRANT_TYPE,
    UNSUPPORTED_RESPONSE_TYPE,
    OidcError,
    SteamApiError,
)
from steam_oidc.core.security import generate_code, pkce_s256, safe_compare
from steam_oidc.core.settings import Settings
from steam_oidc.schemas import (
    AccessToken,
    AuthorizationCode,
    AuthState,
    IdTokenClaims,
    SteamProfile,
    TokenRequest,
    TokenResponse,
    UserInfoResponse,
)
from steam_oidc.services.keys import KeyManager
from steam_oidc.services.state import StateCodec
from steam_oidc.services.storage import CredentialStore

logger = logging.getLogger(__name__)

PKCE_METHOD = "S256"
AUTHORIZATION_CODE_GRANT = "authorization_code"


class AssertionVerifier(Protocol):
    """Upstream identity provider seen from the flow."""

    def get_auth_url(self, state: str | None = None) -> str: ...

    async def verify_assertion(self, request_url: str) -> str | None: ...


class ProfileProvider(Protocol):
    async def get_profile(self, steam_id: str) -> SteamProfile | None: ...


@dataclass(frozen=True)
class AuthorizeResult:
    """Where to send the browser and the signed state to set as a cookie."""

    redirect_url: str
    state_cookie: str


def with_query(url: str, params: dict[str, str]) -> str:
    """Return `url` with `params` set, keeping any other query parameters."""
    parts = urlsplit(url)
    query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True)
             if key not in params]
    query.extend(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


def denial_redirect(redirect_uri: str, description: str, state: str | None) -> str:
    params = {"error": "access_denied", "error_description": description}
    if state:
        params["state"] = state
    return with_query(redirect_uri, params)


def parse_basic_credentials(header: str) -> tuple[str, str]:
    """Split an HTTP Basic authorization header into client id and secret."""
    try:
        decoded = base64.b64decode(header[len("Basic "):].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as err:
        raise OidcError.invalid_client("Invalid Basic authentication header") from err
    client_id, sep, client_secret = decoded.partition(":")
    if not sep:
        raise OidcError.invalid_client("Invalid Basic authentication header")
    return client_id, client_secret


class AuthorizationFlow:
    """Implements the four protocol steps over injected collaborators."""

    def __init__(
        self,
        settings: Settings,
        *,
        key_manager: KeyManager,
        store: CredentialStore,
        verifier: AssertionVerifier,
        profiles: ProfileProvider,
        state_codec: StateCodec | None = None,
    ) -> None:
        self._settings = settings
        self._keys = key_manager
        self._store = store
        self._verifier = verifier
        self._profiles = profiles
        self._codec = state_codec or StateCodec()

    # --- Step A: authorize -----------------------------------------------------------
    def authorize(
        self,
        *,
        client_id: str | None,
        redirect_uri: str | None,
        response_type: str | None,
        state: str | None = None,
        nonce: str | None = None,
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
    ) -> AuthorizeResult:
        """Validate an authorization request and prepare the upstream redirect."""
        if not client_id:
            raise OidcError.invalid_request("Missing client_id parameter")
        if not redirect_uri:
            raise OidcError.invalid_request("Missing redirect_uri parameter")
        if not response_type:
            raise OidcError.invalid_request("Missing response_type parameter")
        if client_id != self._settings.client_id:
            raise OidcError.invalid_client("Unknown client_id")
        if redirect_uri not in self._settings.redirect_uris:
            raise OidcError.invalid_request("Invalid redirect_uri")
        if response_type != "code":
            raise OidcError(UNSUPPORTED_RESPONSE_TYPE, "Only code flow is supported")
        if code_challenge:
            if not code_challenge_method:
                raise OidcError.invalid_request(
                    "code_challenge_method required when code_challenge provided"
                )
            if code_challenge_method != PKCE_METHOD:
                raise OidcError.invalid_request("Only S256 code_challenge_method is supported")
        else:
            code_challenge_method = None

        auth_state = AuthState(
            state=state or None,
            nonce=nonce or None,
            redirect_uri=redirect_uri,
            client_id=client_id,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
        )
        state_cookie = self._codec.sign(
            auth_state.model_dump(exclude_none=True),
            self._settings.jwt_secret,
        )
        return AuthorizeResult(
            redirect_url=self._verifier.get_auth_url(state or None),
            state_cookie=state_cookie,
        )

    # --- Step B: callback ------------------------------------------------------------
    def _restore_state(self, state_cookie: str | None) -> AuthState:
        if not state_cookie:
            raise OidcError.invalid_request("Missing state cookie. Session may have expired.")
        payload = self._codec.verify(state_cookie, self._settings.jwt_secret)
        if payload is None:
            raise OidcError.invalid_request("Invalid or tampered state cookie")
        try:
            auth_state = AuthState.model_validate(payload)
        except ValidationError as err:
            raise OidcError.invalid_request("Invalid state cookie data") from err
        # The allow-list may have changed since the cookie was issued.
        if auth_state.redirect_uri not in self._settings.redirect_uris:
            raise OidcError.invalid_request("Invalid redirect_uri")
        return auth_state

    async def callback(self, state_cookie: str | None, request_url: str) -> str:
        """Finish the upstream sign-in and return the client redirect URL.

        Failures before the state cookie is trusted raise OidcError; later
        failures are reported to the client through its redirect URI.
        """
        auth_state = self._restore_state(state_cookie)

        try:
            steam_id = await self._verifier.verify_assertion(request_url)
        except Exception as exc:
            logger.warning("OpenID verification failed: %s", exc)
            return denial_redirect(
                auth_state.redirect_uri, "Steam authentication failed", auth_state.state
            )

        if not steam_id:
            return denial_redirect(
                auth_state.redirect_uri,
                "Steam authentication was denied or failed",
                auth_state.state,
            )

        now = datetime.now(UTC)
        auth_code = AuthorizationCode(
            code=generate_code(),
            subject_id=steam_id,
            client_id=auth_state.client_id,
            redirect_uri=auth_state.redirect_uri,
            nonce=auth_state.nonce,
            code_challenge=auth_state.code_challenge,
            code_challenge_method=auth_state.code_challenge_method,
            created_at=now,
            expires_at=now + timedelta(seconds=self._settings.auth_code_ttl),
        )
        try:
            await self._store.save_auth_code(auth_code)
        except Exception:
            logger.exception("Failed to store authorization code")
            return denial_redirect(
                auth_state.redirect_uri,
                "Authorization could not be completed",
                auth_state.state,
            )

        params = {"code": auth_code.code}
        if auth_state.state:
            params["state"] = auth_state.state
        return with_query(auth_state.redirect_uri, params)

    # --- Step C: token exchange ------------------------------------------------------
    def _authenticate_client(self, request: TokenRequest, authorization: str | None) -> str:
        client_id = request.client_id or ""
        client_secret = request.client_secret or ""
        if authorization and authorization.startswith("Basic "):
            client_id, client_secret = parse_basic_credentials(authorization)

        id_matches = safe_compare(client_id, self._settings.client_id)
        secret_matches = safe_compare(client_secret, self._settings.client_secret)
        if not (id_matches and secret_matches):
            raise OidcError.invalid_client()
        return client_id

    async def _fetch_profile(self, steam_id: str) -> SteamProfile:
        try:
            profile = await self._profiles.get_profile(steam_id)
        except SteamApiError as exc:
            logger.error("Steam profile lookup failed: %s", exc)
            profile = None
        if profile is None:
            raise OidcError.server_error("Failed to fetch Steam profile")
        return profile

    async def exchange(self, request: TokenRequest, authorization: str | None) -> TokenResponse:
        """Redeem an authorization code for an ID token and access token."""
        if not request.grant_type:
            raise OidcError.invalid_request("Missing grant_type parameter")
        if request.grant_type != AUTHORIZATION_CODE_GRANT:
            raise OidcError(
                UNSUPPORTED_GRANT_TYPE, "Only authorization_code grant is supported"
            )
        client_id = self._authenticate_client(request, authorization)
        if not request.code:
            raise OidcError.invalid_request("Missing code parameter")

        auth_code = await self._store.consume_auth_code(request.code)
        if auth_code is None:
            raise OidcError.invalid_grant("Invalid, expired, or already used authorization code")
        if auth_code.client_id != client_id:
            raise OidcError.invalid_grant("Authorization code was issued to another client")
        if request.redirect_uri and request.redirect_uri != auth_code.redirect_uri:
            raise OidcError.invalid_grant("redirect_uri mismatch")
        if auth_code.code_challenge:
            if not request.code_verifier:
                raise OidcError.invalid_grant("code_verifier required")
            if pkce_s256(request.code_verifier) != auth_code.code_challenge:
                raise OidcError.invalid_grant("Invalid code_verifier")

        profile = await self._fetch_profile(auth_code.subject_id)

        now = datetime.now(UTC).replace(microsecond=0)
        issued_at = int(now.timestamp())
        expires_in = self._settings.access_token_ttl
        claims = IdTokenClaims(
            iss=self._settings.issuer_url,
            sub=auth_code.subject_id,
            aud=auth_code.client_id,
            iat=issued_at,
            exp=issued_at + expires_in,
            nonce=auth_code.nonce,
            name=profile.personaname,
            picture=profile.avatarfull,
            preferred_username=profile.personaname,
        )
        access_token = self._keys.sign_access_token(auth_code.subject_id, issued_at=issued_at)
        id_token = self._keys.sign_id_token(claims)

        await self._store.save_access_token(
            AccessToken(
                token=access_token,
                subject_id=auth_code.subject_id,
                created_at=now,
                expires_at=now + timedelta(seconds=expires_in),
            )
        )
        return TokenResponse(access_token=access_token, expires_in=expires_in, id_token=id_token)

    # --- Step D: userinfo ------------------------------------------------------------
    async def userinfo(self, authorization: str | None) -> UserInfoResponse:
        """Return identity claims for the holder of a bearer access token."""
        if not authorization or not authorization.startswith("Bearer "):
            raise OidcError.invalid_token("Missing or invalid authorization header")
        token = authorization[len("Bearer "):].strip()
        if not token:
            raise OidcError.invalid_token("Missing or invalid authorization header")

        token_data = await self._store.get_access_token(token)
        if token_data is None:
            raise OidcError.invalid_token("Invalid or expired access token")

        profile = await self._fetch_profile(token_data.subject_id)
        return UserInfoResponse(
            sub=profile.steamid,
            name=profile.personaname,
            picture=profile.avatarfull,
            preferred_username=profile.personaname,
        )
