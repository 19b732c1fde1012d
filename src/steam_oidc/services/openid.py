"""Steam OpenID 2.0 relying-party adapter.

Only the pieces the provider needs are implemented: building the
``checkid_setup`` redirect and stateless (``check_authentication``)
verification of the positive assertion Steam returns to the callback.
Discovery and Diffie-Hellman associations are not used; Steam's endpoint is
fixed.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import parse_qsl, urlencode, urlsplit

import httpx

from steam_oidc.core.errors import OpenIdVerificationError

logger = logging.getLogger(__name__)

STEAM_OPENID_URL = "https://steamcommunity.com/openid"
STEAM_LOGIN_URL = f"{STEAM_OPENID_URL}/login"
OPENID_NS = "http://specs.openid.net/auth/2.0"
IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"
CLAIMED_ID_PATTERN = re.compile(r"^https?://steamcommunity\.com/openid/id/(\d{17})$")
REQUIRED_SIGNED_FIELDS = frozenset(
    {"op_endpoint", "claimed_id", "identity", "return_to", "response_nonce", "assoc_handle"}
)
HEALTH_TIMEOUT_SECONDS = 2.0


def _strip_query(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}".rstrip("/")


class SteamOpenIdClient:
    """Redirects users to Steam and verifies the identity Steam asserts."""

    def __init__(
        self,
        return_url: str,
        realm: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._return_url = return_url
        self._realm = realm
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def get_auth_url(self, state: str | None = None) -> str:
        """Return the Steam sign-in URL, carrying the caller's `state` when given."""
        params = {
            "openid.ns": OPENID_NS,
            "openid.mode": "checkid_setup",
            "openid.return_to": self._return_url,
            "openid.realm": self._realm,
            "openid.identity": IDENTIFIER_SELECT,
            "openid.claimed_id": IDENTIFIER_SELECT,
        }
        if state:
            params["state"] = state
        return f"{STEAM_LOGIN_URL}?{urlencode(params)}"

    async def verify_assertion(self, request_url: str) -> str | None:
        """Verify the assertion in a callback URL and return the Steam id.

        Returns None when the user cancelled or Steam did not vouch for the
        identity.

        Raises:
            OpenIdVerificationError: If the assertion is malformed, addressed
                to another relying party, or Steam cannot be reached.
        """
        params = dict(parse_qsl(urlsplit(request_url).query, keep_blank_values=True))
        mode = params.get("openid.mode")
        if mode != "id_res":
            return None

        if params.get("openid.ns") != OPENID_NS:
            raise OpenIdVerificationError("Unsupported OpenID namespace")
        if params.get("openid.op_endpoint") != STEAM_LOGIN_URL:
            raise OpenIdVerificationError("Assertion was not issued by Steam")
        return_to = params.get("openid.return_to", "")
        if _strip_query(return_to) != _strip_query(self._return_url):
            raise OpenIdVerificationError("Assertion return_to does not match this provider")
        signed = set(params.get("openid.signed", "").split(","))
        if not REQUIRED_SIGNED_FIELDS <= signed or not params.get("openid.sig"):
            raise OpenIdVerificationError("Assertion is missing required signed fields")

        claimed_id = params.get("openid.claimed_id", "")
        match = CLAIMED_ID_PATTERN.match(claimed_id)
        if match is None or params.get("openid.identity") != claimed_id:
            return None

        check = {key: value for key, value in params.items() if key.startswith("openid.")}
        check["openid.mode"] = "check_authentication"
        try:
            response = await self._client.post(STEAM_LOGIN_URL, data=check)
        except httpx.HTTPError as exc:
            raise OpenIdVerificationError(
                f"Steam verification request failed: {type(exc).__name__}"
            ) from exc
        if not response.is_success:
            raise OpenIdVerificationError(f"Steam verification returned {response.status_code}")

        fields = dict(
            line.split(":", 1) for line in response.text.splitlines() if ":" in line
        )
        if fields.get("is_valid", "").strip() != "true":
            logger.info("Steam rejected an OpenID assertion")
            return None
        return match.group(1)

    async def check_reachability(self) -> bool:
        """Return True when Steam's OpenID endpoint answers a HEAD request."""
        try:
            response = await self._client.head(STEAM_OPENID_URL, timeout=HEALTH_TIMEOUT_SECONDS)
        except httpx.HTTPError:
            return False
        return response.is_success

    async def close(self) -> None:
        await self._client.aclose()
