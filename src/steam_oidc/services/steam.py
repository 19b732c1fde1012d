"""Steam Web API profile lookups with a bounded in-process cache."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from threading import Lock

import httpx
from pydantic import ValidationError

from steam_oidc.core.errors import SteamApiError
from steam_oidc.schemas import SteamApiResponse, SteamProfile

logger = logging.getLogger(__name__)

STEAM_API_BASE = "https://api.steampowered.com"
PLAYER_SUMMARIES_PATH = "/ISteamUser/GetPlayerSummaries/v2/"


class ProfileCache:
    """LRU cache with a per-entry lifetime; reads refresh the lifetime."""

    def __init__(
        self,
        max_size: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[SteamProfile, float]] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, steam_id: str) -> SteamProfile | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(steam_id)
            if entry is None:
                return None
            profile, expires = entry
            if expires <= now:
                del self._entries[steam_id]
                return None
            self._entries[steam_id] = (profile, now + self._ttl)
            self._entries.move_to_end(steam_id)
            return profile

    def set(self, steam_id: str, profile: SteamProfile) -> None:
        if self._max_size <= 0:
            return
        with self._lock:
            self._entries[steam_id] = (profile, self._clock() + self._ttl)
            self._entries.move_to_end(steam_id)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)


class SteamProfileClient:
    """Fetches public Steam profiles for issued identities."""

    def __init__(
        self,
        api_key: str,
        *,
        timeout_seconds: float = 5.0,
        cache: ProfileCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._cache = cache or ProfileCache(max_size=10_000, ttl_seconds=900)
        self._client = httpx.AsyncClient(
            base_url=STEAM_API_BASE,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def get_profile(self, steam_id: str) -> SteamProfile | None:
        """Return the profile for `steam_id`, or None when Steam has none.

        Raises:
            SteamApiError: If the API cannot be reached, times out or answers
                with a non-success status.
        """
        cached = self._cache.get(steam_id)
        if cached is not None:
            return cached

        try:
            response = await self._client.get(
                PLAYER_SUMMARIES_PATH,
                params={"key": self._api_key, "steamids": steam_id},
            )
        except httpx.HTTPError as exc:
            raise SteamApiError(f"Steam API request failed: {type(exc).__name__}") from exc

        if not response.is_success:
            raise SteamApiError(f"Steam API error: {response.status_code}")

        try:
            payload = SteamApiResponse.model_validate_json(response.content)
        except ValidationError as err:
            logger.error("Invalid Steam API response: %d error(s)", err.error_count())
            return None

        if not payload.response.players:
            return None

        profile = payload.response.players[0]
        self._cache.set(steam_id, profile)
        return profile

    async def close(self) -> None:
        await self._client.aclose()
