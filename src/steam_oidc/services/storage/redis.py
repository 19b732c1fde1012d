"""Redis-backed credential store for multi-instance deployments.

Expiry is delegated to Redis per-key TTLs and code consumption uses GETDEL,
so this backend requires Redis 6.2 or newer.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis

from steam_oidc.schemas import AccessToken, AuthorizationCode

from .base import CredentialStore, utcnow

logger = logging.getLogger(__name__)

AUTH_CODE_PREFIX = "auth_code:"
ACCESS_TOKEN_PREFIX = "access_token:"

ModelT = TypeVar("ModelT", AuthorizationCode, AccessToken)


class RedisCredentialStore(CredentialStore):
    """Credential store shared by every provider instance through Redis."""

    def __init__(self, redis: Any, clock: Callable[[], datetime] = utcnow) -> None:
        self._redis = redis
        self._clock = clock

    @classmethod
    def from_url(cls, url: str) -> RedisCredentialStore:
        return cls(Redis.from_url(url, decode_responses=True))

    def _ttl_ms(self, expires_at: datetime) -> int:
        return math.ceil((expires_at - self._clock()).total_seconds() * 1000)

    async def _save(self, key: str, record: BaseModel, expires_at: datetime) -> None:
        ttl_ms = self._ttl_ms(expires_at)
        if ttl_ms <= 0:
            await self._redis.delete(key)
            return
        await self._redis.set(key, record.model_dump_json(), px=ttl_ms)

    def _parse(self, model: type[ModelT], data: str | bytes | None) -> ModelT | None:
        if data is None:
            return None
        try:
            return model.model_validate_json(data)
        except ValidationError as err:
            logger.error(
                "Discarding corrupt %s record: %d validation error(s)",
                model.__name__,
                err.error_count(),
            )
            return None

    async def _load(self, model: type[ModelT], key: str) -> ModelT | None:
        data = await self._redis.get(key)
        if data is None:
            return None
        record = self._parse(model, data)
        if record is None or record.is_expired(self._clock()):
            await self._redis.delete(key)
            return None
        return record

    async def save_auth_code(self, code: AuthorizationCode) -> None:
        await self._save(f"{AUTH_CODE_PREFIX}{code.code}", code, code.expires_at)

    async def get_auth_code(self, code: str) -> AuthorizationCode | None:
        return await self._load(AuthorizationCode, f"{AUTH_CODE_PREFIX}{code}")

    async def consume_auth_code(self, code: str) -> AuthorizationCode | None:
        key = f"{AUTH_CODE_PREFIX}{code}"
        # GETDEL removes the key in the same server-side step as the read.
        data = await self._redis.getdel(key)
        record = self._parse(AuthorizationCode, data)
        if record is None or record.is_expired(self._clock()):
            return None
        return record

    async def delete_auth_code(self, code: str) -> None:
        await self._redis.delete(f"{AUTH_CODE_PREFIX}{code}")

    async def save_access_token(self, token: AccessToken) -> None:
        await self._save(f"{ACCESS_TOKEN_PREFIX}{token.token}", token, token.expires_at)

    async def get_access_token(self, token: str) -> AccessToken | None:
        return await self._load(AccessToken, f"{ACCESS_TOKEN_PREFIX}{token}")

    async def delete_access_token(self, token: str) -> None:
        await self._redis.delete(f"{ACCESS_TOKEN_PREFIX}{token}")

    async def close(self) -> None:
        await self._redis.aclose()
