"""In-process credential store for single-instance deployments."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Generic, TypeVar

from steam_oidc.schemas import AccessToken, AuthorizationCode

from .base import CredentialStore, utcnow

RecordT = TypeVar("RecordT", AuthorizationCode, AccessToken)


@dataclass
class _Entry(Generic[RecordT]):
    record: RecordT
    timer: asyncio.TimerHandle | None


class _ExpiringMap(Generic[RecordT]):
    """Key -> record map whose entries are reclaimed by a timer at expiry.

    Every mutation happens under one lock that is never held across an await.
    Rewriting a key cancels the previous entry's timer before scheduling the
    new one, and a timer only evicts the entry it was scheduled for.
    """

    def __init__(self, clock: Callable[[], datetime]) -> None:
        self._clock = clock
        self._entries: dict[str, _Entry[RecordT]] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def put(self, key: str, record: RecordT) -> None:
        ttl = (record.expires_at - self._clock()).total_seconds()
        with self._lock:
            previous = self._entries.pop(key, None)
            if previous is not None and previous.timer is not None:
                previous.timer.cancel()
            if ttl <= 0:
                return
            entry: _Entry[RecordT] = _Entry(record=record, timer=None)
            loop = asyncio.get_running_loop()
            entry.timer = loop.call_later(ttl, self._evict, key, entry)
            self._entries[key] = entry

    def _evict(self, key: str, entry: _Entry[RecordT]) -> None:
        with self._lock:
            if self._entries.get(key) is entry:
                del self._entries[key]

    def get(self, key: str) -> RecordT | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.record.is_expired(self._clock()):
                self._discard(key)
                return None
            return entry.record

    def pop(self, key: str) -> RecordT | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            self._discard(key)
            if entry.record.is_expired(self._clock()):
                return None
            return entry.record

    def remove(self, key: str) -> None:
        with self._lock:
            self._discard(key)

    def clear(self) -> None:
        with self._lock:
            for key in list(self._entries):
                self._discard(key)

    def _discard(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is not None and entry.timer is not None:
            entry.timer.cancel()


class MemoryCredentialStore(CredentialStore):
    """Credential store kept in the memory of a single provider process."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._auth_codes: _ExpiringMap[AuthorizationCode] = _ExpiringMap(clock)
        self._access_tokens: _ExpiringMap[AccessToken] = _ExpiringMap(clock)

    async def save_auth_code(self, code: AuthorizationCode) -> None:
        self._auth_codes.put(code.code, code)

    async def get_auth_code(self, code: str) -> AuthorizationCode | None:
        return self._auth_codes.get(code)

    async def consume_auth_code(self, code: str) -> AuthorizationCode | None:
        return self._auth_codes.pop(code)

    async def delete_auth_code(self, code: str) -> None:
        self._auth_codes.remove(code)

    async def save_access_token(self, token: AccessToken) -> None:
        self._access_tokens.put(token.token, token)

    async def get_access_token(self, token: str) -> AccessToken | None:
        return self._access_tokens.get(token)

    async def delete_access_token(self, token: str) -> None:
        self._access_tokens.remove(token)

    async def close(self) -> None:
        self._auth_codes.clear()
        self._access_tokens.clear()

    @property
    def pending_auth_codes(self) -> int:
        return len(self._auth_codes)

    @property
    def active_access_tokens(self) -> int:
        return len(self._access_tokens)
