"""Credential storage backends and the startup factory that selects one."""

from __future__ import annotations

import logging

from steam_oidc.core.settings import Settings

from .base import CredentialStore
from .memory import MemoryCredentialStore
from .redis import RedisCredentialStore

logger = logging.getLogger(__name__)


def create_credential_store(settings: Settings) -> CredentialStore:
    """Return the Redis store when REDIS_URL is configured, memory otherwise."""
    if settings.redis_url:
        logger.info("Using Redis credential storage")
        return RedisCredentialStore.from_url(settings.redis_url)
    logger.info("Using in-memory credential storage")
    return MemoryCredentialStore()


__all__ = [
    "CredentialStore",
    "MemoryCredentialStore",
    "RedisCredentialStore",
    "create_credential_store",
]
