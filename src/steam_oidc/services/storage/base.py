"""Credential storage contract shared by every backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import UTC, datetime

from steam_oidc.schemas import AccessToken, AuthorizationCode


def utcnow() -> datetime:
    return datetime.now(UTC)


class CredentialStore(ABC):
    """Expiring storage for authorization codes and access tokens.

    Records are written with a lifetime of ``expires_at - now``; a record whose
    lifetime is already non-positive is not written, and any record previously
    held under the same key is removed. A record is never
    observable at or after its ``expires_at``.
    """

    @abstractmethod
    async def save_auth_code(self, code: AuthorizationCode) -> None:
        """Persist an authorization code until its expiry."""

    @abstractmethod
    async def get_auth_code(self, code: str) -> AuthorizationCode | None:
        """Return an unexpired authorization code without consuming it."""

    @abstractmethod
    async def consume_auth_code(self, code: str) -> AuthorizationCode | None:
        """Atomically return and remove an authorization code.

        Of any number of concurrent callers for the same code, at most one
        receives the record.
        """

    @abstractmethod
    async def delete_auth_code(self, code: str) -> None:
        """Remove an authorization code; absent codes are ignored."""

    @abstractmethod
    async def save_access_token(self, token: AccessToken) -> None:
        """Persist an access token until its expiry."""

    @abstractmethod
    async def get_access_token(self, token: str) -> AccessToken | None:
        """Return an unexpired access token. Tokens may be read repeatedly."""

    @abstractmethod
    async def delete_access_token(self, token: str) -> None:
        """Remove an access token; absent tokens are ignored."""

    async def close(self) -> None:  # noqa: B027 - optional hook
        """Release backend resources."""
