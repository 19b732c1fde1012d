"""Application settings and configuration.

This module defines all configuration options for the Steam OIDC provider.
Settings are loaded from environment variables with sensible defaults; the
required values (Steam API key, client registration, issuer, redirect URIs and
signing secret) have no default so a misconfigured process fails at startup.
"""

from __future__ import annotations

from functools import lru_cache
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_SECRET_LENGTH = 32


def _origin(url: str) -> str | None:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


class Settings(BaseSettings):
    """Provider settings loaded from environment variables.

    Settings can be overridden via environment variables or a .env file.
    """

    # Upstream identity provider
    steam_api_key: str = Field(alias="STEAM_API_KEY")
    steam_api_timeout_seconds: float = Field(default=5.0, alias="STEAM_API_TIMEOUT_SECONDS")
    steam_openid_timeout_seconds: float = Field(
        default=10.0,
        alias="STEAM_OPENID_TIMEOUT_SECONDS",
    )
    profile_cache_ttl_seconds: int = Field(default=900, alias="PROFILE_CACHE_TTL_SECONDS")
    profile_cache_max_size: int = Field(default=10_000, alias="PROFILE_CACHE_MAX_SIZE")

    # Registered relying party
    client_id: str = Field(alias="CLIENT_ID", min_length=1)
    client_secret: str = Field(alias="CLIENT_SECRET", min_length=1)
    redirect_uris_raw: str = Field(alias="REDIRECT_URIS")

    # Issuer and signing
    issuer_url_base: str = Field(alias="ISSUER_URL")
    jwt_secret: str = Field(alias="JWT_SECRET", min_length=MIN_SECRET_LENGTH)

    # Credential storage; Redis is used when a URL is configured
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    access_token_ttl: int = Field(default=3600, alias="ACCESS_TOKEN_TTL", gt=0)
    auth_code_ttl: int = Field(default=300, alias="AUTH_CODE_TTL", gt=0)

    # HTTP server
    port: int = Field(default=3000, alias="PORT")
    base_path: str = Field(default="/", alias="BASE_PATH")
    trusted_proxy: bool = Field(default=False, alias="TRUSTED_PROXY")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("redirect_uris_raw")
    @classmethod
    def _require_redirect_uri(cls, value: str) -> str:
        if not [uri for uri in value.split(",") if uri.strip()]:
            raise ValueError("REDIRECT_URIS must contain at least one valid URL")
        return value

    @field_validator("issuer_url_base")
    @classmethod
    def _strip_issuer(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("base_path")
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        value = value.strip() or "/"
        if value == "/":
            return value
        if not value.startswith("/"):
            value = f"/{value}"
        return value.rstrip("/") or "/"

    @property
    def redirect_uris(self) -> list[str]:
        """Allow-listed redirect URIs, compared by exact string match."""
        return [uri.strip() for uri in self.redirect_uris_raw.split(",") if uri.strip()]

    @property
    def issuer_url(self) -> str:
        """Public issuer identifier, including the base path when one is set."""
        if self.base_path == "/":
            return self.issuer_url_base
        return f"{self.issuer_url_base}{self.base_path}"

    @property
    def callback_url(self) -> str:
        return f"{self.issuer_url}/callback"

    @property
    def route_prefix(self) -> str:
        return "" if self.base_path == "/" else self.base_path

    @property
    def allowed_origins(self) -> list[str]:
        """Origins permitted by CORS: the issuer and every registered client."""
        origins: list[str] = []
        for url in (self.issuer_url, *self.redirect_uris):
            origin = _origin(url)
            if origin and origin not in origins:
                origins.append(origin)
        return origins


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()  # type: ignore[call-arg]
