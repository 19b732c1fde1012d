"""HTTP API for the provider."""

from .endpoints import (
    authorize_router,
    callback_router,
    discovery_router,
    health_router,
    token_router,
    userinfo_router,
)

__all__ = [
    "authorize_router",
    "callback_router",
    "discovery_router",
    "health_router",
    "token_router",
    "userinfo_router",
]
