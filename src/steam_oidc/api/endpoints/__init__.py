# src/steam_oidc/api/endpoints/__init__.py
"""Protocol endpoint routers."""

from .authorize import router as authorize_router
from .callback import router as callback_router
from .discovery import router as discovery_router
from .health import router as health_router
from .token import router as token_router
from .userinfo import router as userinfo_router

__all__ = [
    "authorize_router",
    "callback_router",
    "discovery_router",
    "health_router",
    "token_router",
    "userinfo_router",
]
