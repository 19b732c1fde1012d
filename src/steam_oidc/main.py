# src/steam_oidc/main.py
"""Main entry point for the Steam OIDC provider."""

from __future__ import annotations

import logging

from steam_oidc.app import create_app
from steam_oidc.core.settings import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = create_app(settings)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("steam_oidc.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)
