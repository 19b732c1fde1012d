"""Health endpoint reporting Steam reachability."""

from __future__ import annotations

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from steam_oidc.api.dependencies import OpenIdClientDep

router = APIRouter(tags=["system"])

HEALTH_CACHE_SECONDS = 30.0


@router.get("/health", summary="Service health")
async def health(request: Request, openid_client: OpenIdClientDep) -> JSONResponse:
    """Report whether Steam's OpenID endpoint is reachable, cached for 30 seconds."""
    now = time.monotonic()
    last_check: tuple[bool, float] | None = getattr(request.app.state, "steam_health", None)
    if last_check is not None and now - last_check[1] < HEALTH_CACHE_SECONDS:
        reachable, cached = last_check[0], True
    else:
        reachable, cached = await openid_client.check_reachability(), False
        request.app.state.steam_health = (reachable, now)

    return JSONResponse(
        {
            "status": "healthy" if reachable else "degraded",
            "steam": "reachable" if reachable else "unreachable",
            "timestamp": datetime.now(UTC).isoformat(),
            "cached": cached,
        },
        status_code=status.HTTP_200_OK if reachable else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
