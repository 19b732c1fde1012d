"""Authorization endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

from steam_oidc.api.dependencies import (
    STATE_COOKIE,
    STATE_COOKIE_MAX_AGE,
    FlowDep,
    SettingsDep,
    error_responses,
    is_secure_request,
)

router = APIRouter(tags=["oidc"])


@router.get(
    "/authorize",
    summary="Start an authorization-code flow",
    responses=error_responses(400, 401),
)
async def authorize(
    request: Request,
    flow: FlowDep,
    settings: SettingsDep,
    client_id: str | None = None,
    redirect_uri: str | None = None,
    response_type: str | None = None,
    state: str | None = None,
    nonce: str | None = None,
    code_challenge: str | None = None,
    code_challenge_method: str | None = None,
) -> RedirectResponse:
    """Validate the request, remember it in a signed cookie and redirect to Steam."""
    result = flow.authorize(
        client_id=client_id,
        redirect_uri=redirect_uri,
        response_type=response_type,
        state=state,
        nonce=nonce,
        code_challenge=code_challenge,
        code_challenge_method=code_challenge_method,
    )
    response = RedirectResponse(result.redirect_url, status_code=status.HTTP_302_FOUND)
    # Lax so the cookie survives the top-level redirect back from Steam.
    response.set_cookie(
        STATE_COOKIE,
        result.state_cookie,
        max_age=STATE_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        secure=is_secure_request(request, settings),
        samesite="lax",
    )
    return response
