"""Steam OpenID return endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse, Response

from steam_oidc.api.dependencies import (
    STATE_COOKIE,
    FlowDep,
    SettingsDep,
    error_responses,
    external_url,
)
from steam_oidc.core.errors import OidcError, oidc_error_response

router = APIRouter(tags=["oidc"])


@router.get(
    "/callback",
    summary="Complete sign-in after Steam redirects back",
    responses=error_responses(400),
)
async def callback(request: Request, flow: FlowDep, settings: SettingsDep) -> Response:
    """Verify Steam's assertion and send the browser back to the client."""
    response: Response
    try:
        redirect_url = await flow.callback(
            request.cookies.get(STATE_COOKIE),
            external_url(request, settings),
        )
    except OidcError as err:
        response = oidc_error_response(err)
    else:
        response = RedirectResponse(redirect_url, status_code=status.HTTP_302_FOUND)
    # Cleared whatever the outcome.
    response.delete_cookie(STATE_COOKIE, path="/")
    return response
