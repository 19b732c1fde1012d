"""Token endpoint."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from steam_oidc.api.dependencies import FlowDep, error_responses
from steam_oidc.core.errors import OidcError
from steam_oidc.schemas import TokenRequest, TokenResponse

router = APIRouter(tags=["oidc"])

NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_token_request(request: Request) -> TokenRequest:
    """Parse a form-encoded or JSON token request body."""
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith(FORM_CONTENT_TYPES):
            form = await request.form()
            raw: Any = {key: str(value) for key, value in form.items()}
        else:
            raw = json.loads(await request.body() or b"{}")
        return TokenRequest.model_validate(raw)
    except (ValueError, ValidationError) as err:
        raise OidcError.invalid_request("Invalid request parameters") from err


@router.post(
    "/token",
    summary="Exchange an authorization code for tokens",
    response_model=TokenResponse,
    responses=error_responses(400, 401, 500),
)
async def token(request: Request, flow: FlowDep) -> JSONResponse:
    """Redeem an authorization code issued by the callback step."""
    token_request = await _read_token_request(request)
    result = await flow.exchange(token_request, request.headers.get("authorization"))
    return JSONResponse(result.model_dump(), headers=NO_STORE_HEADERS)
