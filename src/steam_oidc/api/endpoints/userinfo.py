"""Userinfo endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from steam_oidc.api.dependencies import FlowDep, error_responses
from steam_oidc.schemas import UserInfoResponse

router = APIRouter(tags=["oidc"])


@router.get(
    "/userinfo",
    summary="Claims for the access token holder",
    response_model=UserInfoResponse,
    responses=error_responses(401, 500),
)
async def userinfo(request: Request, flow: FlowDep) -> UserInfoResponse:
    return await flow.userinfo(request.headers.get("authorization"))
