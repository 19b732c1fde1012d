"""OIDC protocol errors and the exception handlers that serialize them."""

from __future__ import annotations

import logging
from typing import cast

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

INVALID_REQUEST = "invalid_request"
INVALID_CLIENT = "invalid_client"
INVALID_GRANT = "invalid_grant"
INVALID_TOKEN = "invalid_token"
UNSUPPORTED_RESPONSE_TYPE = "unsupported_response_type"
UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
SERVER_ERROR = "server_error"
ACCESS_DENIED = "access_denied"

GENERIC_SERVER_ERROR = "An unexpected error occurred"


class OidcError(Exception):
    """Protocol-boundary failure carrying an OIDC error code and HTTP status.

    The description is returned to the caller verbatim and must never contain
    secret material.
    """

    def __init__(
        self,
        error: str,
        description: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ) -> None:
        super().__init__(description)
        self.error = error
        self.description = description
        self.status_code = status_code

    @classmethod
    def invalid_request(cls, description: str) -> OidcError:
        return cls(INVALID_REQUEST, description, status.HTTP_400_BAD_REQUEST)

    @classmethod
    def invalid_client(cls, description: str = "Invalid credentials") -> OidcError:
        return cls(INVALID_CLIENT, description, status.HTTP_401_UNAUTHORIZED)

    @classmethod
    def invalid_grant(cls, description: str) -> OidcError:
        return cls(INVALID_GRANT, description, status.HTTP_400_BAD_REQUEST)

    @classmethod
    def invalid_token(cls, description: str) -> OidcError:
        return cls(INVALID_TOKEN, description, status.HTTP_401_UNAUTHORIZED)

    @classmethod
    def server_error(cls, description: str = GENERIC_SERVER_ERROR) -> OidcError:
        return cls(SERVER_ERROR, description, status.HTTP_500_INTERNAL_SERVER_ERROR)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "error_description": self.description}


class KeyManagerError(RuntimeError):
    """Raised when signing keys are missing or cannot be derived."""


class OpenIdVerificationError(RuntimeError):
    """Raised when the Steam OpenID assertion cannot be verified."""


class SteamApiError(RuntimeError):
    """Raised when the Steam Web API lookup fails."""


def oidc_error_response(err: OidcError) -> JSONResponse:
    """Render an OidcError as the standard JSON error body."""
    headers: dict[str, str] = {}
    if err.error == INVALID_TOKEN:
        headers["WWW-Authenticate"] = 'Bearer error="invalid_token"'
    elif err.error == INVALID_CLIENT:
        headers["WWW-Authenticate"] = "Basic"
    return JSONResponse(err.to_dict(), status_code=err.status_code, headers=headers)


async def _handle_oidc_error(_request: Request, exc: Exception) -> JSONResponse:
    err = cast(OidcError, exc)
    if err.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed with %s: %s", err.error, err.description)
    return oidc_error_response(err)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return oidc_error_response(OidcError.server_error())


def register_exception_handlers(app: FastAPI) -> None:
    """Install the OIDC error serializers on the application."""
    app.add_exception_handler(OidcError, _handle_oidc_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
