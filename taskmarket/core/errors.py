import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base class for errors surfaced by the marketplace services."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotConfigured(MarketplaceError):
    """The store or auth collaborator is not initialized."""

    status_code = 503


class NotFound(MarketplaceError):
    status_code = 404


class ValidationFailed(MarketplaceError):
    status_code = 422


class Unauthenticated(MarketplaceError):
    """Missing, invalid or revoked credentials."""

    status_code = 401


class Unauthorized(MarketplaceError):
    """The identity is known but lacks permission for the action."""

    status_code = 403


class Conflict(MarketplaceError):
    status_code = 409


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
