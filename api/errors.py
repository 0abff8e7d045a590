"""API error taxonomy and its translation to HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.errors import EmptyDeckError, IllegalActionError, InvalidStakeError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors reported to the client."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_content(self) -> dict[str, str]:
        return {"error": self.message}


class AuthError(ApiError):
    """Missing or unresolvable bearer token."""

    status_code = 401


class ConflictError(ApiError):
    """The owner already has an active game."""

    status_code = 400

    def __init__(self, game_id: str, message: str = "You already have an active game") -> None:
        super().__init__(message)
        self.game_id = game_id

    def to_content(self) -> dict[str, str]:
        return {"error": self.message, "gameId": self.game_id}


class NotFoundError(ApiError):
    """No active game with that id belongs to the caller."""

    status_code = 404

    def __init__(self, message: str = "Active game not found") -> None:
        super().__init__(message)


class PersistenceError(ApiError):
    """The game store is unreachable or rejected a write."""

    status_code = 500


class StaleGameError(PersistenceError):
    """The stored game changed since it was loaded."""

    status_code = 409


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # The raw input may be bytes or a non-finite float, neither encodes as JSON
    details = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": details},
    )


async def _invalid_stake_handler(request: Request, exc: InvalidStakeError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _illegal_action_handler(request: Request, exc: IllegalActionError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _empty_deck_handler(request: Request, exc: EmptyDeckError) -> JSONResponse:
    logger.exception("Deck exhausted while handling %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error-to-response mapping on an app."""
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(InvalidStakeError, _invalid_stake_handler)
    app.add_exception_handler(IllegalActionError, _illegal_action_handler)
    app.add_exception_handler(EmptyDeckError, _empty_deck_handler)
