"""Application error types and their HTTP rendering."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for client-facing errors rendered as {"error": message}."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CoordinateValidationError(AppError):
    """Distance request payload is malformed (wrong count, missing/non-numeric/out-of-range field)."""


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
