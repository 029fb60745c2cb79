"""
Map domain errors to HTTP responses.

Every ``EzPayError`` becomes a JSON body carrying its message verbatim with
the status the error class declares. Anything else is an internal error that
embeds the exception message.
"""

from datetime import datetime, timezone

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from starlette.requests import Request

from ezpay.exceptions import EzPayError
from ezpay.logging_config import get_logger

logger = get_logger("ezpay.api.errors")


def _error_body(status_code: int, kind: str, message: str) -> dict:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status_code,
        "error": kind,
        "message": message,
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(EzPayError)
    async def handle_domain_error(request: Request, exc: EzPayError) -> JSONResponse:
        logger.warning(
            "%s %s -> %s %s: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.kind,
            exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.kind, exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "InternalError",
                f"An unexpected error occurred: {exc}",
            ),
        )
