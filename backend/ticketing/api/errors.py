"""
Exception handlers that turn service errors into structured responses:
{"error": {"kind": ..., "message": ...}}
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ticketing.core.exceptions import InsufficientInventory, TicketingError
from ticketing.core.logging import get_logger

logger = get_logger(__name__)


def _error_response(status_code: int, kind: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"kind": kind, "message": message, **extra}},
    )


async def ticketing_error_handler(request: Request, exc: TicketingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_error", kind=exc.kind, message=exc.message, exc_info=exc)
    else:
        logger.warning("request_rejected", kind=exc.kind, message=exc.message)

    extra = {}
    if isinstance(exc, InsufficientInventory):
        extra["available"] = exc.available
    return _error_response(exc.status_code, exc.kind, exc.message, **extra)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors()]
    logger.warning("request_validation_failed", fields=fields)
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation",
        f"Invalid or missing fields: {', '.join(fields)}",
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", error=str(exc), exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "unknown",
        "Internal server error",
    )


EXCEPTION_HANDLERS = {
    TicketingError: ticketing_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
