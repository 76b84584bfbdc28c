"""
Exception handlers turning errors into JSON responses

Every error body has the shape {"error", "message", "status_code"}.
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from lms.config import settings
from lms.exceptions import LMSError

logger = logging.getLogger(__name__)


def error_body(error: str, message, status_code: int, **extra) -> dict:
    body = {"error": error, "message": message, "status_code": status_code}
    body.update(extra)
    return body


async def handle_lms_error(request: Request, exc: LMSError):
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{request.method} {request.url.path} failed with {exc.error_code}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error_code, exc.message, exc.status_code)
    )


async def handle_request_validation(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=error_body(
            "validation_error", "Invalid request", 422, detail=jsonable_encoder(exc.errors())
        )
    )


async def handle_http_exception(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body("http_error", exc.detail, exc.status_code)
    )


async def handle_unexpected(request: Request, exc: Exception):
    """Last resort: log with traceback, hide details unless DEBUG"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
            500,
            detail=str(exc) if settings.DEBUG else None
        )
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LMSError, handle_lms_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
