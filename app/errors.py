"""
JSON error responses.

Every error body has the shape {"error": <short title>, "message": <detail>};
validation errors add the field-level "detail" list.
"""
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException
from typing import Optional
import logging

from app.config import settings

logger = logging.getLogger(__name__)


def error_body(error: str, message: Optional[str] = None, **extra) -> dict:
    return {"error": error, "message": message if message is not None else error, **extra}


def with_cors(response: JSONResponse, request: Request) -> JSONResponse:
    """Echo allowed origins on error responses raised outside CORSMiddleware."""
    origin = request.headers.get("origin")
    if origin and origin in settings.CORS_ORIGINS:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Vary"] = "Origin"
    return response


async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    content = exc.detail if isinstance(exc.detail, dict) else error_body(str(exc.detail))
    response = JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))
    return with_cors(response, request)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    logger.warning(f"Validation error on {request.method} {request.url.path}: {errors}")
    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation error", "Request data is invalid", detail=errors),
    )
    return with_cors(response, request)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {str(exc)} ({type(exc).__name__})",
        exc_info=True
    )
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", "An unexpected error occurred"),
    )
    return with_cors(response, request)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
