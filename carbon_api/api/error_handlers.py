"""Error Handlers — every failure funnels into one JSON error shape.

Invariants:
    - Body is always {error, message, ...}; `errors` copied verbatim when the error carries a list
    - CarbonApiError → its own status, details and headers (auth challenge survives)
    - Route miss (404, or 405 method mismatch) → 404 {error: "NotFound", message: "Cannot METHOD path"}
    - Catch-all: status from a status_code attribute, default 500; stack trace and request
      context only outside production
    - Catch-all responses are built outside the middleware stack, so they stamp the
      security headers themselves

Design Decisions:
    - Four-layer handler: domain (CarbonApiError), routing/framework (HTTPException),
      validation (Pydantic), catch-all (Exception)
    - Request body for diagnostics is read from request.state (stored by the body reader):
      the ASGI receive channel is already drained when a handler runs
"""

import logging
import traceback
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from carbon_api.config import Settings
from carbon_api.core.errors import CarbonApiError, RouteNotFoundError
from carbon_api.infrastructure.security import SECURITY_HEADERS

logger = logging.getLogger(__name__)

DEFAULT_ERROR_NAME = "InternalServerError"
DEFAULT_ERROR_MESSAGE = "Something went wrong"

_HTTP_ERROR_NAMES = {
    status.HTTP_401_UNAUTHORIZED: "AuthenticationError",
}


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app, settings)


def _register_domain_error_handler(app: FastAPI) -> None:
    """Register Carbon API domain error handler."""

    @app.exception_handler(CarbonApiError)
    async def carbon_api_error_handler(request: Request, exc: CarbonApiError):
        """Handle all Carbon API domain errors."""
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            f"{exc.name}: {exc.message}",
            extra={
                "error_code": exc.name,
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(),
            headers=exc.headers,
        )


def _register_http_error_handler(app: FastAPI) -> None:
    """Register routing / framework HTTPException handler."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Route misses become NotFound; other HTTP errors keep their status."""
        if exc.status_code in (
            status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED,
        ):
            not_found = RouteNotFoundError(request.method, request.url.path)
            return JSONResponse(
                status_code=not_found.status_code,
                content=not_found.to_response(),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=build_http_error_response(exc),
            headers=exc.headers,
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI, settings: Settings) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Terminal handler for anything the other layers did not claim."""
        status_code = resolve_status_code(exc)
        if settings.is_production:
            context = {"path": request.url.path, "method": request.method}
        else:
            context = describe_request(request)
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=exc,
            extra={**context, "status_code": status_code},
        )
        return JSONResponse(
            status_code=status_code,
            content=build_error_response(exc, status_code, settings),
            headers=SECURITY_HEADERS,
        )


def resolve_status_code(exc: Exception) -> int:
    """Status attached to the error, or 500 when absent or not an error status."""
    code = getattr(exc, "status_code", None)
    if isinstance(code, int) and 400 <= code <= 599:
        return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(
    exc: Exception, status_code: int, settings: Settings,
) -> dict[str, Any]:
    """Build the terminal error body for an arbitrary exception."""
    name = getattr(exc, "name", None) if hasattr(exc, "status_code") else None
    exposes_message = status_code < 500 or not settings.is_production
    body: dict[str, Any] = {
        "error": name if isinstance(name, str) and name else DEFAULT_ERROR_NAME,
        "message": (str(exc) if exposes_message else "") or DEFAULT_ERROR_MESSAGE,
    }
    if not settings.is_production:
        body["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__),
        )
    errors = getattr(exc, "errors", None)
    if isinstance(errors, list):
        body["errors"] = errors
    return body


def build_http_error_response(exc: StarletteHTTPException) -> dict[str, Any]:
    """Map a framework HTTPException onto the unified shape."""
    name = _HTTP_ERROR_NAMES.get(exc.status_code)
    if name is None:
        phrase = HTTPStatus(exc.status_code).phrase
        name = "".join(word.capitalize() for word in phrase.replace("-", " ").split())
    message = exc.detail if isinstance(exc.detail, str) else DEFAULT_ERROR_MESSAGE
    return {"error": name, "message": message}


def build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"] if loc != "body"),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    return {
        "error": "ValidationError",
        "message": "Invalid request data",
        "field": details[0]["field"] if details else "",
        "errors": details,
    }


def describe_request(request: Request) -> dict[str, Any]:
    """Request context logged for diagnostics outside production."""
    return {
        "path": request.url.path,
        "method": request.method,
        "request_body": getattr(request.state, "body", None),
        "path_params": dict(request.path_params),
        "query": dict(request.query_params),
    }
