"""Error Hierarchy — typed exceptions for every client-visible failure mode.

Invariants:
    - Every error has a name (the JSON "error" field), a message and a status_code
    - to_response() produces the flat envelope {error, message, **details}
    - details keys are camelCase where clients already depend on them (maxLength, allowedTypes)
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with CarbonApiError base: one global handler renders them all
    - status_code / name / errors are plain attributes so the catch-all handler can
      read them off any exception with getattr, not only our own
"""

from typing import Any


class CarbonApiError(Exception):
    """Base exception for all Carbon Footprint API errors."""

    name = "InternalServerError"
    status_code = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        errors: list[Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.headers = headers
        self.errors = errors

    def to_response(self) -> dict:
        """Convert to the standardized JSON error body."""
        body: dict[str, Any] = {"error": self.name, "message": self.message}
        body.update(self.details)
        if self.errors:
            body["errors"] = self.errors
        return body


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationError(CarbonApiError):
    """Request input failed validation. Always names the offending field."""

    name = "ValidationError"
    status_code = 400

    def __init__(self, message: str, field: str, **context: Any):
        super().__init__(message, {"field": field, **context})
        self.field = field


class UploadError(ValidationError):
    """Multipart payload rejected before validation (transport layer)."""

    name = "UploadError"


class MalformedBodyError(CarbonApiError):
    """Request body could not be decoded."""

    name = "MalformedBodyError"
    status_code = 400


class AuthenticationError(CarbonApiError):
    """Missing or wrong Basic credentials."""

    name = "AuthenticationError"
    status_code = 401

    def __init__(self, realm: str, message: str = "Authentication required"):
        super().__init__(
            message, headers={"WWW-Authenticate": f'Basic realm="{realm}"'},
        )


class RouteNotFoundError(CarbonApiError):
    """No handler matches the request method and path."""

    name = "NotFound"
    status_code = 404

    def __init__(self, method: str, path: str):
        super().__init__(f"Cannot {method} {path}")


class EstimationError(CarbonApiError):
    """The estimator produced no ingredients for the input."""

    name = "EstimationError"
    status_code = 404

    def __init__(self, message: str, **context: Any):
        super().__init__(message, context)


class PayloadTooLargeError(CarbonApiError):
    """Request body exceeds the configured ceiling."""

    name = "PayloadTooLargeError"
    status_code = 413

    def __init__(self, limit: int, length: int):
        super().__init__(
            "Request entity too large",
            {"limit": limit, "length": length},
        )


class TooManyRequestsError(CarbonApiError):
    """Per-IP request ceiling reached."""

    name = "TooManyRequests"
    status_code = 429
