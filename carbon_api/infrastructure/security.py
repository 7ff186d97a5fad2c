"""HTTP Hardening — security response headers and per-IP rate limiting.

Invariants:
    - Every response carries SECURITY_HEADERS (errors, 404s and 429s included)
    - Content-Security-Policy is skipped under DOCS_PATH_PREFIX (Swagger UI loads from a CDN)
    - The rate limit is one shared per-IP budget across all routes, counted in a
      middleware so it holds for every route and runs before authentication
    - Each RateLimiter owns its own in-memory storage: one app instance, one budget table

Design Decisions:
    - `limits` moving window directly in an HTTP middleware: the budget does not
      depend on per-route decorators or route-class introspection
"""

import logging
import time
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from carbon_api.config import Settings
from carbon_api.core.errors import TooManyRequestsError

logger = logging.getLogger(__name__)

DOCS_PATH_PREFIX = "/api-docs"
RATE_LIMIT_SCOPE = "global"
UNKNOWN_CLIENT = "127.0.0.1"

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
}

CONTENT_SECURITY_POLICY = (
    "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
    "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
    "object-src 'none';script-src 'self';script-src-attr 'none';"
    "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
)


async def add_security_headers(request: Request, call_next):
    """HTTP middleware: stamp hardened headers on the outgoing response."""
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value
    if not request.url.path.startswith(DOCS_PATH_PREFIX):
        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
    return response


def describe_window(item: RateLimitItem) -> str:
    """'15 minutes', '1 hour': the window length in words."""
    unit = item.GRANULARITY.name
    return f"{item.multiples} {unit}{'' if item.multiples == 1 else 's'}"


def client_address(request: Request) -> str:
    return request.client.host if request.client else UNKNOWN_CLIENT


@dataclass
class RateLimiter:
    """One moving-window budget per client IP, shared by every route."""
    item: RateLimitItem
    strategy: MovingWindowRateLimiter
    enabled: bool = True

    @property
    def message(self) -> str:
        return (
            "Too many requests from this IP, please try again after "
            f"{describe_window(self.item)}"
        )

    def allow(self, client: str) -> bool:
        if not self.enabled:
            return True
        return self.strategy.hit(self.item, RATE_LIMIT_SCOPE, client)

    def retry_after(self, client: str) -> int:
        stats = self.strategy.get_window_stats(self.item, RATE_LIMIT_SCOPE, client)
        return max(1, int(stats.reset_time - time.time()) + 1)

    async def __call__(self, request: Request, call_next):
        """HTTP middleware: reject the request once the client's budget is spent."""
        client = client_address(request)
        if self.allow(client):
            return await call_next(request)

        logger.warning(
            f"Rate limit exceeded for {client}",
            extra={"path": request.url.path, "client": client},
        )
        error = TooManyRequestsError(self.message, {"limit": str(self.item)})
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_response(),
            headers={"Retry-After": str(self.retry_after(client))},
        )


def build_limiter(settings: Settings) -> RateLimiter:
    """Per-IP limiter with its own in-memory storage."""
    return RateLimiter(
        item=parse(settings.rate_limit),
        strategy=MovingWindowRateLimiter(MemoryStorage()),
        enabled=settings.rate_limit_enabled,
    )


def install_security(app: FastAPI, settings: Settings) -> None:
    """Attach rate limiting and security headers (headers outermost)."""
    app.state.limiter = build_limiter(settings)
    app.middleware("http")(app.state.limiter)
    app.middleware("http")(add_security_headers)
