"""Basic Authentication — single static credential pair from settings.

Invariants:
    - Missing header → HTTPBasic challenge (401 + WWW-Authenticate)
    - Wrong credentials → AuthenticationError (401 + WWW-Authenticate)
    - Comparison is constant-time on both username and password
"""

import logging
import secrets

from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from carbon_api.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

REALM = "Carbon Footprint API"

basic_scheme = HTTPBasic(scheme_name="basicAuth", realm=REALM)


def credentials_match(
    credentials: HTTPBasicCredentials, username: str, password: str,
) -> bool:
    user_ok = secrets.compare_digest(
        credentials.username.encode("utf8"), username.encode("utf8"),
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf8"), password.encode("utf8"),
    )
    return user_ok and password_ok


def require_basic_auth(
    request: Request,
    credentials: HTTPBasicCredentials = Depends(basic_scheme),
) -> str:
    """Route dependency: returns the authenticated username."""
    settings = request.app.state.settings
    if not credentials_match(
        credentials, settings.basic_auth_user, settings.basic_auth_password,
    ):
        logger.warning(
            "Rejected Basic credentials",
            extra={"path": request.url.path, "method": request.method},
        )
        raise AuthenticationError(REALM, "Invalid credentials")
    return credentials.username
