"""Root conftest — isolated app + HTTP client per test.

Invariants:
    - Every test gets a fresh app from create_app (own limiter storage, own settings)
    - Credentials are fixed test values, never read from a developer's .env
"""

import base64

import pytest
from httpx import ASGITransport, AsyncClient

from carbon_api.config import Settings
from carbon_api.main import create_app

TEST_USER = "tester"
TEST_PASSWORD = "s3cret"


def basic_auth_header(user: str = TEST_USER, password: str = TEST_PASSWORD) -> dict:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        basic_auth_user=TEST_USER,
        basic_auth_password=TEST_PASSWORD,
        log_format="text",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def auth() -> dict:
    return basic_auth_header()


@pytest.fixture
def make_auth():
    """Build an Authorization header for arbitrary credentials."""
    return basic_auth_header
