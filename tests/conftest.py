"""
Natours Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── public_dir:        temporary static asset directory
    ├── settings_factory:  builds Settings with test defaults + overrides
    ├── context_factory:   builds RequestContext objects for stage unit tests
    ├── client:            HTTPX AsyncClient, production mode
    ├── dev_client:        HTTPX AsyncClient, development mode
    ├── auth_headers:      Authorization header with a valid bearer token
    └── token_factory:     signs arbitrary bearer tokens
"""

import os
from typing import Any, Dict

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Keep tests independent of the developer's environment / .env
os.environ["ENVIRONMENT"] = "production"
os.environ["LOG_LEVEL"] = "WARNING"

from natours.config import Settings  # noqa: E402
from natours.main import create_app  # noqa: E402
from natours.middleware.context import RequestContext  # noqa: E402

TEST_JWT_SECRET = "test-secret-not-for-production"


def make_token(payload: Dict[str, Any], secret: str = TEST_JWT_SECRET) -> str:
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def public_dir(tmp_path):
    """
    A small public/ tree:
        index.html
        css/style.css
        img/            (directory without index.html)
    """
    root = tmp_path / "public"
    (root / "css").mkdir(parents=True)
    (root / "img").mkdir()
    (root / "index.html").write_text("<h1>Natours</h1>")
    (root / "css" / "style.css").write_text("body { color: #777; }")
    (tmp_path / "secret.txt").write_text("outside the public root")
    return root


@pytest.fixture
def settings_factory(public_dir):
    def factory(**overrides) -> Settings:
        values: Dict[str, Any] = {
            "environment": "production",
            "log_level": "WARNING",
            "public_dir": str(public_dir),
            "jwt_secret": TEST_JWT_SECRET,
        }
        values.update(overrides)
        return Settings(**values)

    return factory


@pytest.fixture
def context_factory():
    """
    Builds a RequestContext for stage unit tests.

    Usage:
        ctx = context_factory("/api/v1/tours", body=b'{"a": 1}',
                              headers={"content-type": "application/json"})
    """

    def factory(path: str = "/", method: str = "GET", body: bytes = b"", **kwargs) -> RequestContext:
        async def read_body() -> bytes:
            return body

        return RequestContext(path=path, method=method, read_body=read_body, **kwargs)

    return factory


@pytest.fixture
def app(settings_factory):
    return create_app(settings_factory())


@pytest.fixture
def dev_app(settings_factory):
    return create_app(settings_factory(environment="development"))


@pytest_asyncio.fixture
async def client(app):
    """Production-mode client: minimal error bodies."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest_asyncio.fixture
async def dev_client(dev_app):
    """Development-mode client: verbose error bodies, request logging on."""
    transport = ASGITransport(app=dev_app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def auth_headers():
    token = make_token({"id": "user-1", "name": "Leo Gillespie", "email": "leo@example.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token_factory():
    """Signs bearer tokens: token_factory({"id": "u1"}, secret=...)."""
    return make_token
