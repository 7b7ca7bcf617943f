"""
Test configuration and fixtures for the custom exception middleware.
"""
from typing import Any, Dict, List

import pytest
from starlette.testclient import TestClient

from tests.webapp import app, create_app


@pytest.fixture
def client() -> TestClient:
    """Create a test client for the stacked demo app."""
    return TestClient(app)


@pytest.fixture
def app_factory():
    """Build a demo app mounting the given policies (first one innermost)."""
    return create_app


@pytest.fixture
def static_payload() -> Dict[str, Any]:
    """Fixed extension payload."""
    return {"CustomValue": "X", "Success": False}


@pytest.fixture
def fault_paths() -> List[str]:
    """Every demo endpoint that raises by default."""
    return [
        "/customer/domain",
        "/customer/cannot-access",
        "/customer/not-found",
        "/customer/unauthorized",
        "/customer/exception",
    ]


@pytest.fixture
def asgi_scope() -> Dict[str, Any]:
    """Minimal HTTP scope for driving the middleware without a server."""
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "path": "/stream",
        "raw_path": b"/stream",
        "root_path": "",
        "query_string": b"",
        "headers": [],
    }


# Environment fixtures
@pytest.fixture
def test_env_vars(monkeypatch):
    """Set test environment variables."""
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_FORMAT", "json")
