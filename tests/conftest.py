"""
Pytest configuration and fixtures for ONLYOFFICE Bridge tests.
"""

import os
import shutil
import tempfile

import pytest
import requests
from fastapi.testclient import TestClient

# Set test environment variables before importing the app
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="onlyoffice_test_storage_")
os.environ["JWT_ENABLED"] = "false"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

from onlyoffice_bridge.configuration import load_settings
from onlyoffice_bridge.main import app, create_app
from onlyoffice_bridge.tokens import TokenService

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"


def make_response(status_code: int, content: bytes = b"") -> requests.Response:
    """Build a requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response._content = content
    response.encoding = "utf-8"
    return response


class FakeSession:
    """Stands in for requests.Session; replays queued responses and records calls."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def queue(self, item):
        self.responses.append(item)
        return self

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self._next()

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self._next()

    def _next(self):
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(scope="session", autouse=True)
def storage_root():
    """Storage directory used by the module-level demo app; removed after the run."""
    path = os.environ["STORAGE_ROOT"]
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def client():
    """Test client for the module-level demo app."""
    return TestClient(app)


@pytest.fixture
def secret():
    return TEST_SECRET


@pytest.fixture
def tokens(secret):
    """Token service with token auth enabled."""
    return TokenService(secret=secret, enabled=True)


@pytest.fixture
def disabled_tokens():
    return TokenService(secret="", enabled=False)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def make_settings(tmp_path):
    """Settings isolated to a temporary storage root."""

    def _make(**overrides):
        values = {
            "storage_root": str(tmp_path / "storage"),
            "document_server_url": "http://docserver",
            "public_base_url": "http://testserver",
            "jwt_enabled": False,
            "jwt_secret": "",
        }
        values.update(overrides)
        return load_settings(values)

    return _make


@pytest.fixture
def app_factory(make_settings, fake_session):
    """Build an isolated demo app whose outbound HTTP goes through ``fake_session``."""

    def _build(**overrides):
        return create_app(make_settings(**overrides), session=fake_session)

    return _build
