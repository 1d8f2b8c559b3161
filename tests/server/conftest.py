"""Shared pytest fixtures for server tests.

This module is automatically discovered by pytest as a plugin.
"""

from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import jwt
import pytest
from aiohttp.test_utils import TestClient

from safe_launcher.server.app import create_app
from safe_launcher.server.config import AuthConfig, NetworkConfig, ServerConfig
from safe_launcher.server.services.auth import SAFE_DRIVE_ACCESS
from tests.conftest import (
    TEST_KEYWORD,
    TEST_PASSWORD,
    TEST_PIN,
    TEST_SECRET,
    AiohttpClient,
)
from tests.plugins.db_fixtures import TEST_DATABASE_URL

TEST_APP = {"name": "TestApp", "id": "com.example.test", "vendor": "Example"}


def make_token(
    app: dict[str, str] | None = None,
    permissions: list[str] | None = None,
    secret: str = TEST_SECRET,
) -> str:
    """Sign a caller token the way the authorization subsystem does."""
    payload: dict[str, Any] = {
        "app": app if app is not None else TEST_APP,
        "permissions": permissions or [],
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def create_dir(
    client: TestClient,
    headers: dict[str, str],
    path: str,
    root: str = "app",
    **body: object,
) -> None:
    """Create a directory, failing the test if the server refuses."""
    resp = await client.post(f"/nfs/directory/{root}/{path}", json=body, headers=headers)
    assert resp.status == 200, await resp.text()


@pytest.fixture
def mock_trace_log() -> str | None:
    """Trace logging is off unless a test module enables it."""
    return None


@pytest.fixture
def server_config(mock_trace_log: str | None) -> ServerConfig:
    """Create a ServerConfig object for testing."""
    return ServerConfig(
        trace_log_file=mock_trace_log,
        auth=AuthConfig(secret_key=TEST_SECRET),
        network=NetworkConfig(database_url=TEST_DATABASE_URL),
    )


@pytest.fixture(autouse=True)
def patch_server_config(server_config: ServerConfig) -> Generator[None, None, None]:
    """Automatically patch server config for all server tests."""
    with patch(
        "safe_launcher.server.config.ServerConfig.load", return_value=server_config
    ):
        yield


@pytest.fixture(name="auth_headers")
def auth_headers_fixture() -> dict[str, str]:
    """Headers of an application without the drive grant."""
    return bearer(make_token())


@pytest.fixture(name="drive_headers")
def drive_headers_fixture() -> dict[str, str]:
    """Headers of an application holding the drive grant."""
    return bearer(make_token(permissions=[SAFE_DRIVE_ACCESS]))


@pytest.fixture(name="anonymous_client")
async def anonymous_client_fixture(aiohttp_client: AiohttpClient) -> TestClient:
    """A server with no network account logged in."""
    return await aiohttp_client(create_app())


@pytest.fixture(name="client")
async def client_fixture(anonymous_client: TestClient) -> TestClient:
    """A server logged in to a fresh network account."""
    resp = await anonymous_client.post(
        "/auth/account",
        json={"keyword": TEST_KEYWORD, "pin": TEST_PIN, "password": TEST_PASSWORD},
    )
    assert resp.status == 200
    return anonymous_client
