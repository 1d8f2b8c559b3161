"""Root conftest for all tests."""

from typing import Awaitable, Callable

from aiohttp.test_utils import TestClient
from aiohttp.web import Application

pytest_plugins = ["tests.plugins.db_fixtures"]

# Shared test constants
TEST_KEYWORD = "test-keyword"
TEST_PIN = "1234"
TEST_PASSWORD = "testpassword"
TEST_SECRET = "test-secret-key"

# Type alias for the aiohttp_client fixture - shared across all tests
AiohttpClient = Callable[[Application], Awaitable[TestClient]]
