"""Shared test fixtures for the cmdgate test suite.

Provides settings objects, a command registry made of commands that
exist on any POSIX box, and FastAPI test clients built from them.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from cmdgate.config.settings import Settings
from cmdgate.domain.models import ProcessResult
from cmdgate.endpoint.runner import ProcessRunner
from cmdgate.endpoint.server import create_app

# Stand-ins for the production registry: ``uptime`` and friends are not
# guaranteed to be installed where the tests run.
TEST_COMMANDS = {
    "uptime": "echo ' 10:00:00 up 3 days,  2:01,  1 user,  load average: 0.00, 0.01, 0.05'",
    "fail": "exit 3",
    "missing": "cmdgate-no-such-binary-xyz",
    "noisy": "echo warning >&2",
}


# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings with no admin key (open /cmd)."""
    return Settings(port=8080, admin_api_key=SecretStr(""))


@pytest.fixture
def secured_settings() -> Settings:
    """Settings with ADMIN_API_KEY=secret."""
    return Settings(port=8080, admin_api_key=SecretStr("secret"))


# ---------------------------------------------------------------------------
# Client Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """A test client running real commands from TEST_COMMANDS."""
    app = create_app(settings=settings, commands=TEST_COMMANDS)
    return TestClient(app)


@pytest.fixture
def secured_client(secured_settings: Settings) -> TestClient:
    """A test client that requires the x-api-key header on /cmd."""
    app = create_app(settings=secured_settings, commands=TEST_COMMANDS)
    return TestClient(app)


@pytest.fixture
def mock_runner() -> AsyncMock:
    """A mock ProcessRunner whose run() succeeds with canned output."""
    runner = AsyncMock(spec=ProcessRunner)
    runner.run.return_value = ProcessResult(exit_code=0, stdout="canned\n", stderr="")
    return runner


@pytest.fixture
def mocked_client(settings: Settings, mock_runner: AsyncMock) -> TestClient:
    """A test client whose /cmd goes to mock_runner."""
    app = create_app(settings=settings, commands=TEST_COMMANDS, runner=mock_runner)
    return TestClient(app)
