"""Shared test fixtures for spec2postman.

Provides spec fixtures, an isolated config environment, output state
management, an httpx mock-transport factory, and a CLI runner. These
fixtures are discovered by pytest and available to all test modules.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from spec2postman.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner swaps those streams the cached
    references go stale, so a fresh manager is forced on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_30_text() -> str:
    """Raw text of the petstore 3.0 JSON fixture."""
    return (FIXTURES_DIR / "petstore_3.0.json").read_text(encoding="utf-8")


@pytest.fixture
def petstore_30_raw(petstore_30_text: str) -> dict[str, Any]:
    """Petstore 3.0 fixture as a dict."""
    return json.loads(petstore_30_text)


@pytest.fixture
def swagger_20_yaml() -> str:
    """Raw text of the petstore Swagger 2.0 YAML fixture."""
    return (FIXTURES_DIR / "petstore_swagger_2.0.yaml").read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# HTTP mocking
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for an httpx.MockTransport that records every request.

    Usage::

        transport = mock_transport(handler)
        ...
        assert transport.requests[0].url.path == "/openapi.json"
    """

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
        requests: list[httpx.Request] = []

        def _recording(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        transport = httpx.MockTransport(_recording)
        transport.requests = requests  # type: ignore[attr-defined]
        return transport

    return _factory


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of
    tmp_path, clears SPEC2POSTMAN_* variables, and changes the working
    directory to tmp_path.
    """
    monkeypatch.setattr("spec2postman.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "SPEC2POSTMAN_TIMEOUT",
        "SPEC2POSTMAN_CLIENT_ID",
        "SPEC2POSTMAN_TOKEN",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
