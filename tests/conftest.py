"""Shared test fixtures for negotiator.

Provides isolated config directories, output state management, common
credentials and targets, and a factory for challenge responses. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from negotiator.auth.credentials import InMemoryCredentialsProvider, UsernamePasswordCredentials
from negotiator.auth.scope import AuthScope, HttpHost
from negotiator.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and data to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    clears NEGOTIATOR_* environment variables and changes the working
    directory to tmp_path.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["NEGOTIATOR_SCHEME_PRIORITY", "NEGOTIATOR_MAX_AUTH_ROUNDS"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Credentials and targets
# ---------------------------------------------------------------------------


@pytest.fixture
def alice() -> UsernamePasswordCredentials:
    return UsernamePasswordCredentials(username="alice", password="s3cret")


@pytest.fixture
def target() -> HttpHost:
    return HttpHost(hostname="intranet.example.com", port=443, scheme="https")


@pytest.fixture
def alice_provider(alice: UsernamePasswordCredentials) -> InMemoryCredentialsProvider:
    """Provider that hands alice's credentials to any scope."""
    provider = InMemoryCredentialsProvider()
    provider.set_credentials(AuthScope.ANY, alice)
    return provider


# ---------------------------------------------------------------------------
# Challenge responses
# ---------------------------------------------------------------------------


@pytest.fixture
def make_challenge() -> Callable[..., httpx.Response]:
    """Factory for responses carrying one challenge header per argument.

    Example::

        response = make_challenge('Basic realm="staff"', 'Digest realm="x", nonce="n"')
        response = make_challenge('Basic realm="proxy"', status_code=407, header="Proxy-Authenticate")
    """

    def _make(
        *challenges: str,
        status_code: int = 401,
        header: str = "WWW-Authenticate",
        url: str = "https://intranet.example.com/reports",
    ) -> httpx.Response:
        return httpx.Response(
            status_code=status_code,
            headers=[(header, value) for value in challenges],
            request=httpx.Request("GET", url),
        )

    return _make
