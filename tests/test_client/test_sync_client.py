"""Tests for the synchronous HTTP client."""

from __future__ import annotations

import base64

import httpx
import pytest

from negotiator.auth.credentials import InMemoryCredentialsProvider
from negotiator.auth.scope import HttpHost
from negotiator.auth.state import ChallengeState
from negotiator.client.sync_client import SyncClient, check_auth_status
from negotiator.exceptions import AuthenticationError, ConnectionError_
from negotiator.models import GlobalConfig, RequestConfig
from negotiator.output import OutputManager, reset_output, set_output

BASE_URL = "https://intranet.example.com"
GOOD_BASIC = "Basic " + base64.b64encode(b"alice:s3cret").decode()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _basic_handler(request: httpx.Request) -> httpx.Response:
    if request.headers.get("Authorization") == GOOD_BASIC:
        return httpx.Response(200, json={"method": request.method, "path": request.url.path})
    return httpx.Response(401, headers={"WWW-Authenticate": 'Basic realm="staff"'})


@pytest.fixture(autouse=True)
def _clean_output():
    """Reset the global output manager between tests."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Context manager
# ---------------------------------------------------------------------------


class TestContextManager:
    def test_enter_creates_client(self, alice_provider: InMemoryCredentialsProvider) -> None:
        client = SyncClient(alice_provider, BASE_URL)
        assert client._client is None
        with client:
            assert client._client is not None
        assert client._client is None

    def test_request_outside_context_fails(self, alice_provider: InMemoryCredentialsProvider) -> None:
        with pytest.raises(AssertionError, match="context manager"):
            SyncClient(alice_provider, BASE_URL).get("/")

    def test_applies_request_config(self, alice_provider: InMemoryCredentialsProvider) -> None:
        config = GlobalConfig(request=RequestConfig(timeout=7))
        with SyncClient(alice_provider, BASE_URL, config=config) as client:
            assert client._client is not None
            assert client._client.timeout.read == 7
            assert client._client.auth is client.auth


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequests:
    @pytest.mark.parametrize("method", ["get", "post", "put", "delete"])
    def test_verbs_negotiate(self, alice_provider: InMemoryCredentialsProvider, method: str) -> None:
        transport = httpx.MockTransport(_basic_handler)
        with SyncClient(alice_provider, BASE_URL, transport=transport) as client:
            response = getattr(client, method)("/reports")

        assert response.status_code == 200
        assert response.json() == {"method": method.upper(), "path": "/reports"}

    def test_state_survives_across_requests(self, alice_provider: InMemoryCredentialsProvider) -> None:
        seen: list[str | None] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("Authorization"))
            return _basic_handler(request)

        with SyncClient(alice_provider, BASE_URL, transport=httpx.MockTransport(handler)) as client:
            client.get("/a")
            client.get("/b")
            state = client.states.get(HttpHost.from_url(BASE_URL))

        assert seen == [None, GOOD_BASIC, GOOD_BASIC]
        assert state.challenge_state is ChallengeState.SUCCESS

    def test_final_401_returned_by_default(self) -> None:
        with SyncClient(
            InMemoryCredentialsProvider(), BASE_URL, transport=httpx.MockTransport(_basic_handler)
        ) as client:
            assert client.get("/").status_code == 401

    def test_raise_for_auth(self) -> None:
        with SyncClient(
            InMemoryCredentialsProvider(),
            BASE_URL,
            raise_for_auth=True,
            transport=httpx.MockTransport(_basic_handler),
        ) as client:
            with pytest.raises(AuthenticationError, match="server rejected authentication") as exc_info:
                client.get("/")
        assert exc_info.value.exit_code == 3

    def test_connection_error_mapped(self, alice_provider: InMemoryCredentialsProvider) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with SyncClient(alice_provider, BASE_URL, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConnectionError_, match="connection refused") as exc_info:
                client.get("/")
        assert exc_info.value.exit_code == 6

    def test_timeout_mapped(self, alice_provider: InMemoryCredentialsProvider) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with SyncClient(alice_provider, BASE_URL, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConnectionError_):
                client.get("/")


class TestCheckAuthStatus:
    def _response(self, status: int) -> httpx.Response:
        return httpx.Response(status, request=httpx.Request("GET", "https://intranet.example.com/x"))

    def test_success_passes(self) -> None:
        check_auth_status(self._response(200))
        check_auth_status(self._response(403))

    def test_proxy_rejection(self) -> None:
        with pytest.raises(AuthenticationError, match="HTTP 407: proxy rejected"):
            check_auth_status(self._response(407))
