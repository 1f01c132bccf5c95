"""Asynchronous HTTP client -- mirrors :class:`~negotiator.client.sync_client.SyncClient`.

This module provides :class:`AsyncClient`, the non-blocking counterpart to
:class:`~negotiator.client.sync_client.SyncClient`. It wraps
:class:`httpx.AsyncClient` with the same
:class:`~negotiator.client.auth_flow.NegotiatingAuth` and error mapping.

.. note::
   Negotiation steps themselves are synchronous: a credentials provider
   that prompts the user blocks the event loop while it waits.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from negotiator.auth.credentials import CredentialsProvider
from negotiator.auth.state import AuthStateRegistry
from negotiator.client.auth_flow import NegotiatingAuth, build_auth
from negotiator.client.sync_client import check_auth_status
from negotiator.exceptions import ConnectionError_
from negotiator.models import GlobalConfig
from negotiator.output import get_output
from negotiator.trace import TraceRunner


class AsyncClient:
    """Asynchronous HTTP client that negotiates authentication.

    Takes the same arguments as
    :class:`~negotiator.client.sync_client.SyncClient`. Must be used as an
    async context manager.

    Example::

        async with AsyncClient(provider) as client:
            response = await client.get("https://intranet.example.com/")
    """

    def __init__(
        self,
        credentials: CredentialsProvider,
        base_url: str = "",
        config: Optional[GlobalConfig] = None,
        traces: Optional[TraceRunner] = None,
        proxy: Optional[str] = None,
        raise_for_auth: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or GlobalConfig()
        self._base_url = base_url
        self._proxy = proxy
        self._raise_for_auth = raise_for_auth
        self._transport = transport
        self._auth: NegotiatingAuth = build_auth(credentials, self._config, traces, proxy)
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def auth(self) -> NegotiatingAuth:
        return self._auth

    @property
    def states(self) -> AuthStateRegistry:
        return self._auth.states

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        request = self._config.request
        kwargs: dict[str, Any] = {
            "base_url": self._base_url,
            "timeout": request.timeout,
            "verify": request.verify_ssl,
            "auth": self._auth,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif self._proxy:
            kwargs["proxy"] = self._proxy
        self._client = httpx.AsyncClient(**kwargs)
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, answering authentication challenges on the way.

        Behaves identically to
        :meth:`~negotiator.client.sync_client.SyncClient.request` but is
        non-blocking.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"
        try:
            response = await self._client.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError, httpx.ProxyError) as exc:
            raise ConnectionError_(f"Connection failed: {exc}") from exc
        get_output().debug(f"{method.upper()} {response.request.url} -> {response.status_code}")
        if self._raise_for_auth:
            check_auth_status(response)
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)
