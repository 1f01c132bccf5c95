"""Synchronous HTTP client with challenge/response authentication.

This module provides :class:`SyncClient`, the blocking client used by the
``negotiator probe`` command. It wraps :class:`httpx.Client` and layers on:

- **Negotiated authentication** -- a
  :class:`~negotiator.client.auth_flow.NegotiatingAuth` answers 401 (and,
  with a proxy, 407) challenges from the configured credentials provider.
- **Error mapping** -- network failures become
  :class:`~negotiator.exceptions.ConnectionError_`; with ``raise_for_auth``
  a final 401/407 becomes :class:`~negotiator.exceptions.AuthenticationError`.

See Also:
    :class:`~negotiator.client.async_client.AsyncClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from negotiator.auth.credentials import CredentialsProvider
from negotiator.auth.state import AuthStateRegistry
from negotiator.client.auth_flow import NegotiatingAuth, build_auth
from negotiator.exceptions import AuthenticationError, ConnectionError_
from negotiator.models import GlobalConfig
from negotiator.output import get_output
from negotiator.trace import TraceRunner

_AUTH_STATUSES = (401, 407)


def check_auth_status(response: httpx.Response) -> None:
    """Raise :class:`AuthenticationError` if *response* is still a challenge."""
    if response.status_code not in _AUTH_STATUSES:
        return
    who = "proxy" if response.status_code == 407 else "server"
    raise AuthenticationError(
        f"HTTP {response.status_code}: {who} rejected authentication for {response.request.url}"
    )


class SyncClient:
    """Synchronous HTTP client that negotiates authentication.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed. Per-host negotiation state survives across
    requests made through the same client, so credentials accepted once are
    sent preemptively afterwards.

    Args:
        credentials: Where credentials are looked up when challenged.
        base_url: Prefix for relative request URLs.
        config: Scheme priority, round limit and request settings.
        traces: Receives negotiation trace events.
        proxy: Proxy URL; enables proxy authentication.
        raise_for_auth: Raise when the final response is 401 or 407.
        transport: Custom httpx transport (tests use
            :class:`httpx.MockTransport`).

    Example::

        with SyncClient(CredentialStore()) as client:
            response = client.get("https://intranet.example.com/")
    """

    def __init__(
        self,
        credentials: CredentialsProvider,
        base_url: str = "",
        config: Optional[GlobalConfig] = None,
        traces: Optional[TraceRunner] = None,
        proxy: Optional[str] = None,
        raise_for_auth: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or GlobalConfig()
        self._base_url = base_url
        self._proxy = proxy
        self._raise_for_auth = raise_for_auth
        self._transport = transport
        self._auth: NegotiatingAuth = build_auth(credentials, self._config, traces, proxy)
        self._client: Optional[httpx.Client] = None

    @property
    def auth(self) -> NegotiatingAuth:
        return self._auth

    @property
    def states(self) -> AuthStateRegistry:
        """Per-host origin-server negotiation states."""
        return self._auth.states

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncClient:
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
        self._client = httpx.Client(**kwargs)
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, answering authentication challenges on the way.

        Args:
            method: HTTP method.
            url: Absolute URL, or a path relative to ``base_url``.
            **kwargs: Forwarded to :meth:`httpx.Client.request`
                (``headers``, ``params``, ``json``, ``content``, ...).

        Returns:
            The final :class:`httpx.Response`.

        Raises:
            ConnectionError_: On network or timeout errors.
            AuthenticationError: When ``raise_for_auth`` is set and the
                final response is 401 or 407.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"
        try:
            response = self._client.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError, httpx.ProxyError) as exc:
            raise ConnectionError_(f"Connection failed: {exc}") from exc
        get_output().debug(f"{method.upper()} {response.request.url} -> {response.status_code}")
        if self._raise_for_auth:
            check_auth_status(response)
        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)
