"""HTTP client module for negotiator.

Provides synchronous and asynchronous HTTP clients that wrap :mod:`httpx`
with challenge/response authentication driven by the negotiation core.

Classes:
    :class:`NegotiatingAuth` -- the :class:`httpx.Auth` doing the work;
    usable directly with any httpx client.
    :class:`SyncClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.

Example::

    from negotiator.client import SyncClient

    with SyncClient(provider, raise_for_auth=True) as client:
        resp = client.get("https://intranet.example.com/reports")
"""

from negotiator.client.async_client import AsyncClient
from negotiator.client.auth_flow import NegotiatingAuth, build_auth
from negotiator.client.sync_client import SyncClient

__all__ = ["AsyncClient", "NegotiatingAuth", "SyncClient", "build_auth"]
