"""Target identity and credential lookup keys.

This module defines two immutable value objects:

- :class:`HttpHost` -- the ``(hostname, port, scheme)`` triple a negotiation
  runs against. One :class:`~negotiator.auth.state.AuthState` exists per
  host.
- :class:`AuthScope` -- the ``(host, port, realm, scheme_name)`` tuple the
  :class:`~negotiator.auth.authenticator.Authenticator` hands to a
  :class:`~negotiator.auth.credentials.CredentialsProvider`.

Equality of two scopes compares all four fields exactly as stored. Stored
scopes may leave fields as ``None`` to act as wildcards; :meth:`AuthScope.match`
scores how specifically such a stored scope covers a requested one.
"""

from __future__ import annotations

from typing import ClassVar, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

_DEFAULT_PORTS = {"http": 80, "https": 443}


class HttpHost(BaseModel):
    """A negotiation target: hostname, port and URL scheme.

    Example::

        host = HttpHost.from_url("https://Example.com/path")
        assert host.to_host_string() == "example.com:443"
    """

    model_config = ConfigDict(frozen=True)

    hostname: str
    port: int
    scheme: str = "http"

    @field_validator("hostname", "scheme")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.lower()

    @classmethod
    def from_url(cls, url: Union[httpx.URL, str]) -> HttpHost:
        """Build a host from a URL, filling in the default port for its scheme.

        Args:
            url: An :class:`httpx.URL` or a URL string with a host component.

        Returns:
            The target identity for *url*.

        Raises:
            ValueError: If *url* has no host.
        """
        if not isinstance(url, httpx.URL):
            url = httpx.URL(url)
        if not url.host:
            raise ValueError(f"URL has no host: {url}")
        scheme = url.scheme or "http"
        port = url.port if url.port is not None else _DEFAULT_PORTS.get(scheme, 80)
        return cls(hostname=url.host, port=port, scheme=scheme)

    def to_host_string(self) -> str:
        """Return ``hostname:port``."""
        return f"{self.hostname}:{self.port}"

    def __str__(self) -> str:
        return f"{self.scheme}://{self.to_host_string()}"


class AuthScope(BaseModel):
    """Credential lookup key: host, port, realm and scheme name.

    Scopes built by the authenticator are fully specified (the realm may
    legitimately be ``None`` for schemes without one). Scopes used as keys
    in a credentials provider may use ``None`` as "any" in every field.

    Attributes:
        host: Target hostname, or ``None`` for any host.
        port: Target port, or ``None`` for any port.
        realm: Protection space announced by the server, or ``None``.
        scheme_name: Auth scheme name, or ``None`` for any scheme.
    """

    model_config = ConfigDict(frozen=True)

    ANY: ClassVar[AuthScope]

    host: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=0, le=65535)
    realm: Optional[str] = None
    scheme_name: Optional[str] = None

    def match(self, other: AuthScope) -> int:
        """Score how well this (stored) scope covers *other* (requested).

        ``None`` fields on this scope match anything. Host and scheme names
        are compared case-insensitively; the realm is compared exactly.

        Args:
            other: The scope being looked up.

        Returns:
            ``-1`` if the scopes are incompatible, otherwise a score where
            matching scheme adds 1, realm 2, port 4 and host 8.
        """
        factor = 0
        if _same(self.scheme_name, other.scheme_name, fold=True):
            factor += 1
        elif self.scheme_name is not None:
            return -1
        if self.realm == other.realm:
            factor += 2
        elif self.realm is not None:
            return -1
        if self.port == other.port:
            factor += 4
        elif self.port is not None:
            return -1
        if _same(self.host, other.host, fold=True):
            factor += 8
        elif self.host is not None:
            return -1
        return factor

    def __str__(self) -> str:
        scheme = self.scheme_name if self.scheme_name is not None else "<any scheme>"
        realm = f"'{self.realm}'" if self.realm is not None else "<any realm>"
        host = self.host if self.host is not None else "<any host>"
        port = str(self.port) if self.port is not None else "<any port>"
        return f"{scheme} {realm}@{host}:{port}"


def _same(a: Optional[str], b: Optional[str], fold: bool = False) -> bool:
    if a is None or b is None:
        return a is b
    if fold:
        return a.lower() == b.lower()
    return a == b


AuthScope.ANY = AuthScope()
