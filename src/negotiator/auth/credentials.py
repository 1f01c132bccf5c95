"""Credentials and the providers that look them up by scope.

The negotiation core only ever calls :meth:`CredentialsProvider.lookup`;
everything else here is about where credentials come from.

- :class:`Credentials` and its concrete forms
  :class:`UsernamePasswordCredentials` and :class:`TokenCredentials`.
- :class:`CredentialsProvider` -- the abstract lookup capability.
- :class:`InMemoryCredentialsProvider` -- a process-local provider keyed by
  :class:`~negotiator.auth.scope.AuthScope` with best-match lookup.

See Also:
    :class:`~negotiator.auth.credential_store.CredentialStore` for the
    persistent, file-backed provider.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from negotiator.auth.scope import AuthScope

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    """Base class for anything a scheme can authenticate with."""

    model_config = ConfigDict(frozen=True)


class UsernamePasswordCredentials(Credentials):
    """A user name and password pair, used by Basic and Digest."""

    username: str
    password: str = Field(repr=False)


class TokenCredentials(Credentials):
    """An opaque access token, used by Bearer."""

    token: str = Field(repr=False)


class CredentialsProvider(ABC):
    """Abstract source of credentials for a given scope.

    Implementations may block (for example to prompt the user); the
    authenticator imposes no timeout on :meth:`lookup`.
    """

    @abstractmethod
    def lookup(self, scope: AuthScope) -> Optional[Credentials]:
        """Return the credentials that best match *scope*, or ``None``.

        Args:
            scope: The fully specified scope built from the target host and
                the selected scheme.
        """
        ...


def best_match(
    candidates: dict[AuthScope, Credentials], scope: AuthScope
) -> Optional[Credentials]:
    """Pick the entry whose key matches *scope* most specifically.

    Args:
        candidates: Stored scopes (possibly with wildcards) and their credentials.
        scope: The requested scope.

    Returns:
        The credentials of the highest-scoring key, or ``None`` when no key
        matches. Ties go to the key inserted first.
    """
    exact = candidates.get(scope)
    if exact is not None:
        return exact
    best_factor = -1
    best: Optional[Credentials] = None
    for stored, creds in candidates.items():
        factor = stored.match(scope)
        if factor > best_factor:
            best_factor = factor
            best = creds
    return best


class InMemoryCredentialsProvider(CredentialsProvider):
    """Process-local credentials keyed by scope.

    Example::

        provider = InMemoryCredentialsProvider()
        provider.set_credentials(
            AuthScope(host="intranet", realm="staff"),
            UsernamePasswordCredentials(username="alice", password="s3cret"),
        )
        provider.lookup(AuthScope(host="intranet", port=80, realm="staff", scheme_name="Basic"))
    """

    def __init__(self) -> None:
        self._credentials: dict[AuthScope, Credentials] = {}
        self._lock = threading.Lock()

    def set_credentials(self, scope: AuthScope, credentials: Optional[Credentials]) -> None:
        """Store *credentials* under *scope*; ``None`` removes the entry."""
        with self._lock:
            if credentials is None:
                self._credentials.pop(scope, None)
            else:
                self._credentials[scope] = credentials

    def lookup(self, scope: AuthScope) -> Optional[Credentials]:
        with self._lock:
            found = best_match(self._credentials, scope)
        logger.debug("Credential lookup for %s: %s", scope, "hit" if found else "miss")
        return found

    def clear(self) -> None:
        """Forget every stored credential."""
        with self._lock:
            self._credentials.clear()

    def __len__(self) -> int:
        return len(self._credentials)
