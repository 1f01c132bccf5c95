"""Abstract base class for authentication schemes.

An :class:`AuthScheme` is the per-negotiation object the
:class:`~negotiator.auth.authenticator.Authenticator` keeps in an
:class:`~negotiator.auth.state.AuthState`. It absorbs challenges from the
server and, once credentials are known, produces the value of the
``Authorization`` (or ``Proxy-Authorization``) header.

To implement a new scheme, subclass :class:`AuthScheme`, set
:attr:`~AuthScheme.scheme_name`, and implement :meth:`~AuthScheme._parse`,
:meth:`~AuthScheme.is_complete` and :meth:`~AuthScheme.authenticate`.
Register a factory for it with
:class:`~negotiator.auth.selector.SchemeRegistry`.

See Also:
    :mod:`negotiator.schemes` for the built-in Basic, Digest and Bearer schemes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from negotiator.auth.challenges import Challenge
from negotiator.auth.credentials import Credentials
from negotiator.exceptions import MalformedChallengeError


class AuthScheme(ABC):
    """Abstract base class for authentication schemes.

    Instances are stateful: a scheme remembers the last challenge it
    processed (realm, nonce, ...) so that :meth:`authenticate` can answer it.
    A fresh instance is created by the selector for every new negotiation.
    """

    scheme_name: str = ""
    """Canonical scheme name, e.g. ``"Basic"``. Lookups lowercase it."""

    def __init__(self) -> None:
        self._challenge: Optional[Challenge] = None

    @property
    def name(self) -> str:
        """The canonical scheme name."""
        return self.scheme_name

    @property
    def realm(self) -> Optional[str]:
        """The realm of the last processed challenge, if any."""
        if self._challenge is None:
            return None
        return self._challenge.realm

    @property
    def challenge(self) -> Optional[Challenge]:
        """The last processed challenge."""
        return self._challenge

    def process_challenge(self, challenge: Optional[Challenge]) -> None:
        """Absorb a challenge from the server.

        Args:
            challenge: The challenge offered for this scheme, or ``None`` when
                the server did not offer one.

        Raises:
            MalformedChallengeError: If *challenge* is missing, names a
                different scheme, or is invalid for this scheme.
        """
        if challenge is None:
            raise MalformedChallengeError(f"No {self.name} challenge to process")
        if challenge.scheme.lower() != self.name.lower():
            raise MalformedChallengeError(
                f"Invalid scheme identifier: {challenge.scheme} (expected {self.name})"
            )
        self._parse(challenge)
        self._challenge = challenge

    @abstractmethod
    def _parse(self, challenge: Challenge) -> None:
        """Validate and absorb a challenge already known to name this scheme.

        Raises:
            MalformedChallengeError: If required parameters are missing or invalid.
        """
        ...

    @abstractmethod
    def is_complete(self) -> bool:
        """Return ``True`` once the handshake needs no further round trips.

        When a complete scheme is challenged again with credentials already
        attached, the authenticator concludes those credentials were rejected.
        """
        ...

    @abstractmethod
    def authenticate(self, credentials: Credentials, request: httpx.Request) -> str:
        """Produce the authorization header value for *request*.

        Args:
            credentials: The credentials attached to the negotiation.
            request: The request about to be (re)sent.

        Returns:
            The full header value, e.g. ``"Basic dXNlcjpwYXNz"``.

        Raises:
            AuthenticationError: If *credentials* are of the wrong type or
                no challenge has been processed yet.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(realm={self.realm!r}, complete={self.is_complete()})"
