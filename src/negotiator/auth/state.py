"""Per-target negotiation memory.

:class:`AuthState` records, for one target host, which scheme is being
negotiated, which phase the negotiation is in, and which credentials are
attached. It is owned by the caller and mutated only by the
:class:`~negotiator.auth.authenticator.Authenticator`.

An AuthState is not safe for concurrent mutation. Callers that share a
target across threads take :meth:`AuthStateRegistry.lock_for` around each
negotiation step; the authenticator itself holds no locks.
"""

from __future__ import annotations

import enum
import threading
from typing import TYPE_CHECKING, Optional

from negotiator.auth.credentials import Credentials
from negotiator.auth.scope import HttpHost

if TYPE_CHECKING:
    from negotiator.auth.base import AuthScheme


class ChallengeState(str, enum.Enum):
    """Phase of a negotiation.

    ``UNCHALLENGED -> CHALLENGED -> {SUCCESS, FAILURE}``. The next response
    that is not a challenge resets ``SUCCESS`` to ``UNCHALLENGED``.
    """

    UNCHALLENGED = "unchallenged"
    CHALLENGED = "challenged"
    SUCCESS = "success"
    FAILURE = "failure"


class AuthState:
    """Negotiation memory for a single target.

    Attributes:
        scheme: The selected scheme; ``None`` until negotiation starts.
        challenge_state: The current :class:`ChallengeState`.
        credentials: Credentials attached to the ongoing negotiation.
    """

    def __init__(self) -> None:
        self.scheme: Optional[AuthScheme] = None
        self.challenge_state: ChallengeState = ChallengeState.UNCHALLENGED
        self.credentials: Optional[Credentials] = None

    def invalidate(self) -> None:
        """Forget the scheme and credentials and return to ``UNCHALLENGED``."""
        self.scheme = None
        self.credentials = None
        self.challenge_state = ChallengeState.UNCHALLENGED

    def is_valid(self) -> bool:
        """Return ``True`` when a scheme has been selected."""
        return self.scheme is not None

    def has_credentials(self) -> bool:
        """Return ``True`` when a scheme and credentials are both attached."""
        return self.scheme is not None and self.credentials is not None

    def __repr__(self) -> str:
        parts = [f"state:{self.challenge_state.name}"]
        if self.scheme is not None:
            parts.append(f"auth scheme:{self.scheme.name.lower()}")
        if self.credentials is not None:
            parts.append("credentials present")
        return f"<AuthState {';'.join(parts)}>"


class AuthStateRegistry:
    """Hands out one :class:`AuthState` and one lock per target.

    Example::

        registry = AuthStateRegistry()
        target = HttpHost.from_url("https://intranet.example.com/")
        with registry.lock_for(target):
            state = registry.get(target)
    """

    def __init__(self) -> None:
        self._states: dict[HttpHost, AuthState] = {}
        self._locks: dict[HttpHost, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, target: HttpHost) -> AuthState:
        """Return the state for *target*, creating it on first use."""
        with self._guard:
            state = self._states.get(target)
            if state is None:
                state = self._states[target] = AuthState()
            return state

    def lock_for(self, target: HttpHost) -> threading.Lock:
        """Return the mutual-exclusion lock guarding *target*'s state."""
        with self._guard:
            lock = self._locks.get(target)
            if lock is None:
                lock = self._locks[target] = threading.Lock()
            return lock

    def targets(self) -> list[HttpHost]:
        """Return every target that has a state."""
        with self._guard:
            return list(self._states)

    def reset(self, target: Optional[HttpHost] = None) -> None:
        """Invalidate the state of *target*, or of every target when ``None``."""
        with self._guard:
            states = [self._states[target]] if target in self._states else []
            if target is None:
                states = list(self._states.values())
        for state in states:
            state.invalidate()
