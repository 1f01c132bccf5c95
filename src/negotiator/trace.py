"""Structured trace events emitted while negotiating.

This module provides three pieces:

* :class:`TraceEvent` -- an immutable record of one step of a negotiation
  (challenge received, scheme selected, credentials found, ...).
* :class:`TraceRunner` -- delivers events to every registered listener in
  registration order.
* Listeners -- :class:`LoggingTraceListener` (installed by default, writes
  to the ``negotiator.trace`` logger) and :class:`RecordingTraceListener`
  (keeps events in memory for the CLI and tests).

The authenticator only calls :meth:`TraceRunner.emit`; what happens to the
events is entirely up to the listeners.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class TraceKind(str, enum.Enum):
    """The well-defined points at which the authenticator emits events."""

    AUTH_REQUESTED = "auth_requested"
    NO_CHALLENGES = "no_challenges"
    SCHEME_SELECTED = "scheme_selected"
    SCHEME_RESELECTED = "scheme_reselected"
    CHALLENGE_PROCESSED = "challenge_processed"
    CREDENTIALS_FOUND = "credentials_found"
    CREDENTIALS_NOT_FOUND = "credentials_not_found"
    CREDENTIALS_REJECTED = "credentials_rejected"
    MALFORMED_CHALLENGE = "malformed_challenge"
    NO_ACCEPTABLE_SCHEME = "no_acceptable_scheme"
    AUTH_SUCCEEDED = "auth_succeeded"


_WARNING_KINDS = frozenset(
    {TraceKind.MALFORMED_CHALLENGE, TraceKind.NO_ACCEPTABLE_SCHEME}
)


@dataclass(frozen=True)
class TraceEvent:
    """One step of a negotiation.

    Attributes:
        kind: What happened.
        target: ``host:port`` of the negotiation target, when known.
        scheme: Name of the scheme involved, when any.
        message: Human-readable description.
        data: Extra structured details (offered schemes, scope, ...).
    """

    kind: TraceKind
    target: Optional[str] = None
    scheme: Optional[str] = None
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)


class TraceListener(Protocol):
    def on_event(self, event: TraceEvent) -> None: ...


class TraceRunner:
    """Delivers trace events to listeners in registration order.

    A listener that raises is logged and skipped so that observability
    never changes the outcome of a negotiation.

    Args:
        listeners: Initial listeners.
    """

    def __init__(self, listeners: Optional[list[TraceListener]] = None) -> None:
        self._listeners: list[TraceListener] = list(listeners or [])

    def add_listener(self, listener: TraceListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TraceListener) -> None:
        self._listeners.remove(listener)

    @property
    def listeners(self) -> list[TraceListener]:
        return list(self._listeners)

    def emit(self, event: TraceEvent) -> None:
        for listener in self._listeners:
            try:
                listener.on_event(event)
            except Exception:
                logger.exception("Trace listener %r failed on %s", listener, event.kind.value)


class LoggingTraceListener:
    """Writes events to a :mod:`logging` logger.

    Malformed challenges and unanswerable challenge sets are logged at
    WARNING; everything else at DEBUG.

    Args:
        log: Logger to write to (defaults to ``negotiator.trace``).
    """

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    def on_event(self, event: TraceEvent) -> None:
        level = logging.WARNING if event.kind in _WARNING_KINDS else logging.DEBUG
        if not self._log.isEnabledFor(level):
            return
        prefix = f"{event.target} " if event.target else ""
        self._log.log(level, "%s%s: %s", prefix, event.kind.value, event.message)


class RecordingTraceListener:
    """Keeps every event in :attr:`events`."""

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []

    def on_event(self, event: TraceEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[TraceKind]:
        return [event.kind for event in self.events]

    def clear(self) -> None:
        self.events.clear()
