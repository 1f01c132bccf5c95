"""The negotiation core.

:class:`Authenticator` decides, for one target at a time, whether a
response demands authentication, which offered scheme to answer, and
whether the credentials attached to the target's
:class:`~negotiator.auth.state.AuthState` should be (re)sent.

It performs no I/O and never sends a request: the transport asks
:meth:`Authenticator.is_authentication_requested`, then
:meth:`Authenticator.authenticate`, and resends when the latter returns
``True``. Every expected failure (a malformed challenge, no acceptable
scheme, rejected credentials) is reported as a :class:`NegotiationOutcome`
rather than raised.

Example::

    authenticator = Authenticator(
        selector=create_default_selector(),
        credentials=provider,
    )
    state = AuthState()
    if authenticator.is_authentication_requested(response, state):
        if authenticator.authenticate(target, response, state):
            ...  # resend with state.scheme.authenticate(state.credentials, request)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from negotiator.auth.challenges import ChallengeHandler, TargetChallengeHandler
from negotiator.auth.credentials import CredentialsProvider
from negotiator.auth.scope import AuthScope, HttpHost
from negotiator.auth.selector import SchemeSelector
from negotiator.auth.state import AuthState, ChallengeState
from negotiator.exceptions import AuthenticationError, MalformedChallengeError
from negotiator.trace import LoggingTraceListener, TraceEvent, TraceKind, TraceRunner


class NegotiationOutcome(str, enum.Enum):
    """How one call to :meth:`Authenticator.negotiate` ended."""

    ATTACHED = "attached"
    NO_CHALLENGES = "no_challenges"
    NO_CREDENTIALS = "no_credentials"
    CREDENTIALS_REJECTED = "credentials_rejected"
    MALFORMED_CHALLENGE = "malformed_challenge"
    NO_ACCEPTABLE_SCHEME = "no_acceptable_scheme"


@dataclass(frozen=True)
class NegotiationResult:
    """The outcome of a negotiation step.

    Attributes:
        outcome: What happened.
        scheme_name: The scheme in play when the step ended, if any.
        detail: Error text for the failure outcomes.
    """

    outcome: NegotiationOutcome
    scheme_name: Optional[str] = None
    detail: Optional[str] = None

    @property
    def attached(self) -> bool:
        """``True`` when credentials are attached and a retry is warranted."""
        return self.outcome is NegotiationOutcome.ATTACHED


class Authenticator:
    """Drives the per-target authentication state machine.

    Args:
        selector: Picks a scheme from a challenge set.
        credentials: Looked up once per negotiation with the derived scope.
        handler: Detects authentication requests and extracts challenges.
            Defaults to origin-server authentication (401).
        traces: Receives a :class:`~negotiator.trace.TraceEvent` at each
            step. Defaults to a runner with a
            :class:`~negotiator.trace.LoggingTraceListener`.
    """

    def __init__(
        self,
        selector: SchemeSelector,
        credentials: CredentialsProvider,
        handler: Optional[ChallengeHandler] = None,
        traces: Optional[TraceRunner] = None,
    ) -> None:
        self.selector = selector
        self.credentials = credentials
        self.handler = handler or TargetChallengeHandler()
        self.traces = traces if traces is not None else TraceRunner([LoggingTraceListener()])

    def _emit(
        self,
        kind: TraceKind,
        target: Optional[HttpHost],
        message: str,
        scheme: Optional[str] = None,
        **data: Any,
    ) -> None:
        self.traces.emit(
            TraceEvent(
                kind=kind,
                target=target.to_host_string() if target is not None else None,
                scheme=scheme,
                message=message,
                data=data,
            )
        )

    def is_authentication_requested(
        self,
        response: httpx.Response,
        state: AuthState,
        target: Optional[HttpHost] = None,
    ) -> bool:
        """Report whether *response* demands authentication.

        When it does not, a state left ``CHALLENGED`` by the previous round
        moves to ``SUCCESS``: the credentials sent were accepted. Any other
        state is invalidated.

        Args:
            response: The response just received.
            state: The target's negotiation state.
            target: Used only to label trace events.

        Returns:
            ``True`` if the response is an authentication request.
        """
        if self.handler.is_authentication_requested(response):
            self._emit(
                TraceKind.AUTH_REQUESTED,
                target,
                f"Server responded {response.status_code}",
                status_code=response.status_code,
            )
            return True
        if state.challenge_state is ChallengeState.CHALLENGED:
            state.challenge_state = ChallengeState.SUCCESS
            scheme_name = state.scheme.name if state.scheme is not None else None
            self._emit(
                TraceKind.AUTH_SUCCEEDED, target, "Authentication succeeded", scheme_name
            )
        else:
            state.invalidate()
        return False

    def authenticate(self, target: HttpHost, response: httpx.Response, state: AuthState) -> bool:
        """Negotiate against *response* and report whether to retry.

        See :meth:`negotiate` for the algorithm.

        Returns:
            ``True`` iff credentials are now attached to *state*.
        """
        return self.negotiate(target, response, state).attached

    def negotiate(
        self, target: HttpHost, response: httpx.Response, state: AuthState
    ) -> NegotiationResult:
        """Advance *state* by one challenge round.

        1. Extract the challenge set; if empty, leave *state* untouched.
        2. Select a scheme if none is in progress.
        3. If the server no longer offers the selected scheme, invalidate and
           select once more. A second miss fails as a malformed challenge.
        4. Process the challenge, then resolve credentials: look them up if
           none are attached; treat a re-challenge of a complete scheme as
           rejection; otherwise keep them for another round.

        Returns:
            The tagged outcome of this round.

        Raises:
            Exception: Whatever the credentials provider raises propagates
                unchanged.
        """
        challenges = self.handler.get_challenges(response)
        if not challenges:
            self._emit(TraceKind.NO_CHALLENGES, target, "Response contains no authentication challenges")
            return NegotiationResult(NegotiationOutcome.NO_CHALLENGES)

        offered = sorted(challenges)
        scheme_name: Optional[str] = None
        try:
            scheme = state.scheme
            if scheme is None:
                scheme = self.selector.select(challenges, response)
                state.scheme = scheme
                self._emit(
                    TraceKind.SCHEME_SELECTED,
                    target,
                    f"{scheme.name} authentication scheme selected",
                    scheme.name,
                    offered=offered,
                )
            scheme_name = scheme.name
            challenge = challenges.get(scheme.name.lower())
            if challenge is None:
                previous = scheme.name
                state.invalidate()
                scheme = self.selector.select(challenges, response)
                state.scheme = scheme
                scheme_name = scheme.name
                self._emit(
                    TraceKind.SCHEME_RESELECTED,
                    target,
                    f"{previous} no longer offered; {scheme.name} selected",
                    scheme.name,
                    previous=previous,
                    offered=offered,
                )
                challenge = challenges.get(scheme.name.lower())
            state.challenge_state = ChallengeState.CHALLENGED
            scheme.process_challenge(challenge)
        except MalformedChallengeError as exc:
            state.invalidate()
            self._emit(TraceKind.MALFORMED_CHALLENGE, target, f"Malformed challenge: {exc}", scheme_name)
            return NegotiationResult(NegotiationOutcome.MALFORMED_CHALLENGE, scheme_name, str(exc))
        except AuthenticationError as exc:
            state.invalidate()
            self._emit(
                TraceKind.NO_ACCEPTABLE_SCHEME,
                target,
                f"Authentication error: {exc}",
                scheme_name,
                offered=offered,
            )
            return NegotiationResult(NegotiationOutcome.NO_ACCEPTABLE_SCHEME, scheme_name, str(exc))

        self._emit(TraceKind.CHALLENGE_PROCESSED, target, "Authorization challenge processed", scheme.name)
        scope = AuthScope(
            host=target.hostname,
            port=target.port,
            realm=scheme.realm,
            scheme_name=scheme.name,
        )

        if state.credentials is None:
            found = self.credentials.lookup(scope)
            state.credentials = found
            if found is None:
                self._emit(
                    TraceKind.CREDENTIALS_NOT_FOUND, target, f"Credentials not found for {scope}", scheme.name
                )
                return NegotiationResult(NegotiationOutcome.NO_CREDENTIALS, scheme.name)
            self._emit(TraceKind.CREDENTIALS_FOUND, target, f"Found credentials for {scope}", scheme.name)
        elif scheme.is_complete():
            state.challenge_state = ChallengeState.FAILURE
            state.credentials = None
            self._emit(
                TraceKind.CREDENTIALS_REJECTED, target, f"Credentials rejected for {scope}", scheme.name
            )
            return NegotiationResult(NegotiationOutcome.CREDENTIALS_REJECTED, scheme.name)

        return NegotiationResult(NegotiationOutcome.ATTACHED, scheme.name)
