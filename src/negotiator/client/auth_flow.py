"""httpx integration for the negotiation core.

:class:`NegotiatingAuth` is an :class:`httpx.Auth` that runs every request
through an :class:`~negotiator.auth.authenticator.Authenticator`: after each
response it asks whether authentication was requested, advances the
target's :class:`~negotiator.auth.state.AuthState`, and resends the request
with the selected scheme's header while the authenticator says a retry is
warranted.

Origin-server (401) and proxy (407) authentication are negotiated
independently, each with its own state registry. Once a round succeeds, the
scheme and credentials are remembered per host and sent preemptively with
later requests to that host until the server rejects them. Each negotiation
step runs
under the target's :meth:`~negotiator.auth.state.AuthStateRegistry.lock_for`
lock, so one :class:`NegotiatingAuth` may be shared across threads.
"""

from __future__ import annotations

import logging
from typing import Generator, Optional

import httpx

from negotiator.auth.authenticator import Authenticator
from negotiator.auth.base import AuthScheme
from negotiator.auth.challenges import ProxyChallengeHandler
from negotiator.auth.credentials import Credentials, CredentialsProvider
from negotiator.auth.scope import HttpHost
from negotiator.auth.selector import create_default_selector
from negotiator.auth.state import AuthState, AuthStateRegistry, ChallengeState
from negotiator.exceptions import AuthenticationError
from negotiator.models import GlobalConfig
from negotiator.trace import TraceRunner

logger = logging.getLogger(__name__)

_Accepted = dict[HttpHost, tuple[AuthScheme, Credentials]]
_Party = tuple[Authenticator, AuthStateRegistry, _Accepted, HttpHost]


class NegotiatingAuth(httpx.Auth):
    """Challenge/response authentication for httpx clients.

    Args:
        authenticator: Negotiates with the origin server.
        max_rounds: Maximum number of authenticated resends per request.
        states: Per-host origin-server states; a new registry by default.
        proxy: The proxy host, when requests go through one.
        proxy_authenticator: Negotiates with *proxy*; must use a
            :class:`~negotiator.auth.challenges.ProxyChallengeHandler`.

    Example::

        auth = NegotiatingAuth(Authenticator(create_default_selector(), provider))
        with httpx.Client(auth=auth) as client:
            client.get("https://intranet.example.com/")
    """

    requires_request_body = True

    def __init__(
        self,
        authenticator: Authenticator,
        max_rounds: int = 3,
        states: Optional[AuthStateRegistry] = None,
        proxy: Optional[HttpHost] = None,
        proxy_authenticator: Optional[Authenticator] = None,
    ) -> None:
        self.authenticator = authenticator
        self.max_rounds = max_rounds
        self.states = states if states is not None else AuthStateRegistry()
        self.proxy = proxy
        self.proxy_authenticator = proxy_authenticator
        self.proxy_states = AuthStateRegistry()
        self._accepted: _Accepted = {}
        self._proxy_accepted: _Accepted = {}

    def _parties(self, request: httpx.Request) -> list[_Party]:
        parties: list[_Party] = []
        if self.proxy is not None and self.proxy_authenticator is not None:
            parties.append(
                (self.proxy_authenticator, self.proxy_states, self._proxy_accepted, self.proxy)
            )
        parties.append(
            (self.authenticator, self.states, self._accepted, HttpHost.from_url(request.url))
        )
        return parties

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        parties = self._parties(request)
        for authenticator, states, accepted, target in parties:
            with states.lock_for(target):
                self._preempt(request, authenticator, states.get(target), accepted, target)

        response = yield request
        rounds = 0
        while True:
            retry = False
            for party in parties:
                if self._step(request, response, rounds, *party):
                    retry = True
            if not retry:
                return
            rounds += 1
            response = yield request

    def _step(
        self,
        request: httpx.Request,
        response: httpx.Response,
        rounds: int,
        authenticator: Authenticator,
        states: AuthStateRegistry,
        accepted: _Accepted,
        target: HttpHost,
    ) -> bool:
        with states.lock_for(target):
            state = states.get(target)
            if not authenticator.is_authentication_requested(response, state, target):
                if state.challenge_state is ChallengeState.SUCCESS and state.has_credentials():
                    assert state.scheme is not None and state.credentials is not None
                    accepted[target] = (state.scheme, state.credentials)
                return False
            if rounds >= self.max_rounds:
                logger.warning(
                    "Giving up on %s after %d authentication round(s)", target, rounds
                )
                return False
            if not authenticator.authenticate(target, response, state):
                if state.challenge_state is ChallengeState.FAILURE:
                    accepted.pop(target, None)
                return False
            return self._apply(request, authenticator, state, target)

    def _preempt(
        self,
        request: httpx.Request,
        authenticator: Authenticator,
        state: AuthState,
        accepted: _Accepted,
        target: HttpHost,
    ) -> None:
        """Send remembered credentials before the server asks for them.

        The state is put back in ``CHALLENGED`` so that the response either
        confirms the credentials or gets them rejected.
        """
        if target not in accepted:
            return
        state.scheme, state.credentials = accepted[target]
        state.challenge_state = ChallengeState.CHALLENGED
        if not self._apply(request, authenticator, state, target):
            accepted.pop(target, None)

    def _apply(
        self,
        request: httpx.Request,
        authenticator: Authenticator,
        state: AuthState,
        target: HttpHost,
    ) -> bool:
        assert state.scheme is not None and state.credentials is not None
        try:
            value = state.scheme.authenticate(state.credentials, request)
        except AuthenticationError as exc:
            logger.warning("Cannot answer %s challenge from %s: %s", state.scheme.name, target, exc)
            state.invalidate()
            return False
        request.headers[authenticator.handler.response_header] = value
        return True


def build_auth(
    credentials: CredentialsProvider,
    config: Optional[GlobalConfig] = None,
    traces: Optional[TraceRunner] = None,
    proxy: Optional[str] = None,
    states: Optional[AuthStateRegistry] = None,
) -> NegotiatingAuth:
    """Build a :class:`NegotiatingAuth` from configuration.

    Args:
        credentials: Where credentials are looked up.
        config: Supplies ``scheme_priority`` and ``max_auth_rounds``;
            defaults apply when ``None``.
        traces: Shared by the origin-server and proxy authenticators.
        proxy: Proxy URL; enables proxy authentication against its host.
        states: Origin-server state registry to reuse.
    """
    config = config or GlobalConfig()
    authenticator = Authenticator(
        create_default_selector(config.scheme_priority), credentials, traces=traces
    )
    proxy_host: Optional[HttpHost] = None
    proxy_authenticator: Optional[Authenticator] = None
    if proxy:
        proxy_host = HttpHost.from_url(proxy)
        proxy_authenticator = Authenticator(
            create_default_selector(config.scheme_priority),
            credentials,
            handler=ProxyChallengeHandler(),
            traces=traces,
        )
    return NegotiatingAuth(
        authenticator,
        max_rounds=config.max_auth_rounds,
        states=states,
        proxy=proxy_host,
        proxy_authenticator=proxy_authenticator,
    )
