"""HTTP authentication negotiation for negotiator.

This package holds the negotiation core and the collaborators it talks to:
challenge parsing, scheme selection, credential lookup and per-target
state.

The main entry points are:

- :class:`Authenticator` -- decides whether a response requests
  authentication and advances the target's :class:`AuthState`.
- :class:`AuthScheme` -- abstract base class for authentication schemes.
- :class:`SchemeSelector` / :func:`create_default_selector` -- pick the
  preferred scheme among those a server offers.
- :class:`CredentialsProvider` -- abstract credential lookup by
  :class:`AuthScope`, with :class:`InMemoryCredentialsProvider` and the
  persistent :class:`CredentialStore` as implementations.

Typical usage::

    from negotiator.auth import Authenticator, AuthState, HttpHost, create_default_selector

    authenticator = Authenticator(create_default_selector(), provider)
    state = AuthState()
    target = HttpHost.from_url(response.request.url)
    if authenticator.is_authentication_requested(response, state, target):
        retry = authenticator.authenticate(target, response, state)
"""

from negotiator.auth.authenticator import Authenticator, NegotiationOutcome, NegotiationResult
from negotiator.auth.base import AuthScheme
from negotiator.auth.challenges import (
    Challenge,
    ChallengeHandler,
    ProxyChallengeHandler,
    TargetChallengeHandler,
    parse_challenges,
)
from negotiator.auth.credential_store import CredentialEntry, CredentialStore
from negotiator.auth.credentials import (
    Credentials,
    CredentialsProvider,
    InMemoryCredentialsProvider,
    TokenCredentials,
    UsernamePasswordCredentials,
)
from negotiator.auth.scope import AuthScope, HttpHost
from negotiator.auth.selector import (
    SchemeRegistry,
    SchemeSelector,
    create_default_registry,
    create_default_selector,
)
from negotiator.auth.state import AuthState, AuthStateRegistry, ChallengeState

__all__ = [
    "AuthScheme",
    "AuthScope",
    "AuthState",
    "AuthStateRegistry",
    "Authenticator",
    "Challenge",
    "ChallengeHandler",
    "ChallengeState",
    "CredentialEntry",
    "CredentialStore",
    "Credentials",
    "CredentialsProvider",
    "HttpHost",
    "InMemoryCredentialsProvider",
    "NegotiationOutcome",
    "NegotiationResult",
    "ProxyChallengeHandler",
    "SchemeRegistry",
    "SchemeSelector",
    "TargetChallengeHandler",
    "TokenCredentials",
    "UsernamePasswordCredentials",
    "create_default_registry",
    "create_default_selector",
    "parse_challenges",
]
