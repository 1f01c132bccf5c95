"""Probe command -- send one request and show how authentication went.

``negotiator probe URL`` sends a single request through
:class:`~negotiator.client.SyncClient`, records every negotiation trace
event, and prints:

* the trace as a table (stdout),
* the final HTTP status (stderr),
* the target's final negotiation state (stdout).

Credentials come from the command line (``--user`` with
``--secret-source``, or ``--token-source``) or, by default, from the
configured :class:`~negotiator.auth.credential_store.CredentialStore`.

Example::

    negotiator probe https://intranet.example.com/ --user alice --secret-source env:PASS
    negotiator probe https://api.example.com/ --token-source file:~/.token --scheme bearer
"""

from __future__ import annotations

from typing import Optional

import typer

from negotiator.auth.credential_store import CredentialStore
from negotiator.auth.credentials import (
    CredentialsProvider,
    InMemoryCredentialsProvider,
    TokenCredentials,
    UsernamePasswordCredentials,
)
from negotiator.auth.scope import AuthScope, HttpHost
from negotiator.auth.state import AuthState
from negotiator.client import SyncClient
from negotiator.config import resolve_config, resolve_credential
from negotiator.exceptions import NegotiatorError
from negotiator.exit_codes import EXIT_AUTH_FAILURE, EXIT_INVALID_USAGE
from negotiator.models import GlobalConfig
from negotiator.output import error, info, print_record, print_table, success, suggest
from negotiator.trace import LoggingTraceListener, RecordingTraceListener, TraceEvent, TraceRunner


def _build_credentials(
    config: GlobalConfig,
    user: Optional[str],
    secret_source: str,
    token_source: Optional[str],
    use_store: bool,
) -> CredentialsProvider:
    """Pick the credentials provider for this probe.

    Credentials given on the command line apply to any scope; otherwise the
    configured store is used unless ``--no-store`` was passed.
    """
    if user is not None and token_source is not None:
        raise typer.BadParameter("--user and --token-source are mutually exclusive")
    if user is not None:
        provider = InMemoryCredentialsProvider()
        password = resolve_credential(secret_source, prompt=f"Password for {user}: ")
        provider.set_credentials(
            AuthScope.ANY, UsernamePasswordCredentials(username=user, password=password)
        )
        return provider
    if token_source is not None:
        provider = InMemoryCredentialsProvider()
        provider.set_credentials(
            AuthScope.ANY, TokenCredentials(token=resolve_credential(token_source, prompt="Token: "))
        )
        return provider
    if use_store:
        return CredentialStore(config.credential_store)
    return InMemoryCredentialsProvider()


def _trace_rows(events: list[TraceEvent]) -> list[list[str]]:
    return [
        [str(i), event.kind.value, event.scheme or "", event.message]
        for i, event in enumerate(events, 1)
    ]


def _state_record(target: HttpHost, state: AuthState, status_code: int) -> dict[str, object]:
    return {
        "target": str(target),
        "status": status_code,
        "challenge_state": state.challenge_state.value,
        "scheme": state.scheme.name if state.scheme is not None else None,
        "realm": state.scheme.realm if state.scheme is not None else None,
        "credentials": state.credentials is not None,
    }


def probe_command(
    url: str = typer.Argument(help="URL to request."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User name for Basic/Digest."),
    secret_source: str = typer.Option(
        "prompt",
        "--secret-source",
        "-s",
        help="Password source: env:VAR, file:/path, prompt.",
    ),
    token_source: Optional[str] = typer.Option(
        None, "--token-source", help="Bearer token source: env:VAR, file:/path, prompt."
    ),
    scheme: Optional[str] = typer.Option(
        None, "--scheme", help="Scheme priority override, e.g. 'digest,basic'."
    ),
    proxy: Optional[str] = typer.Option(None, "--proxy", help="Proxy URL."),
    store: bool = typer.Option(
        True, "--store/--no-store", help="Look up credentials in the credential store."
    ),
) -> None:
    """Send one request and report the authentication negotiation.

    Exits with code 3 when the final response still demands
    authentication.

    Example::

        negotiator probe https://intranet.example.com/ -u alice -s env:PASS
        negotiator --json probe https://intranet.example.com/ --no-store
    """
    try:
        target = HttpHost.from_url(url)
    except ValueError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    recorder = RecordingTraceListener()
    traces = TraceRunner([LoggingTraceListener(), recorder])
    try:
        config = resolve_config(cli_priority=scheme)
        credentials = _build_credentials(config, user, secret_source, token_source, store)
        with SyncClient(credentials, config=config, traces=traces, proxy=proxy) as client:
            response = client.request(method.upper(), url)
            state = client.states.get(target)
    except NegotiatorError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if recorder.events:
        print_table(["#", "event", "scheme", "detail"], _trace_rows(recorder.events), title="Negotiation")
    else:
        info("No authentication was requested.")

    info(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())
    print_record(_state_record(target, state, response.status_code), title="Final state")

    if response.status_code in (401, 407):
        error("Authentication failed.")
        if user is None and token_source is None:
            suggest("Supply credentials with --user/--secret-source or --token-source.")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    if state.scheme is not None and state.credentials is not None:
        success(f"Authenticated with {state.scheme.name}.")
