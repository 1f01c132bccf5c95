"""Credentials commands -- manage the persistent credential store.

Provides the ``negotiator credentials`` sub-command group. Entries are
keyed by scope (host, port, realm, scheme); any scope field left out
matches everything. Secrets are either stored inline (entered at a hidden
prompt) or referenced by a source descriptor that is resolved only when a
server actually asks for them.

Typical workflow::

    negotiator credentials add --host intranet.example.com --user alice --source env:INTRANET_PASS
    negotiator credentials list
    negotiator credentials remove --host intranet.example.com
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer

from negotiator.output import error, get_output, info, success, suggest

if TYPE_CHECKING:
    from negotiator.auth.credential_store import CredentialStore

credentials_app = typer.Typer(no_args_is_help=True)

_STORE_OPTION = typer.Option(
    None, "--store", help="Credential store name (defaults to the configured store)."
)


def _open_store(name: Optional[str]) -> CredentialStore:
    from negotiator.auth.credential_store import CredentialStore
    from negotiator.config import resolve_config

    return CredentialStore(name or resolve_config().credential_store)


@credentials_app.command("add")
def credentials_add(
    host: Optional[str] = typer.Option(None, "--host", help="Hostname (omit for any host)."),
    port: Optional[int] = typer.Option(None, "--port", help="Port (omit for any port)."),
    realm: Optional[str] = typer.Option(None, "--realm", help="Realm (omit for any realm)."),
    scheme: Optional[str] = typer.Option(None, "--scheme", help="Scheme name (omit for any scheme)."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User name for Basic/Digest."),
    token: bool = typer.Option(False, "--token", help="Store a bearer token instead of a password."),
    source: Optional[str] = typer.Option(
        None,
        "--source",
        "-s",
        help="Secret source: env:VAR, file:/path, prompt. Omit to enter the secret now.",
    ),
    store_name: Optional[str] = _STORE_OPTION,
) -> None:
    """Add or replace the credentials for a scope.

    Without ``--source`` the secret is read from a hidden prompt and
    stored in the (``0o600``) store file.

    Example::

        negotiator credentials add --host intranet --realm staff -u alice -s env:PASS
        negotiator credentials add --host api.example.com --token
    """
    from pydantic import ValidationError

    from negotiator.auth.credential_store import CredentialEntry

    kind = "token" if token else "password"
    if kind == "password" and not user:
        error("Password credentials require --user (or pass --token).")
        raise typer.Exit(code=2)

    secret: Optional[str] = None
    if source is None:
        label = "Token" if token else f"Password for {user}"
        secret = typer.prompt(label, hide_input=True)

    try:
        entry = CredentialEntry(
            host=host,
            port=port,
            realm=realm,
            scheme=scheme,
            kind=kind,
            username=user,
            secret=secret,
            source=source,
        )
    except ValidationError as exc:
        error(f"Invalid credentials: {exc}")
        raise typer.Exit(code=2) from None

    store = _open_store(store_name)
    store.add(entry)
    success(f"Stored {kind} credentials for {entry.scope}.")
    suggest("Try them: negotiator probe <url>")


@credentials_app.command("list")
def credentials_list(store_name: Optional[str] = _STORE_OPTION) -> None:
    """List stored credentials. Secrets are never printed.

    Example::

        negotiator credentials list
        negotiator --json credentials list
    """
    store = _open_store(store_name)
    entries = store.entries()
    if not entries:
        info(f"No credentials in store '{store.name}'.")
        suggest("Add some: negotiator credentials add --host <host> --user <name>")
        return

    rows = [
        [
            entry.host or "*",
            str(entry.port) if entry.port is not None else "*",
            entry.realm or "*",
            entry.scheme or "*",
            entry.kind,
            entry.username or "",
            entry.source or "(stored)",
        ]
        for entry in entries
    ]
    get_output().print_table(
        ["host", "port", "realm", "scheme", "kind", "username", "secret"],
        rows,
        title=f"Credentials ({store.name})",
    )


@credentials_app.command("remove")
def credentials_remove(
    host: Optional[str] = typer.Option(None, "--host", help="Hostname of the entry."),
    port: Optional[int] = typer.Option(None, "--port", help="Port of the entry."),
    realm: Optional[str] = typer.Option(None, "--realm", help="Realm of the entry."),
    scheme: Optional[str] = typer.Option(None, "--scheme", help="Scheme of the entry."),
    store_name: Optional[str] = _STORE_OPTION,
) -> None:
    """Remove the entry stored under exactly the given scope.

    Example::

        negotiator credentials remove --host intranet --realm staff
    """
    from negotiator.auth.scope import AuthScope

    scope = AuthScope(host=host.lower() if host else None, port=port, realm=realm, scheme_name=scheme)
    store = _open_store(store_name)
    if not store.remove(scope):
        error(f"No credentials stored for {scope}.")
        raise typer.Exit(code=1)
    success(f"Removed credentials for {scope}.")


@credentials_app.command("clear")
def credentials_clear(
    ctx: typer.Context,
    store_name: Optional[str] = _STORE_OPTION,
) -> None:
    """Delete every entry in the store.

    Asks for confirmation unless ``--force`` is active.
    """
    force = ctx.obj.get("force", False) if ctx.obj else False
    store = _open_store(store_name)
    if not force:
        confirmed = typer.confirm(f"Delete all credentials in store '{store.name}'?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()
    store.clear()
    success(f"Cleared credential store '{store.name}'.")
