"""Persistent credential store keyed by authentication scope.

Stores credentials in ``~/.local/share/negotiator/credentials/<name>.json``
(XDG) or the platform-equivalent directory. Files are written atomically
via :func:`~negotiator.config.atomic_write` with ``0o600`` permissions so
that secrets are never world-readable, even momentarily.

Each entry pairs an :class:`~negotiator.auth.scope.AuthScope` (whose fields
may be left empty as wildcards) with either a literal secret or a
``source`` descriptor that is resolved only when a negotiation actually
asks for it, so ``prompt`` sources block at lookup time rather than at
load time.

See Also:
    :class:`~negotiator.auth.credentials.InMemoryCredentialsProvider` --
    the non-persistent provider with the same lookup rules.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from negotiator.auth.credentials import (
    Credentials,
    CredentialsProvider,
    TokenCredentials,
    UsernamePasswordCredentials,
)
from negotiator.auth.scope import AuthScope
from negotiator.config import atomic_write, get_data_dir, resolve_credential

logger = logging.getLogger(__name__)


class CredentialEntry(BaseModel):
    """A single stored credential and the scope it applies to.

    Attributes:
        host: Hostname the credential is for, or ``None`` for any host.
        port: Port, or ``None`` for any port.
        realm: Realm, or ``None`` for any realm.
        scheme: Scheme name, or ``None`` for any scheme.
        kind: ``"password"`` for user/password pairs, ``"token"`` for bearer tokens.
        username: User name (required for ``"password"`` entries).
        secret: The literal password or token, if stored inline.
        source: A credential source descriptor (``env:VAR``, ``file:/path``,
            ``prompt``) resolved at lookup time instead of ``secret``.
        created_at: When the entry was added.
    """

    host: Optional[str] = Field(default=None, description="Hostname (None = any)")
    port: Optional[int] = Field(default=None, description="Port (None = any)")
    realm: Optional[str] = Field(default=None, description="Realm (None = any)")
    scheme: Optional[str] = Field(default=None, description="Scheme name (None = any)")
    kind: Literal["password", "token"] = "password"
    username: Optional[str] = None
    secret: Optional[str] = Field(default=None, repr=False)
    source: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_secret(self) -> CredentialEntry:
        if (self.secret is None) == (self.source is None):
            raise ValueError("exactly one of 'secret' or 'source' must be set")
        if self.kind == "password" and not self.username:
            raise ValueError("password credentials require a username")
        return self

    @property
    def scope(self) -> AuthScope:
        """The lookup key this entry is stored under."""
        return AuthScope(
            host=self.host.lower() if self.host else None,
            port=self.port,
            realm=self.realm,
            scheme_name=self.scheme,
        )

    def to_credentials(self) -> Credentials:
        """Materialise the entry, resolving ``source`` if needed.

        Raises:
            ConfigError: If the source cannot be resolved.
        """
        if self.secret is not None:
            secret = self.secret
        else:
            assert self.source is not None  # guaranteed by the validator
            secret = resolve_credential(self.source, prompt=f"Secret for {self.scope}: ")
        if self.kind == "token":
            return TokenCredentials(token=secret)
        assert self.username is not None
        return UsernamePasswordCredentials(username=self.username, password=secret)


class _StoreFile(BaseModel):
    entries: list[CredentialEntry] = Field(default_factory=list)


def _credentials_dir() -> Path:
    """Return the credentials directory, creating it if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class CredentialStore(CredentialsProvider):
    """File-backed credentials provider.

    Each store name gets its own JSON file under the credentials directory
    (typically ``~/.local/share/negotiator/credentials/<name>.json``).

    All writes are atomic: content is written to a temporary file in the
    same directory, fsynced, then renamed into place.

    Args:
        name: The store identifier used to derive the file name.

    Example::

        store = CredentialStore("default")
        store.add(CredentialEntry(host="intranet", username="alice", secret="s3cret"))
        store.lookup(AuthScope(host="intranet", port=443, realm="staff", scheme_name="Basic"))
    """

    def __init__(self, name: str = "default") -> None:
        self._name = name
        self._path = _credentials_dir() / f"{name}.json"

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        """The filesystem path to this store's file."""
        return self._path

    def entries(self) -> list[CredentialEntry]:
        """Load every stored entry.

        Returns:
            The entries in insertion order, or an empty list if the file
            does not exist or cannot be parsed.
        """
        if not self._path.is_file():
            return []
        try:
            text = self._path.read_text(encoding="utf-8")
            return _StoreFile.model_validate(json.loads(text)).entries
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            logger.warning("Ignoring unreadable credential store %s: %s", self._path, exc)
            return []

    def add(self, entry: CredentialEntry) -> None:
        """Persist *entry*, replacing any existing entry with the same scope.

        Raises:
            OSError: If the file cannot be written (permissions, disk full, etc.).
        """
        kept = [e for e in self.entries() if e.scope != entry.scope]
        kept.append(entry)
        self._write(kept)

    def remove(self, scope: AuthScope) -> bool:
        """Delete the entry stored under exactly *scope*.

        Returns:
            ``True`` if an entry was removed.
        """
        current = self.entries()
        kept = [e for e in current if e.scope != scope]
        if len(kept) == len(current):
            return False
        self._write(kept)
        return True

    def clear(self) -> None:
        """Delete the store file if it exists."""
        if self._path.is_file():
            self._path.unlink()

    def lookup(self, scope: AuthScope) -> Optional[Credentials]:
        """Resolve the best-matching entry for *scope*.

        Raises:
            ConfigError: If the matching entry's ``source`` cannot be resolved.
        """
        best_factor = -1
        best: Optional[CredentialEntry] = None
        for entry in self.entries():
            factor = entry.scope.match(scope)
            if factor > best_factor:
                best_factor = factor
                best = entry
        if best is None:
            logger.debug("No stored credentials in '%s' for %s", self._name, scope)
            return None
        logger.debug("Using stored credentials from '%s' for %s", self._name, scope)
        return best.to_credentials()

    def _write(self, entries: list[CredentialEntry]) -> None:
        data = _StoreFile(entries=entries).model_dump(mode="json")
        atomic_write(self._path, json.dumps(data, indent=2) + "\n", mode=0o600)
