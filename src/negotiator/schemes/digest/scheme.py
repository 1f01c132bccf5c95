"""HTTP Digest access authentication scheme.

This module provides :class:`DigestScheme`, which answers ``Digest``
challenges per :rfc:`7616`.

Supported algorithms are ``MD5``, ``SHA-256`` and ``SHA-512-256``, each
with its ``-sess`` variant. When the server offers a ``qop`` list the
scheme answers with ``auth``; a server offering only ``auth-int`` is
rejected as unsupported. Without ``qop`` the :rfc:`2069` response format
is used.

Digest may take several round trips with the same credentials: a
challenge carrying ``stale=true`` means only the nonce expired, so the
scheme reports itself incomplete and the authenticator retries instead of
treating the re-challenge as rejection.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from typing import Callable, Optional

import httpx

from negotiator.auth.base import AuthScheme
from negotiator.auth.challenges import Challenge
from negotiator.auth.credentials import Credentials, UsernamePasswordCredentials
from negotiator.exceptions import AuthenticationError, MalformedChallengeError

logger = logging.getLogger(__name__)

_HASHES: dict[str, Callable[[bytes], str]] = {
    "MD5": lambda data: hashlib.md5(data).hexdigest(),
    "SHA-256": lambda data: hashlib.sha256(data).hexdigest(),
    "SHA-512-256": lambda data: hashlib.new("sha512_256", data).hexdigest(),
}


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class DigestScheme(AuthScheme):
    """Authenticate via HTTP Digest.

    The scheme keeps a nonce count per server nonce; it restarts at 1
    whenever the server issues a new nonce.
    """

    scheme_name = "Digest"

    def __init__(self) -> None:
        super().__init__()
        self._complete = False
        self._stale = False
        self._nonce: Optional[str] = None
        self._nonce_count = 0
        self._algorithm = "MD5"
        self._qop: Optional[str] = None

    @property
    def nonce(self) -> Optional[str]:
        return self._nonce

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def qop(self) -> Optional[str]:
        return self._qop

    @property
    def stale(self) -> bool:
        return self._stale

    def _parse(self, challenge: Challenge) -> None:
        realm = challenge.get("realm")
        nonce = challenge.get("nonce")
        if realm is None:
            raise MalformedChallengeError("Missing realm in Digest challenge")
        if not nonce:
            raise MalformedChallengeError("Missing nonce in Digest challenge")

        algorithm = (challenge.get("algorithm") or "MD5").upper()
        if algorithm.removesuffix("-SESS") not in _HASHES:
            raise MalformedChallengeError(f"Unsupported Digest algorithm: {algorithm}")

        qop: Optional[str] = None
        offered = challenge.get("qop")
        if offered is not None:
            options = {item.strip().lower() for item in offered.split(",") if item.strip()}
            if "auth" not in options:
                raise MalformedChallengeError(f"None of the qop methods is supported: {offered}")
            qop = "auth"

        if nonce != self._nonce:
            self._nonce = nonce
            self._nonce_count = 0
        self._algorithm = algorithm
        self._qop = qop
        self._stale = (challenge.get("stale") or "").lower() == "true"
        self._complete = True

    def is_complete(self) -> bool:
        if self._stale:
            return False
        return self._complete

    def authenticate(self, credentials: Credentials, request: httpx.Request) -> str:
        """Return a ``Digest`` header value answering the last challenge.

        Each call consumes one nonce count.

        Args:
            credentials: Must be :class:`UsernamePasswordCredentials`.
            request: Supplies the method and request target hashed into
                the response.

        Raises:
            AuthenticationError: If *credentials* are not a user name and
                password, or no challenge has been processed.
        """
        if not isinstance(credentials, UsernamePasswordCredentials):
            raise AuthenticationError(
                f"Digest authentication requires a username and password, got {type(credentials).__name__}"
            )
        if self._challenge is None or self._nonce is None:
            raise AuthenticationError("Digest authentication requires a processed challenge")

        self._nonce_count += 1
        nc = f"{self._nonce_count:08x}"
        cnonce = secrets.token_hex(8)
        uri = request.url.raw_path.decode("ascii")
        realm = self.realm or ""
        response = self.compute_response(
            credentials, request.method, uri, realm, nc=nc, cnonce=cnonce
        )

        fields = [
            f"username={_quote(credentials.username)}",
            f"realm={_quote(realm)}",
            f"nonce={_quote(self._nonce)}",
            f"uri={_quote(uri)}",
            f"response={_quote(response)}",
        ]
        if self._challenge.get("algorithm") is not None:
            fields.append(f"algorithm={self._algorithm}")
        opaque = self._challenge.get("opaque")
        if opaque is not None:
            fields.append(f"opaque={_quote(opaque)}")
        if self._qop is not None:
            fields.extend([f"qop={self._qop}", f"nc={nc}", f"cnonce={_quote(cnonce)}"])
        logger.debug("Digest response for %s %s (nc=%s)", request.method, uri, nc)
        return "Digest " + ", ".join(fields)

    def compute_response(
        self,
        credentials: UsernamePasswordCredentials,
        method: str,
        uri: str,
        realm: str,
        nc: str,
        cnonce: str,
    ) -> str:
        """Compute the ``response`` digest for the current nonce.

        Args:
            credentials: The user name and password.
            method: The request method.
            uri: The request target as sent in the ``uri`` field.
            realm: The protection space.
            nc: The eight-hex-digit nonce count.
            cnonce: The client nonce.

        Returns:
            The lowercase hex digest.
        """
        digest = _HASHES[self._algorithm.removesuffix("-SESS")]
        nonce = self._nonce or ""

        def h(value: str) -> str:
            return digest(value.encode("utf-8"))

        ha1 = h(f"{credentials.username}:{realm}:{credentials.password}")
        if self._algorithm.endswith("-SESS"):
            ha1 = h(f"{ha1}:{nonce}:{cnonce}")
        ha2 = h(f"{method}:{uri}")
        if self._qop is None:
            return h(f"{ha1}:{nonce}:{ha2}")
        return h(f"{ha1}:{nonce}:{nc}:{cnonce}:{self._qop}:{ha2}")
