"""HTTP Basic authentication scheme.

This module provides :class:`BasicScheme`, which implements the ``basic``
scheme. The user name and password are joined with a colon,
Base64-encoded, and sent as ``Basic <encoded>`` per :rfc:`7617`.

The server may announce ``charset="UTF-8"``; without it the pair is
encoded as ISO-8859-1 when possible and UTF-8 otherwise.

See Also:
    :class:`negotiator.auth.base.AuthScheme` for the base interface.
"""

from __future__ import annotations

import base64

import httpx

from negotiator.auth.base import AuthScheme
from negotiator.auth.challenges import Challenge
from negotiator.auth.credentials import Credentials, UsernamePasswordCredentials
from negotiator.exceptions import AuthenticationError, MalformedChallengeError


class BasicScheme(AuthScheme):
    """Authenticate via HTTP Basic authentication.

    Basic needs a single round trip: the scheme is complete as soon as it
    has processed a challenge, so a second challenge for the same realm
    means the credentials were rejected.
    """

    scheme_name = "Basic"

    def __init__(self) -> None:
        super().__init__()
        self._complete = False
        self._charset = "ISO-8859-1"

    @property
    def charset(self) -> str:
        return self._charset

    def _parse(self, challenge: Challenge) -> None:
        charset = challenge.get("charset")
        if charset is not None:
            if charset.lower() not in ("utf-8", "utf8"):
                raise MalformedChallengeError(f"Unsupported Basic charset: {charset}")
            self._charset = "UTF-8"
        self._complete = True

    def is_complete(self) -> bool:
        return self._complete

    def authenticate(self, credentials: Credentials, request: httpx.Request) -> str:
        """Return a ``Basic`` header value for *credentials*.

        Args:
            credentials: Must be :class:`UsernamePasswordCredentials`.
            request: Unused; Basic does not depend on the request.

        Raises:
            AuthenticationError: If *credentials* are not a user name and
                password, or the user name contains a colon.
        """
        if not isinstance(credentials, UsernamePasswordCredentials):
            raise AuthenticationError(
                f"Basic authentication requires a username and password, got {type(credentials).__name__}"
            )
        if ":" in credentials.username:
            raise AuthenticationError("Basic auth user names must not contain a colon")
        pair = f"{credentials.username}:{credentials.password}"
        encoded = base64.b64encode(self._encode(pair)).decode("ascii")
        return f"Basic {encoded}"

    def _encode(self, pair: str) -> bytes:
        if self._charset == "UTF-8":
            return pair.encode("utf-8")
        try:
            return pair.encode("iso-8859-1")
        except UnicodeEncodeError:
            return pair.encode("utf-8")
