"""Bearer token authentication scheme.

This module provides :class:`BearerScheme`, which answers ``Bearer``
challenges with an ``Authorization: Bearer <token>`` header per
:rfc:`6750`.

This scheme does not perform any token exchange or refresh -- it is
intended for tokens that are already available, looked up like any other
credentials.
"""

from __future__ import annotations

from typing import Optional

import httpx

from negotiator.auth.base import AuthScheme
from negotiator.auth.challenges import Challenge
from negotiator.auth.credentials import Credentials, TokenCredentials
from negotiator.exceptions import AuthenticationError


class BearerScheme(AuthScheme):
    """Authenticate via a bearer token.

    The realm is optional. A challenge that carries ``error`` (for example
    ``invalid_token``) is recorded in :attr:`error` but still leaves the
    scheme complete, so a re-challenge after sending a token counts as
    rejection.
    """

    scheme_name = "Bearer"

    def __init__(self) -> None:
        super().__init__()
        self._complete = False

    @property
    def error(self) -> Optional[str]:
        return self._challenge.get("error") if self._challenge is not None else None

    @property
    def error_description(self) -> Optional[str]:
        return self._challenge.get("error_description") if self._challenge is not None else None

    def _parse(self, challenge: Challenge) -> None:
        self._complete = True

    def is_complete(self) -> bool:
        return self._complete

    def authenticate(self, credentials: Credentials, request: httpx.Request) -> str:
        if not isinstance(credentials, TokenCredentials):
            raise AuthenticationError(
                f"Bearer authentication requires a token, got {type(credentials).__name__}"
            )
        return f"Bearer {credentials.token}"
