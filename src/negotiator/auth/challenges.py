"""Challenge parsing and authentication-request detection.

A server asks for credentials by answering with a 401 (or 407 for a
proxy) and one or more ``WWW-Authenticate`` (``Proxy-Authenticate``)
headers. Each header value may carry several comma-separated challenges
per :rfc:`7235#section-4.1`::

    WWW-Authenticate: Newauth realm="apps", type=1, title="Login to \\"apps\\"", Basic realm="simple"

This module turns such headers into a *challenge set* -- a ``dict`` from
lowercase scheme name to :class:`Challenge` -- and decides whether a
response requests authentication at all:

- :func:`parse_challenges` -- parse one header value.
- :class:`ChallengeHandler` -- detector and extractor for one direction,
  with :class:`TargetChallengeHandler` and :class:`ProxyChallengeHandler`
  as the two concrete flavours.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

import httpx

from negotiator.exceptions import MalformedChallengeError

logger = logging.getLogger(__name__)

_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_TOKEN_RE = re.compile(_TOKEN)
_TOKEN68_RE = re.compile(r"[A-Za-z0-9\-._~+/]+=*")
_PARAM_START_RE = re.compile(rf"({_TOKEN})\s*=\s*")
_SCHEME_RE = re.compile(rf"({_TOKEN})(?:\s+(.*))?", re.DOTALL)


@dataclass
class Challenge:
    """One parsed authentication challenge.

    Attributes:
        scheme: The scheme identifier exactly as the server sent it.
        params: Auth-params with lowercased names and unquoted values.
        token68: The token68 form of the challenge, if used instead of params.
        raw: The challenge text as it appeared in the header.
    """

    scheme: str
    params: dict[str, str] = field(default_factory=dict)
    token68: Optional[str] = None
    raw: str = ""

    @property
    def realm(self) -> Optional[str]:
        return self.params.get("realm")

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the auth-param *name* (case-insensitive)."""
        return self.params.get(name.lower(), default)


def _split_elements(value: str) -> list[str]:
    """Split a header value on commas that are outside quoted strings."""
    elements: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False
    for ch in value:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\" and in_quotes:
            current.append(ch)
            escaped = True
        elif ch == '"':
            current.append(ch)
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            elements.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    if in_quotes:
        raise MalformedChallengeError(f"Unterminated quoted string in: {value!r}")
    elements.append("".join(current).strip())
    return elements


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return re.sub(r"\\(.)", r"\1", value[1:-1])
    return value


def _parse_param(text: str) -> tuple[str, str]:
    match = _PARAM_START_RE.match(text)
    if match is None:
        raise MalformedChallengeError(f"Invalid auth-param: {text!r}")
    value = text[match.end():].strip()
    if not value:
        raise MalformedChallengeError(f"Auth-param without a value: {text!r}")
    if value.startswith('"'):
        if len(value) < 2 or not value.endswith('"'):
            raise MalformedChallengeError(f"Invalid quoted auth-param: {text!r}")
    elif _TOKEN_RE.fullmatch(value) is None:
        raise MalformedChallengeError(f"Invalid auth-param value: {text!r}")
    return match.group(1).lower(), _unquote(value)


def parse_challenges(header_value: str) -> list[Challenge]:
    """Parse every challenge in one ``WWW-Authenticate`` header value.

    Args:
        header_value: The raw header value.

    Returns:
        The challenges in the order the server listed them.

    Raises:
        MalformedChallengeError: If an auth-param precedes any scheme, a
            parameter lacks a value, or a quoted string is unterminated.
    """
    challenges: list[Challenge] = []
    current: Optional[Challenge] = None
    raw_parts: list[str] = []

    for element in _split_elements(header_value):
        if not element:
            continue
        if _PARAM_START_RE.match(element) and not _TOKEN68_RE.fullmatch(element):
            # auth-param continuing the current challenge
            if current is None:
                raise MalformedChallengeError(
                    f"Auth-param before any scheme: {element!r}"
                )
            name, value = _parse_param(element)
            current.params.setdefault(name, value)
            raw_parts.append(element)
            continue

        match = _SCHEME_RE.fullmatch(element)
        if match is None:
            raise MalformedChallengeError(f"Invalid challenge: {element!r}")
        if current is not None:
            current.raw = ", ".join(raw_parts)
            challenges.append(current)
        current = Challenge(scheme=match.group(1))
        raw_parts = [element]
        rest = (match.group(2) or "").strip()
        if not rest:
            continue
        if _TOKEN68_RE.fullmatch(rest):
            current.token68 = rest
        else:
            name, value = _parse_param(rest)
            current.params[name] = value

    if current is not None:
        current.raw = ", ".join(raw_parts)
        challenges.append(current)
    return challenges


class ChallengeHandler:
    """Detects authentication requests and extracts challenge sets.

    One handler serves one direction: origin-server authentication
    (401 / ``WWW-Authenticate`` / ``Authorization``) or proxy
    authentication (407 / ``Proxy-Authenticate`` / ``Proxy-Authorization``).

    Args:
        status_code: The status that signals an authentication request.
        challenge_header: The response header carrying challenges.
        response_header: The request header a scheme's answer goes into.
    """

    def __init__(self, status_code: int, challenge_header: str, response_header: str) -> None:
        self.status_code = status_code
        self.challenge_header = challenge_header
        self.response_header = response_header

    @property
    def is_proxy(self) -> bool:
        return self.status_code == 407

    def is_authentication_requested(self, response: httpx.Response) -> bool:
        """Return ``True`` when *response* demands authentication."""
        return response.status_code == self.status_code

    def get_challenges(self, response: httpx.Response) -> dict[str, Challenge]:
        """Collect every challenge offered by *response*.

        Headers that cannot be parsed are logged and skipped rather than
        raised, so a response whose challenge headers are all malformed
        yields an empty set. When a scheme is offered more than once the
        first occurrence wins.

        Args:
            response: The response to inspect.

        Returns:
            A mapping of lowercase scheme name to :class:`Challenge`.
        """
        challenges: dict[str, Challenge] = {}
        for value in response.headers.get_list(self.challenge_header):
            try:
                parsed = parse_challenges(value)
            except MalformedChallengeError as exc:
                logger.warning("Skipping malformed %s header: %s", self.challenge_header, exc)
                continue
            for challenge in parsed:
                challenges.setdefault(challenge.scheme.lower(), challenge)
        return challenges


class TargetChallengeHandler(ChallengeHandler):
    """Handler for origin-server authentication (HTTP 401)."""

    def __init__(self) -> None:
        super().__init__(401, "WWW-Authenticate", "Authorization")


class ProxyChallengeHandler(ChallengeHandler):
    """Handler for proxy authentication (HTTP 407)."""

    def __init__(self) -> None:
        super().__init__(407, "Proxy-Authenticate", "Proxy-Authorization")
