"""Tests for the Bearer token scheme."""

from __future__ import annotations

import httpx
import pytest

from negotiator.auth.challenges import parse_challenges
from negotiator.auth.credentials import TokenCredentials, UsernamePasswordCredentials
from negotiator.exceptions import AuthenticationError
from negotiator.schemes.bearer import BearerScheme

REQUEST = httpx.Request("GET", "https://api.example.com/v1/items")


class TestBearerScheme:
    def test_realm_is_optional(self) -> None:
        scheme = BearerScheme()
        [challenge] = parse_challenges("Bearer")
        scheme.process_challenge(challenge)
        assert scheme.is_complete() is True
        assert scheme.realm is None
        assert scheme.error is None

    def test_error_fields(self) -> None:
        scheme = BearerScheme()
        [challenge] = parse_challenges(
            'Bearer realm="api", error="invalid_token", error_description="The access token expired"'
        )
        scheme.process_challenge(challenge)
        assert scheme.realm == "api"
        assert scheme.error == "invalid_token"
        assert scheme.error_description == "The access token expired"
        assert scheme.is_complete() is True

    def test_authenticate(self) -> None:
        scheme = BearerScheme()
        [challenge] = parse_challenges('Bearer realm="api"')
        scheme.process_challenge(challenge)
        assert scheme.authenticate(TokenCredentials(token="tok_123"), REQUEST) == "Bearer tok_123"

    def test_password_credentials_rejected(self) -> None:
        scheme = BearerScheme()
        with pytest.raises(AuthenticationError, match="requires a token"):
            scheme.authenticate(UsernamePasswordCredentials(username="alice", password="pw"), REQUEST)

    def test_no_error_before_challenge(self) -> None:
        scheme = BearerScheme()
        assert scheme.is_complete() is False
        assert scheme.error is None
        assert scheme.error_description is None
