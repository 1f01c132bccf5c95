"""Tests for challenge parsing and authentication-request detection."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from negotiator.auth.challenges import (
    Challenge,
    ProxyChallengeHandler,
    TargetChallengeHandler,
    parse_challenges,
)
from negotiator.exceptions import MalformedChallengeError

MakeChallenge = Callable[..., httpx.Response]


# ---------------------------------------------------------------------------
# parse_challenges
# ---------------------------------------------------------------------------


class TestParseChallenges:
    def test_single_basic(self) -> None:
        [challenge] = parse_challenges('Basic realm="simple"')
        assert challenge.scheme == "Basic"
        assert challenge.realm == "simple"
        assert challenge.params == {"realm": "simple"}

    def test_scheme_without_params(self) -> None:
        [challenge] = parse_challenges("Negotiate")
        assert challenge.scheme == "Negotiate"
        assert challenge.params == {}
        assert challenge.token68 is None
        assert challenge.realm is None

    def test_token68(self) -> None:
        [challenge] = parse_challenges("Negotiate YIIFyQYGKwYBBQUCoIIFvTCCBbmgMDAu==")
        assert challenge.token68 == "YIIFyQYGKwYBBQUCoIIFvTCCBbmgMDAu=="
        assert challenge.params == {}

    def test_multiple_challenges_in_one_header(self) -> None:
        value = 'Newauth realm="apps", type=1, title="Login to \\"apps\\"", Basic realm="simple"'
        newauth, basic = parse_challenges(value)
        assert newauth.scheme == "Newauth"
        assert newauth.params == {"realm": "apps", "type": "1", "title": 'Login to "apps"'}
        assert basic.scheme == "Basic"
        assert basic.realm == "simple"

    def test_comma_inside_quotes(self) -> None:
        [challenge] = parse_challenges('Digest realm="a, b", nonce="n", qop="auth,auth-int"')
        assert challenge.realm == "a, b"
        assert challenge.get("qop") == "auth,auth-int"

    def test_param_names_are_case_insensitive(self) -> None:
        [challenge] = parse_challenges('Digest REALM="staff", Nonce="abc"')
        assert challenge.get("realm") == "staff"
        assert challenge.get("NONCE") == "abc"
        assert challenge.get("missing", "fallback") == "fallback"

    def test_first_duplicate_param_wins(self) -> None:
        [challenge] = parse_challenges('Basic realm="first", realm="second"')
        assert challenge.realm == "first"

    def test_empty_elements_are_skipped(self) -> None:
        challenges = parse_challenges(' , Basic realm="x", , Bearer')
        assert [c.scheme for c in challenges] == ["Basic", "Bearer"]

    def test_raw_text_is_kept(self) -> None:
        [challenge] = parse_challenges('Digest realm="staff", nonce="abc"')
        assert challenge.raw == 'Digest realm="staff", nonce="abc"'

    def test_empty_header(self) -> None:
        assert parse_challenges("") == []

    @pytest.mark.parametrize(
        "value",
        [
            'realm="orphan"',
            'Basic realm="unterminated',
            'Digest nonce="x", realm=',
            "Basic realm=has space",
        ],
    )
    def test_malformed(self, value: str) -> None:
        with pytest.raises(MalformedChallengeError):
            parse_challenges(value)


# ---------------------------------------------------------------------------
# ChallengeHandler
# ---------------------------------------------------------------------------


class TestTargetChallengeHandler:
    def test_detects_401_only(self, make_challenge: MakeChallenge) -> None:
        handler = TargetChallengeHandler()
        assert handler.is_authentication_requested(make_challenge('Basic realm="x"')) is True
        assert handler.is_authentication_requested(make_challenge(status_code=407)) is False
        assert handler.is_authentication_requested(make_challenge(status_code=200)) is False
        assert handler.is_proxy is False
        assert handler.response_header == "Authorization"

    def test_collects_across_headers_keyed_lowercase(self, make_challenge: MakeChallenge) -> None:
        response = make_challenge('Basic realm="staff"', 'DIGEST realm="staff", nonce="n", Bearer')
        challenges = TargetChallengeHandler().get_challenges(response)
        assert sorted(challenges) == ["basic", "bearer", "digest"]
        assert challenges["digest"].scheme == "DIGEST"

    def test_first_occurrence_of_scheme_wins(self, make_challenge: MakeChallenge) -> None:
        response = make_challenge('Basic realm="one"', 'basic realm="two"')
        challenges = TargetChallengeHandler().get_challenges(response)
        assert challenges["basic"].realm == "one"

    def test_malformed_header_is_skipped(
        self, make_challenge: MakeChallenge, caplog: pytest.LogCaptureFixture
    ) -> None:
        response = make_challenge('Basic realm="broken', 'Bearer realm="api"')
        with caplog.at_level("WARNING", logger="negotiator.auth.challenges"):
            challenges = TargetChallengeHandler().get_challenges(response)
        assert list(challenges) == ["bearer"]
        assert "Skipping malformed WWW-Authenticate header" in caplog.text

    def test_ignores_proxy_header(self, make_challenge: MakeChallenge) -> None:
        response = make_challenge('Basic realm="proxy"', header="Proxy-Authenticate")
        assert TargetChallengeHandler().get_challenges(response) == {}


class TestProxyChallengeHandler:
    def test_detects_407(self, make_challenge: MakeChallenge) -> None:
        handler = ProxyChallengeHandler()
        response = make_challenge('Basic realm="proxy"', status_code=407, header="Proxy-Authenticate")
        assert handler.is_authentication_requested(response) is True
        assert handler.is_proxy is True
        assert handler.response_header == "Proxy-Authorization"
        assert handler.get_challenges(response) == {
            "basic": Challenge(scheme="Basic", params={"realm": "proxy"}, raw='Basic realm="proxy"')
        }

    def test_ignores_origin_challenges(self, make_challenge: MakeChallenge) -> None:
        response = make_challenge('Basic realm="origin"', status_code=407)
        assert ProxyChallengeHandler().get_challenges(response) == {}
