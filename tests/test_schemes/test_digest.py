"""Tests for the Digest authentication scheme."""

from __future__ import annotations

import hashlib
import re

import httpx
import pytest

from negotiator.auth.challenges import Challenge, parse_challenges
from negotiator.auth.credentials import TokenCredentials, UsernamePasswordCredentials
from negotiator.exceptions import AuthenticationError, MalformedChallengeError
from negotiator.schemes.digest import DigestScheme

ALICE = UsernamePasswordCredentials(username="alice", password="s3cret")
REQUEST = httpx.Request("GET", "https://intranet.example.com/reports?year=2024")


def _challenge(value: str) -> Challenge:
    [challenge] = parse_challenges(value)
    return challenge


def _fields(header: str) -> dict[str, str]:
    """Parse a Digest authorization header into a dict of unquoted values."""
    assert header.startswith("Digest ")
    return {
        name: value.strip('"')
        for name, value in re.findall(r'(\w+)=("[^"]*"|[^,\s]+)', header[len("Digest "):])
    }


def _md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest()


def _sha256(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


def _scheme(value: str) -> DigestScheme:
    scheme = DigestScheme()
    scheme.process_challenge(_challenge(value))
    return scheme


# ---------------------------------------------------------------------------
# Challenge processing
# ---------------------------------------------------------------------------


class TestProcessChallenge:
    def test_defaults(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="abc123"')
        assert scheme.realm == "staff"
        assert scheme.nonce == "abc123"
        assert scheme.algorithm == "MD5"
        assert scheme.qop is None
        assert scheme.stale is False
        assert scheme.is_complete() is True

    def test_qop_auth_chosen_from_list(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="n", qop="auth-int, auth"')
        assert scheme.qop == "auth"

    def test_auth_int_only_is_rejected(self) -> None:
        with pytest.raises(MalformedChallengeError, match="qop"):
            _scheme('Digest realm="staff", nonce="n", qop="auth-int"')

    @pytest.mark.parametrize(
        "value",
        ['Digest nonce="n"', 'Digest realm="staff"', 'Digest realm="staff", nonce=""'],
    )
    def test_missing_required_params(self, value: str) -> None:
        with pytest.raises(MalformedChallengeError, match="Missing"):
            _scheme(value)

    def test_unsupported_algorithm(self) -> None:
        with pytest.raises(MalformedChallengeError, match="Unsupported Digest algorithm"):
            _scheme('Digest realm="staff", nonce="n", algorithm=SHA-1')

    @pytest.mark.parametrize("algorithm", ["md5", "MD5-sess", "SHA-256", "sha-256-sess", "SHA-512-256"])
    def test_supported_algorithms(self, algorithm: str) -> None:
        scheme = _scheme(f'Digest realm="staff", nonce="n", algorithm={algorithm}')
        assert scheme.algorithm == algorithm.upper()

    def test_stale_makes_incomplete(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="n1", stale=TRUE')
        assert scheme.stale is True
        assert scheme.is_complete() is False
        scheme.process_challenge(_challenge('Digest realm="staff", nonce="n2", stale=false'))
        assert scheme.is_complete() is True

    def test_failed_challenge_keeps_previous(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="n1"')
        with pytest.raises(MalformedChallengeError):
            scheme.process_challenge(_challenge('Digest realm="staff"'))
        assert scheme.nonce == "n1"


# ---------------------------------------------------------------------------
# Response computation
# ---------------------------------------------------------------------------


class TestAuthenticate:
    def test_rfc2069_without_qop(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="abc123"')
        fields = _fields(scheme.authenticate(ALICE, REQUEST))

        ha1 = _md5("alice:staff:s3cret")
        ha2 = _md5("GET:/reports?year=2024")
        assert fields["response"] == _md5(f"{ha1}:abc123:{ha2}")
        assert fields["username"] == "alice"
        assert fields["realm"] == "staff"
        assert fields["nonce"] == "abc123"
        assert fields["uri"] == "/reports?year=2024"
        assert "qop" not in fields
        assert "nc" not in fields
        assert "algorithm" not in fields

    def test_qop_auth(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="abc123", qop="auth"')
        fields = _fields(scheme.authenticate(ALICE, REQUEST))

        ha1 = _md5("alice:staff:s3cret")
        ha2 = _md5("GET:/reports?year=2024")
        expected = _md5(f"{ha1}:abc123:00000001:{fields['cnonce']}:auth:{ha2}")
        assert fields["response"] == expected
        assert fields["qop"] == "auth"
        assert fields["nc"] == "00000001"
        assert len(fields["cnonce"]) == 16

    def test_sha256_sess(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="abc123", qop="auth", algorithm=SHA-256-sess')
        fields = _fields(scheme.authenticate(ALICE, REQUEST))

        cnonce = fields["cnonce"]
        ha1 = _sha256(f"{_sha256('alice:staff:s3cret')}:abc123:{cnonce}")
        ha2 = _sha256("GET:/reports?year=2024")
        assert fields["response"] == _sha256(f"{ha1}:abc123:00000001:{cnonce}:auth:{ha2}")
        assert fields["algorithm"] == "SHA-256-SESS"

    def test_compute_response_directly(self) -> None:
        scheme = _scheme('Digest realm="testrealm@host.com", nonce="dcd98b7102dd2f0e8b11d0f600bfb0c093", qop="auth"')
        creds = UsernamePasswordCredentials(username="Mufasa", password="Circle Of Life")
        response = scheme.compute_response(
            creds, "GET", "/dir/index.html", "testrealm@host.com", nc="00000001", cnonce="0a4f113b"
        )
        assert response == "6629fae49393a05397450978507c4ef1"

    def test_nonce_count_increments_and_resets(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="n1", qop="auth"')
        assert _fields(scheme.authenticate(ALICE, REQUEST))["nc"] == "00000001"
        assert _fields(scheme.authenticate(ALICE, REQUEST))["nc"] == "00000002"

        scheme.process_challenge(_challenge('Digest realm="staff", nonce="n1", qop="auth"'))
        assert _fields(scheme.authenticate(ALICE, REQUEST))["nc"] == "00000003"

        scheme.process_challenge(_challenge('Digest realm="staff", nonce="n2", qop="auth"'))
        assert _fields(scheme.authenticate(ALICE, REQUEST))["nc"] == "00000001"

    def test_opaque_is_echoed(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="n", opaque="5ccc069c403ebaf9f0171e9517f40e41"')
        fields = _fields(scheme.authenticate(ALICE, REQUEST))
        assert fields["opaque"] == "5ccc069c403ebaf9f0171e9517f40e41"

    def test_method_is_hashed(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="n"')
        post = httpx.Request("POST", "https://intranet.example.com/reports?year=2024")
        fields = _fields(scheme.authenticate(ALICE, post))
        ha1 = _md5("alice:staff:s3cret")
        assert fields["response"] == _md5(f"{ha1}:n:{_md5('POST:/reports?year=2024')}")

    def test_requires_password_credentials(self) -> None:
        scheme = _scheme('Digest realm="staff", nonce="n"')
        with pytest.raises(AuthenticationError, match="username and password"):
            scheme.authenticate(TokenCredentials(token="t"), REQUEST)

    def test_requires_processed_challenge(self) -> None:
        with pytest.raises(AuthenticationError, match="processed challenge"):
            DigestScheme().authenticate(ALICE, REQUEST)
