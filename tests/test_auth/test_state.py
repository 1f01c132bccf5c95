"""Tests for AuthState and AuthStateRegistry."""

from __future__ import annotations

import threading

from negotiator.auth.credentials import UsernamePasswordCredentials
from negotiator.auth.scope import HttpHost
from negotiator.auth.state import AuthState, AuthStateRegistry, ChallengeState
from negotiator.schemes.basic import BasicScheme


class TestAuthState:
    def test_initial_state(self) -> None:
        state = AuthState()
        assert state.challenge_state is ChallengeState.UNCHALLENGED
        assert state.scheme is None
        assert state.credentials is None
        assert state.is_valid() is False
        assert state.has_credentials() is False

    def test_invalidate(self, alice: UsernamePasswordCredentials) -> None:
        state = AuthState()
        state.scheme = BasicScheme()
        state.credentials = alice
        state.challenge_state = ChallengeState.FAILURE

        state.invalidate()

        assert state.challenge_state is ChallengeState.UNCHALLENGED
        assert state.scheme is None
        assert state.credentials is None

    def test_has_credentials_needs_scheme(self, alice: UsernamePasswordCredentials) -> None:
        state = AuthState()
        state.credentials = alice
        assert state.has_credentials() is False
        state.scheme = BasicScheme()
        assert state.is_valid() is True
        assert state.has_credentials() is True

    def test_repr_hides_secrets(self, alice: UsernamePasswordCredentials) -> None:
        state = AuthState()
        assert repr(state) == "<AuthState state:UNCHALLENGED>"
        state.scheme = BasicScheme()
        state.credentials = alice
        state.challenge_state = ChallengeState.CHALLENGED
        assert repr(state) == "<AuthState state:CHALLENGED;auth scheme:basic;credentials present>"
        assert "s3cret" not in repr(state)


class TestAuthStateRegistry:
    def test_get_creates_once_per_target(self, target: HttpHost) -> None:
        registry = AuthStateRegistry()
        state = registry.get(target)
        assert registry.get(HttpHost(hostname="INTRANET.example.com", port=443, scheme="https")) is state
        assert registry.get(HttpHost(hostname="intranet.example.com", port=8443, scheme="https")) is not state
        assert registry.targets() == [target, HttpHost(hostname="intranet.example.com", port=8443, scheme="https")]

    def test_lock_is_stable_per_target(self, target: HttpHost) -> None:
        registry = AuthStateRegistry()
        lock = registry.lock_for(target)
        assert registry.lock_for(target) is lock
        assert registry.lock_for(HttpHost(hostname="other", port=80)) is not lock

    def test_reset_single_target(self, target: HttpHost) -> None:
        registry = AuthStateRegistry()
        other = HttpHost(hostname="other", port=80)
        registry.get(target).challenge_state = ChallengeState.SUCCESS
        registry.get(other).challenge_state = ChallengeState.SUCCESS

        registry.reset(target)

        assert registry.get(target).challenge_state is ChallengeState.UNCHALLENGED
        assert registry.get(other).challenge_state is ChallengeState.SUCCESS

    def test_reset_all(self, target: HttpHost) -> None:
        registry = AuthStateRegistry()
        other = HttpHost(hostname="other", port=80)
        registry.get(target).challenge_state = ChallengeState.SUCCESS
        registry.get(other).challenge_state = ChallengeState.FAILURE
        registry.reset()
        assert all(registry.get(t).challenge_state is ChallengeState.UNCHALLENGED for t in (target, other))

    def test_reset_unknown_target_is_noop(self) -> None:
        registry = AuthStateRegistry()
        registry.reset(HttpHost(hostname="never-seen", port=80))
        assert registry.targets() == []

    def test_concurrent_get_returns_one_state(self, target: HttpHost) -> None:
        registry = AuthStateRegistry()
        seen: list[AuthState] = []

        def worker() -> None:
            seen.append(registry.get(target))

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(state) for state in seen}) == 1
