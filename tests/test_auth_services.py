"""Tests for admin password handling and the session registry."""

from dataclasses import replace

import pytest

from eduportal.errors import AuthError, ValidationError
from eduportal.services.auth import hash_password, seed_admin, verify_password
from eduportal.services.store import MemoryStore
from tests.helpers import ADMIN_EMAIL, ADMIN_PASSWORD


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("s3cret!")
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_never_matches(self) -> None:
        assert not verify_password("anything", "not-a-bcrypt-hash")

    def test_empty_inputs(self) -> None:
        assert not verify_password("", hash_password("x"))
        assert not verify_password("x", "")


class TestSeedAdmin:
    def test_seeds_once(self, settings) -> None:
        store = MemoryStore()
        first = seed_admin(store, settings)
        second = seed_admin(store, settings)
        assert first.id == second.id
        assert len(store.get_all_admins()) == 1
        assert first.email == ADMIN_EMAIL

    def test_plain_password_is_hashed(self, settings) -> None:
        store = MemoryStore()
        admin = seed_admin(
            store, replace(settings, admin_password_hash="", admin_password="plain-pass")
        )
        assert admin.password_hash != "plain-pass"
        assert verify_password("plain-pass", admin.password_hash)

    def test_hash_never_serialized(self, settings) -> None:
        admin = seed_admin(MemoryStore(), settings)
        assert "password_hash" not in admin.model_dump()
        assert "passwordHash" not in admin.model_dump(by_alias=True)


class TestSessionRegistry:
    def test_login_issues_256_bit_token(self, services) -> None:
        token, admin = services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        assert len(token) == 64
        int(token, 16)
        assert services.sessions.verify(token) == admin.id

    def test_login_email_is_case_insensitive(self, services) -> None:
        token, _ = services.sessions.login(ADMIN_EMAIL.upper(), ADMIN_PASSWORD)
        assert token

    def test_tokens_are_unique(self, services) -> None:
        first, _ = services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        second, _ = services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        assert first != second
        assert len(services.sessions) == 2

    def test_login_is_audited(self, services) -> None:
        _, admin = services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        entry = services.audit.list()[0]
        assert entry.action == "admin_login"
        assert entry.performed_by == admin.id

    @pytest.mark.parametrize(
        ("email", "password"),
        [(ADMIN_EMAIL, "wrong-password"), ("nobody@test.example", ADMIN_PASSWORD)],
    )
    def test_bad_credentials_look_the_same(self, services, email, password) -> None:
        with pytest.raises(AuthError) as exc_info:
            services.sessions.login(email, password)
        assert exc_info.value.message == "Invalid credentials"
        assert services.audit.list() == []

    @pytest.mark.parametrize(("email", "password"), [("", "x"), (ADMIN_EMAIL, ""), (" ", "x")])
    def test_missing_fields(self, services, email, password) -> None:
        with pytest.raises(ValidationError):
            services.sessions.login(email, password)

    def test_unknown_token(self, services) -> None:
        with pytest.raises(AuthError):
            services.sessions.verify("deadbeef")
        with pytest.raises(AuthError):
            services.sessions.verify(None)

    def test_valid_until_exactly_ttl(self, services, clock) -> None:
        token, admin = services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        clock.advance(hours=24)
        assert services.sessions.verify(token) == admin.id

    def test_expired_token_is_evicted(self, services, clock) -> None:
        token, _ = services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        clock.advance(hours=24, seconds=1)
        with pytest.raises(AuthError):
            services.sessions.verify(token)
        assert len(services.sessions) == 0

    def test_logout_is_idempotent(self, services) -> None:
        token, _ = services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        services.sessions.logout(token)
        services.sessions.logout(token)
        services.sessions.logout(None)
        with pytest.raises(AuthError):
            services.sessions.verify(token)
        actions = [entry.action for entry in services.audit.list()]
        assert actions.count("admin_logout") == 1

    def test_purge_expired(self, services, clock) -> None:
        services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        clock.advance(hours=25)
        fresh, _ = services.sessions.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        # Login purges the stale session first.
        assert len(services.sessions) == 1
        assert services.sessions.purge_expired() == 0
        assert services.sessions.verify(fresh)
