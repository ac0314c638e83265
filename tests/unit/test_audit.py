"""Tests for login audit events and the in-memory audit store."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from disciplina_identity.audit import (
    AuthAuditEvent,
    AuthEventType,
    InMemoryAuthAuditStore,
    login_cancelled_event,
    login_failed_event,
    login_success_event,
    mfa_challenged_event,
    mfa_failed_event,
    mfa_verified_event,
    session_created_event,
)
from disciplina_identity.ports import IAuthAuditStore


class TestAuthAuditEvent:
    """Test event construction."""

    def test_failure_without_code_gets_unknown_error(self) -> None:
        event = AuthAuditEvent(event_type=AuthEventType.LOGIN_FAILED, success=False)

        assert event.error_code == "UNKNOWN_ERROR"

    def test_to_dict(self) -> None:
        ts = datetime(2026, 1, 15, 8, 0, tzinfo=timezone.utc)
        event = AuthAuditEvent(
            event_type=AuthEventType.LOGIN_SUCCESS,
            principal_id="user-1",
            method="email",
            timestamp=ts,
        )

        assert event.to_dict() == {
            "event_type": "auth.login.success",
            "principal_id": "user-1",
            "method": "email",
            "timestamp": "2026-01-15T08:00:00+00:00",
            "success": True,
            "error_code": None,
            "metadata": {},
        }

    def test_factories(self) -> None:
        assert login_success_event("u", "none").event_type is AuthEventType.LOGIN_SUCCESS
        assert login_cancelled_event("u", "email").event_type is (
            AuthEventType.LOGIN_CANCELLED
        )
        assert mfa_challenged_event("u", "totp").event_type is (
            AuthEventType.MFA_CHALLENGED
        )
        assert mfa_challenged_event("u", "email", resent=True).event_type is (
            AuthEventType.MFA_RESENT
        )
        assert mfa_verified_event("u", "totp").success is True

        failed = mfa_failed_event("u", "email")
        assert failed.success is False
        assert failed.error_code == "INVALID_OR_EXPIRED_CODE"

        login_failed = login_failed_event()
        assert login_failed.principal_id is None
        assert login_failed.error_code == "INVALID_CREDENTIALS"

        expired = login_failed_event("PASSWORD_EXPIRED", principal_id="u")
        assert expired.principal_id == "u"
        assert expired.error_code == "PASSWORD_EXPIRED"

    def test_session_created_metadata(self) -> None:
        expires = datetime(2026, 1, 22, 8, 0, tzinfo=timezone.utc)
        event = session_created_event("u", role="teacher", expires_at=expires)

        assert event.metadata == {
            "role": "teacher",
            "expires_at": "2026-01-22T08:00:00+00:00",
        }


class TestInMemoryAuthAuditStore:
    """Test the in-memory store."""

    @pytest.fixture
    def store(self) -> InMemoryAuthAuditStore:
        return InMemoryAuthAuditStore()

    def test_implements_port(self, store) -> None:
        assert isinstance(store, IAuthAuditStore)

    @pytest.mark.asyncio
    async def test_events_most_recent_first(self, store) -> None:
        await store.record(mfa_challenged_event("u1", "email"))
        await store.record(mfa_verified_event("u1", "email"))
        await store.record(login_success_event("u2", "none"))

        events = await store.get_events("u1")

        assert [e.event_type for e in events] == [
            AuthEventType.MFA_VERIFIED,
            AuthEventType.MFA_CHALLENGED,
        ]

    @pytest.mark.asyncio
    async def test_filter_and_limit(self, store) -> None:
        for _ in range(3):
            await store.record(mfa_failed_event("u1", "email"))
        await store.record(login_success_event("u1", "email"))

        failed = await store.get_events(
            "u1", event_types=[AuthEventType.MFA_FAILED], limit=2
        )

        assert len(failed) == 2
        assert all(e.event_type is AuthEventType.MFA_FAILED for e in failed)

    @pytest.mark.asyncio
    async def test_anonymous_events_by_type(self, store) -> None:
        await store.record(login_failed_event())
        await store.record(login_failed_event())

        assert len(store.events_of_type(AuthEventType.LOGIN_FAILED)) == 2
        assert store.count() == 2

    @pytest.mark.asyncio
    async def test_clear(self, store) -> None:
        await store.record(login_success_event("u1", "none"))
        store.clear()

        assert store.count() == 0
        assert await store.get_events("u1") == []

    @pytest.mark.asyncio
    async def test_failures_since(self, store) -> None:
        morning = datetime(2026, 1, 15, 8, 0, tzinfo=timezone.utc)
        noon = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
        await store.record(
            AuthAuditEvent(
                event_type=AuthEventType.LOGIN_FAILED,
                success=False,
                timestamp=morning,
            )
        )
        await store.record(
            AuthAuditEvent(
                event_type=AuthEventType.MFA_FAILED,
                principal_id="u1",
                success=False,
                timestamp=noon,
            )
        )
        await store.record(
            AuthAuditEvent(
                event_type=AuthEventType.LOGIN_SUCCESS,
                principal_id="u1",
                timestamp=noon,
            )
        )

        assert [e.event_type for e in store.failures_since(morning)] == [
            AuthEventType.MFA_FAILED,
            AuthEventType.LOGIN_FAILED,
        ]
        assert [e.event_type for e in store.failures_since(noon)] == [
            AuthEventType.MFA_FAILED,
        ]

    @pytest.mark.asyncio
    async def test_last_login(self, store) -> None:
        first = login_success_event("u1", "none")
        second = login_success_event("u1", "email")
        await store.record(first)
        await store.record(second)
        await store.record(login_cancelled_event("u1", "email"))

        assert store.last_login("u1") is second
        assert store.last_login("u2") is None
