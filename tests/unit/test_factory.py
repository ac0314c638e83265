"""Tests for the service factory."""

from __future__ import annotations

from datetime import timedelta

import pytest

from disciplina_identity import (
    AuthenticationService,
    InMemoryOtpStore,
    PasswordHasher,
    TotpValidator,
    create_authentication_service,
)


class TestCreateAuthenticationService:
    def test_defaults(self, user_repository, session_config) -> None:
        service = create_authentication_service(
            user_repository=user_repository,
            session_config=session_config,
        )

        assert isinstance(service, AuthenticationService)
        assert isinstance(service.credential_verifier.password_hasher, PasswordHasher)
        assert isinstance(service.challenge_issuer.otp_store, InMemoryOtpStore)
        assert service.challenge_issuer.delivery_hook is None
        assert service.challenge_issuer.config.ttl_seconds == 300
        assert service.totp_validator.valid_window == 2
        assert service.session_issuer.config is session_config
        assert service.audit_store is None

    def test_custom_collaborators(
        self, user_repository, session_config, delivery_hook, audit_store
    ) -> None:
        store = InMemoryOtpStore()
        validator = TotpValidator(valid_window=1)

        service = create_authentication_service(
            user_repository=user_repository,
            session_config=session_config,
            delivery_hook=delivery_hook,
            otp_store=store,
            totp_validator=validator,
            audit_store=audit_store,
        )

        assert service.challenge_issuer.otp_store is store
        assert service.challenge_issuer.delivery_hook is delivery_hook
        assert service.totp_validator is validator
        assert service.audit_store is audit_store

    @pytest.mark.asyncio
    async def test_clock_is_shared(self, service, password, clock) -> None:
        clock.advance(hours=3)

        pending = await service.submit_credentials("bob@school.edu", password)
        resent = await service.resend(pending.pending_user_id)
        done = await service.submit_credentials("alice@school.edu", password)

        assert resent.expires_at == clock() + timedelta(minutes=5)
        assert done.session.issued_at == clock()

    def test_password_max_age(self, user_repository, session_config) -> None:
        default = create_authentication_service(
            user_repository=user_repository, session_config=session_config
        )
        disabled = create_authentication_service(
            user_repository=user_repository,
            session_config=session_config,
            password_max_age_days=None,
        )

        assert default.credential_verifier.password_max_age_days == 90
        assert disabled.credential_verifier.password_max_age_days is None
