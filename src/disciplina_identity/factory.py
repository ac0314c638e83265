"""Factory function for wiring the login flow.

Builds every collaborator of AuthenticationService from plain configs so
applications only supply the user repository, the signing key and,
optionally, an email delivery hook.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from .db.hasher import PasswordHasher
from .db.verifier import CredentialVerifier
from .login.service import AuthenticationService
from .mfa.challenge import SecondFactorChallengeIssuer
from .mfa.otp import InMemoryOtpStore, OtpConfig, utc_now
from .mfa.totp import TotpValidator
from .session import SessionConfig, SessionIssuer

if TYPE_CHECKING:
    from datetime import datetime

    from .mfa.ports import IMfaDeliveryHook, IOtpStore
    from .ports import IAuthAuditStore, IPasswordVerifier, IUserCredentialsRepository


def create_authentication_service(
    *,
    user_repository: IUserCredentialsRepository,
    session_config: SessionConfig,
    delivery_hook: IMfaDeliveryHook | None = None,
    password_hasher: IPasswordVerifier | None = None,
    otp_store: IOtpStore | None = None,
    otp_config: OtpConfig | None = None,
    totp_validator: TotpValidator | None = None,
    audit_store: IAuthAuditStore | None = None,
    password_max_age_days: int | None = 90,
    clock: Callable[[], datetime] | None = None,
) -> AuthenticationService:
    """Create a fully wired AuthenticationService.

    Args:
        user_repository: Credential record lookup (application provided).
        session_config: Signing key and lifetime of session credentials.
        delivery_hook: Sends emailed codes (application provided).
        password_hasher: Password-hashing collaborator (default bcrypt).
        otp_store: Emailed code store (default in-memory).
        otp_config: Emailed code range and lifetime.
        totp_validator: TOTP validator (default 30 s step, ±2 steps).
        audit_store: Optional audit event sink.
        password_max_age_days: Passwords older than this must be changed
            before login; None disables the check.
        clock: Returns the current aware UTC datetime; shared by all parts.

    Returns:
        AuthenticationService ready to use.

    Example:
        ```python
        service = create_authentication_service(
            user_repository=SqlUserRepository(session),
            session_config=SessionConfig(secret_key=settings.jwt_secret),
            delivery_hook=SmtpMfaHook(mailer),
        )
        ```
    """
    clock = clock or utc_now

    return AuthenticationService(
        credential_verifier=CredentialVerifier(
            user_repository=user_repository,
            password_hasher=password_hasher or PasswordHasher(),
            password_max_age_days=password_max_age_days,
            clock=clock,
        ),
        challenge_issuer=SecondFactorChallengeIssuer(
            otp_store=otp_store or InMemoryOtpStore(clock=clock),
            delivery_hook=delivery_hook,
            config=otp_config,
            clock=clock,
        ),
        totp_validator=totp_validator or TotpValidator(),
        session_issuer=SessionIssuer(session_config, clock=clock),
        audit_store=audit_store,
        clock=clock,
    )


__all__: list[str] = ["create_authentication_service"]
