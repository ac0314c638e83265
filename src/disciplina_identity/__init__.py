"""Disciplina Identity Package

Login: "Prove who you are."

Checks an identifier and password, optionally challenges the user for a
second factor (TOTP or an emailed one-time code) and issues a signed,
stateless session credential.

Usage:
    ```python
    from disciplina_identity import (
        SessionConfig,
        create_authentication_service,
    )

    service = create_authentication_service(
        user_repository=repo,
        session_config=SessionConfig(secret_key=secret),
        delivery_hook=mail_hook,
    )

    result = await service.submit_credentials("alice@school.edu", "secret")
    if result.second_factor_required:
        done = await service.submit_code(result.pending_user_id, "123456")
    ```

Submodules:
    - `db`: Password hashing and credential verification
    - `mfa`: TOTP validation, emailed codes and challenge issuing
    - `login`: Login state machine and request/response boundary
    - `audit`: Login audit events
    - `contrib.fastapi`: FastAPI router and dependencies
"""

from __future__ import annotations

# Audit
from .audit import (
    AuthAuditEvent,
    AuthEventType,
    InMemoryAuthAuditStore,
)

# Credential verification
from .db import CredentialVerifier, PasswordHasher, VerifiedCredentials

# Exceptions
from .exceptions import (
    AuthenticationError,
    ExpiredTokenError,
    IdentityError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    InvalidTokenError,
    LoginAttemptNotFoundError,
    LoginStateError,
    MfaError,
    MfaSetupError,
    PasswordExpiredError,
    UnsupportedResendError,
)

# Factory
from .factory import create_authentication_service

# Login flow
from .login import (
    AuthenticatedResult,
    AuthenticationService,
    CredentialsResult,
    LoginState,
    LoginStateMachine,
    ResendResult,
)

# Second factor
from .mfa import (
    ChallengeDescriptor,
    IMfaDeliveryHook,
    InMemoryOtpStore,
    IOtpStore,
    OtpConfig,
    SecondFactorChallengeIssuer,
    TotpSetup,
    TotpValidator,
)

# Ports
from .ports import (
    IAuthAuditStore,
    IPasswordVerifier,
    IUserCredentialsRepository,
    SecondFactorMode,
    UserCredentials,
)

# Session
from .session import SessionConfig, SessionCredential, SessionIssuer

__all__: list[str] = [
    # Exceptions
    "IdentityError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "ExpiredTokenError",
    "LoginAttemptNotFoundError",
    "PasswordExpiredError",
    "MfaError",
    "InvalidOrExpiredCodeError",
    "UnsupportedResendError",
    "MfaSetupError",
    "LoginStateError",
    # Ports
    "SecondFactorMode",
    "UserCredentials",
    "IUserCredentialsRepository",
    "IPasswordVerifier",
    "IAuthAuditStore",
    "IOtpStore",
    "IMfaDeliveryHook",
    # Credential verification
    "PasswordHasher",
    "CredentialVerifier",
    "VerifiedCredentials",
    # Second factor
    "OtpConfig",
    "InMemoryOtpStore",
    "TotpValidator",
    "TotpSetup",
    "ChallengeDescriptor",
    "SecondFactorChallengeIssuer",
    # Session
    "SessionConfig",
    "SessionCredential",
    "SessionIssuer",
    # Login flow
    "LoginState",
    "LoginStateMachine",
    "AuthenticationService",
    "CredentialsResult",
    "AuthenticatedResult",
    "ResendResult",
    # Audit
    "AuthEventType",
    "AuthAuditEvent",
    "InMemoryAuthAuditStore",
    # Factory
    "create_authentication_service",
]

__version__ = "0.1.0"
