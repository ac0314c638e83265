"""Identity-related exceptions for the login flow.

All identity errors inherit from IdentityError. The messages of the
user-facing failures are module constants so that every path producing
the same error kind yields exactly the same text.
"""

from __future__ import annotations

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"
INVALID_OR_EXPIRED_CODE_MESSAGE = "Invalid or expired code"
UNSUPPORTED_RESEND_MESSAGE = "Resend is not available for this method"
PASSWORD_EXPIRED_MESSAGE = "Password has expired and must be changed"

# ═══════════════════════════════════════════════════════════════
# BASE IDENTITY ERROR
# ═══════════════════════════════════════════════════════════════


class IdentityError(Exception):
    """Base class for all identity-related errors."""


# ═══════════════════════════════════════════════════════════════
# AUTHENTICATION ERRORS
# ═══════════════════════════════════════════════════════════════


class AuthenticationError(IdentityError):
    """Raised when authentication fails.

    This is the base exception for all authentication failures.
    Use more specific exceptions when possible.
    """


class InvalidCredentialsError(AuthenticationError):
    """Raised when identifier/password credentials are invalid.

    Covers unknown identifier, wrong password and disabled account alike.
    Callers must not be able to tell these cases apart.
    """

    def __init__(self, message: str = INVALID_CREDENTIALS_MESSAGE) -> None:
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Raised when a session token is invalid or malformed.

    Examples:
        - JWT signature verification failed
        - Token format is incorrect
        - Token claims are missing
    """


class ExpiredTokenError(AuthenticationError):
    """Raised when a session token has expired."""


class PasswordExpiredError(AuthenticationError):
    """Raised when the password matched but is too old to be accepted.

    Only raised after a successful password check, so it reveals nothing
    to a caller who does not know the password.

    Attributes:
        user_id: The user who must change their password.
    """

    def __init__(self, user_id: str, message: str = PASSWORD_EXPIRED_MESSAGE) -> None:
        super().__init__(message)
        self.user_id = user_id


class LoginAttemptNotFoundError(AuthenticationError):
    """Raised when no in-flight login attempt exists for a pending user id."""


# ═══════════════════════════════════════════════════════════════
# MFA ERRORS
# ═══════════════════════════════════════════════════════════════


class MfaError(IdentityError):
    """Base class for second-factor errors."""


class InvalidOrExpiredCodeError(MfaError):
    """Raised when a second-factor code is wrong, reused or expired.

    The three cases share one error so the caller cannot distinguish
    a wrong code from an expired one.
    """

    def __init__(self, message: str = INVALID_OR_EXPIRED_CODE_MESSAGE) -> None:
        super().__init__(message)


class UnsupportedResendError(MfaError):
    """Raised when a resend is requested for a factor that has nothing to resend.

    TOTP codes are produced by the user's authenticator app, so only the
    email factor supports resend.
    """

    def __init__(self, message: str = UNSUPPORTED_RESEND_MESSAGE) -> None:
        super().__init__(message)


class MfaSetupError(MfaError):
    """Raised when a second factor is misconfigured.

    Examples:
        - Email factor selected but the user has no email address
        - TOTP factor selected but the user has no TOTP secret
        - Challenge requested for a user without a second factor
    """


# ═══════════════════════════════════════════════════════════════
# LOGIN FLOW ERRORS
# ═══════════════════════════════════════════════════════════════


class LoginStateError(IdentityError):
    """Raised when a login transition is not allowed from the current state.

    Attributes:
        state: Name of the state the machine was in.
        action: The transition that was attempted.
    """

    def __init__(self, state: str, action: str) -> None:
        super().__init__(f"Cannot {action} while login is {state}")
        self.state = state
        self.action = action


__all__: list[str] = [
    "INVALID_CREDENTIALS_MESSAGE",
    "INVALID_OR_EXPIRED_CODE_MESSAGE",
    "UNSUPPORTED_RESEND_MESSAGE",
    "PASSWORD_EXPIRED_MESSAGE",
    # Base
    "IdentityError",
    # Authentication
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "ExpiredTokenError",
    "PasswordExpiredError",
    "LoginAttemptNotFoundError",
    # MFA
    "MfaError",
    "InvalidOrExpiredCodeError",
    "UnsupportedResendError",
    "MfaSetupError",
    # Login flow
    "LoginStateError",
]
