"""Audit events for the login flow.

One event is produced per login transition so that successful logins,
failed attempts, challenges, resends and cancellations can be reviewed
after the fact. Events never contain passwords, codes or tokens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AuthEventType(Enum):
    """Types of login audit events.

    Event naming follows the pattern: `auth.<resource>.<action>`
    """

    # Login events
    LOGIN_SUCCESS = "auth.login.success"
    LOGIN_FAILED = "auth.login.failed"
    LOGIN_CANCELLED = "auth.login.cancelled"

    # MFA events
    MFA_CHALLENGED = "auth.mfa.challenged"
    MFA_RESENT = "auth.mfa.resent"
    MFA_VERIFIED = "auth.mfa.verified"
    MFA_FAILED = "auth.mfa.failed"

    # Session events
    SESSION_CREATED = "auth.session.created"


@dataclass(frozen=True)
class AuthAuditEvent:
    """Login audit event.

    Attributes:
        event_type: The type of event.
        principal_id: The user ID, when known. Failed credential checks
            carry no principal because the identifier may not exist.
        method: Second-factor mode involved (none, totp, email).
        timestamp: When the event occurred (UTC).
        success: Whether the operation was successful.
        error_code: Error code if the operation failed.
        metadata: Additional event-specific data.
    """

    event_type: AuthEventType
    principal_id: str | None = None
    method: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    success: bool = True
    error_code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.success and not self.error_code:
            object.__setattr__(self, "error_code", "UNKNOWN_ERROR")

    def to_dict(self) -> dict[str, Any]:
        """Convert event to a JSON-serializable dictionary."""
        return {
            "event_type": self.event_type.value,
            "principal_id": self.principal_id,
            "method": self.method,
            "timestamp": self.timestamp.isoformat(),
            "success": self.success,
            "error_code": self.error_code,
            "metadata": self.metadata,
        }


# ═══════════════════════════════════════════════════════════════
# EVENT FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════


def login_success_event(principal_id: str, method: str) -> AuthAuditEvent:
    """Create a successful login event."""
    return AuthAuditEvent(
        event_type=AuthEventType.LOGIN_SUCCESS,
        principal_id=principal_id,
        method=method,
    )


def login_failed_event(
    error_code: str = "INVALID_CREDENTIALS",
    *,
    principal_id: str | None = None,
) -> AuthAuditEvent:
    """Create a failed credential check event.

    The principal is only known when the password matched, as for an
    expired password.
    """
    return AuthAuditEvent(
        event_type=AuthEventType.LOGIN_FAILED,
        principal_id=principal_id,
        success=False,
        error_code=error_code,
    )


def login_cancelled_event(principal_id: str, method: str) -> AuthAuditEvent:
    """Create a cancelled login event."""
    return AuthAuditEvent(
        event_type=AuthEventType.LOGIN_CANCELLED,
        principal_id=principal_id,
        method=method,
    )


def mfa_challenged_event(
    principal_id: str,
    method: str,
    *,
    resent: bool = False,
) -> AuthAuditEvent:
    """Create a second-factor challenge (or resend) event."""
    return AuthAuditEvent(
        event_type=AuthEventType.MFA_RESENT if resent else AuthEventType.MFA_CHALLENGED,
        principal_id=principal_id,
        method=method,
    )


def mfa_verified_event(principal_id: str, method: str) -> AuthAuditEvent:
    """Create a successful second-factor event."""
    return AuthAuditEvent(
        event_type=AuthEventType.MFA_VERIFIED,
        principal_id=principal_id,
        method=method,
    )


def mfa_failed_event(
    principal_id: str,
    method: str,
    error_code: str = "INVALID_OR_EXPIRED_CODE",
) -> AuthAuditEvent:
    """Create a failed second-factor event."""
    return AuthAuditEvent(
        event_type=AuthEventType.MFA_FAILED,
        principal_id=principal_id,
        method=method,
        success=False,
        error_code=error_code,
    )


def session_created_event(
    principal_id: str,
    *,
    role: str,
    expires_at: datetime,
) -> AuthAuditEvent:
    """Create a session issued event."""
    return AuthAuditEvent(
        event_type=AuthEventType.SESSION_CREATED,
        principal_id=principal_id,
        metadata={"role": role, "expires_at": expires_at.isoformat()},
    )


__all__: list[str] = [
    "AuthEventType",
    "AuthAuditEvent",
    "login_success_event",
    "login_failed_event",
    "login_cancelled_event",
    "mfa_challenged_event",
    "mfa_verified_event",
    "mfa_failed_event",
    "session_created_event",
]
