"""Core identity ports (protocols) and the credential record.

These protocols define the collaborators the login flow depends on.
The identity package does NOT implement user storage; the application's
infrastructure layer provides it. All ports use @runtime_checkable for
isinstance checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .audit.events import AuthAuditEvent, AuthEventType


class SecondFactorMode(str, Enum):
    """Second factor configured for a user."""

    NONE = "none"
    TOTP = "totp"
    EMAIL = "email"


# ═══════════════════════════════════════════════════════════════
# CREDENTIAL RECORD
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class UserCredentials:
    """Credential record as read from the user store.

    Owned by the external user store; this package only reads it.

    Attributes:
        user_id: Unique user identifier.
        email: Login identifier and delivery address for email codes.
        password_hash: Stored password hash (bcrypt or argon2id).
        role: Role name carried into the session credential.
        second_factor_mode: Which second factor the user must pass.
        totp_secret: Base32 TOTP secret when the TOTP factor is enabled.
        name: Display name.
        is_active: Disabled accounts cannot log in.
        password_changed_at: When the password was last set. None counts
            as expired wherever a maximum password age is enforced.
    """

    user_id: str
    email: str
    password_hash: str | None = None
    role: str = "user"
    second_factor_mode: SecondFactorMode = SecondFactorMode.NONE
    totp_secret: str | None = None
    name: str | None = None
    is_active: bool = True
    password_changed_at: datetime | None = None

    def public_data(self) -> dict[str, Any]:
        """Return the record without password hash or TOTP secret."""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "second_factor_mode": self.second_factor_mode.value,
            "is_active": self.is_active,
        }


# ═══════════════════════════════════════════════════════════════
# USER CREDENTIALS REPOSITORY PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IUserCredentialsRepository(Protocol):
    """Protocol for user credential lookup.

    This is a PORT that must be implemented by the application's
    infrastructure layer. Lookups may block on I/O.
    """

    async def get_by_email(self, email: str) -> UserCredentials | None:
        """Get user credentials by login email.

        Args:
            email: Normalized (lower-cased, stripped) email.

        Returns:
            UserCredentials or None if not found.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# PASSWORD VERIFIER PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IPasswordVerifier(Protocol):
    """Protocol for the password-hashing collaborator.

    Implementations are expected to be deliberately slow.
    """

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a plaintext password against a stored hash.

        Args:
            password: Plaintext password.
            password_hash: Stored hash.

        Returns:
            True if the password matches.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# AUDIT STORE PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IAuthAuditStore(Protocol):
    """Protocol for recording login audit events."""

    async def record(self, event: AuthAuditEvent) -> None:
        """Record an audit event.

        Args:
            event: The audit event to record.
        """
        ...

    async def get_events(
        self,
        principal_id: str,
        *,
        event_types: list[AuthEventType] | None = None,
        limit: int = 100,
    ) -> list[AuthAuditEvent]:
        """Get audit events for a user, most recent first.

        Args:
            principal_id: User ID to query.
            event_types: Optional filter by event types.
            limit: Maximum number of events to return.

        Returns:
            List of audit events.
        """
        ...


__all__: list[str] = [
    "SecondFactorMode",
    "UserCredentials",
    "IUserCredentialsRepository",
    "IPasswordVerifier",
    "IAuthAuditStore",
]
