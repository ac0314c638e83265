"""MFA ports (protocols) for the second login factor.

Defines the one-time code store contract, the delivery hook for emailed
codes, and the value types handed back to the login flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from ..ports import SecondFactorMode


@dataclass(frozen=True)
class TotpSetup:
    """TOTP setup data for an authenticator app.

    The secret is NOT stored by this package; the user-management flow
    that requested it is responsible for persisting it on the user record.

    Attributes:
        secret: Base32-encoded TOTP secret.
        qr_uri: otpauth:// URI for QR code generation.
        manual_key: Human-readable key for manual entry.
    """

    secret: str
    qr_uri: str
    manual_key: str


@dataclass(frozen=True)
class ChallengeDescriptor:
    """Describes the second-factor challenge a user must answer.

    Never carries the code itself.

    Attributes:
        user_id: User being challenged.
        mode: Factor to submit (totp or email).
        expires_at: Absolute expiry of the emailed code; None for TOTP.
        delivered: Whether the code was handed to the delivery hook.
    """

    user_id: str
    mode: SecondFactorMode
    expires_at: datetime | None = None
    delivered: bool = False


@runtime_checkable
class IOtpStore(Protocol):
    """Protocol for the emailed one-time code store.

    Keeps at most one live code per user. Implementations must make
    consume() a single atomic check-and-delete per user key.
    """

    async def put(self, user_id: str, code: str, expires_at: datetime) -> None:
        """Store a code, replacing any existing entry for the user.

        Args:
            user_id: User identifier.
            code: The 6-digit code.
            expires_at: Absolute expiry instant (UTC).
        """
        ...

    async def consume(self, user_id: str, submitted_code: str) -> bool:
        """Check and consume a code.

        Args:
            user_id: User identifier.
            submitted_code: Code submitted by the user.

        Returns:
            True only for a correct, unexpired code, which is then removed.
            A wrong code leaves a live entry in place; an expired entry is
            removed regardless of the submitted value.
        """
        ...

    async def delete(self, user_id: str) -> None:
        """Remove the entry for a user if present.

        Args:
            user_id: User identifier.
        """
        ...


@runtime_checkable
class IMfaDeliveryHook(Protocol):
    """Protocol for delivering emailed codes.

    The identity package does NOT include email sending; the application
    implements this hook with its mail transport.
    """

    async def send_email_otp(self, email: str, code: str) -> None:
        """Send a one-time code via email.

        Args:
            email: Recipient email address.
            code: The one-time code.
        """
        ...


__all__: list[str] = [
    "TotpSetup",
    "ChallengeDescriptor",
    "IOtpStore",
    "IMfaDeliveryHook",
]
