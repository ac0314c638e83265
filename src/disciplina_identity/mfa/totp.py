"""TOTP (Time-based One-Time Password) validation.

Works with any RFC 6238 authenticator app (Google Authenticator,
Microsoft Authenticator, Authy, FreeOTP, ...).

Uses pyotp library internally.
"""

from __future__ import annotations

import binascii
from datetime import datetime
from typing import Any

from .ports import TotpSetup


class TotpValidator:
    """Stateless TOTP check with clock-drift tolerance.

    A code is accepted when it matches any time step within
    ±valid_window steps of ``now``. With the defaults (30 s step,
    window 2) that is ±60 seconds. Nothing is consumed: the same code
    keeps validating for as long as it stays inside the window, so this
    class gives no single-use guarantee.

    Example:
        ```python
        validator = TotpValidator()
        setup = validator.generate_setup("alice@school.edu")
        # user_store.save_totp_secret(user_id, setup.secret)

        if validator.validate(setup.secret, "123456", utc_now()):
            print("Valid!")
        ```
    """

    def __init__(
        self,
        *,
        issuer: str = "Control Disciplina",
        digits: int = 6,
        interval: int = 30,
        valid_window: int = 2,
    ) -> None:
        """Initialize the validator.

        Args:
            issuer: Application name shown in authenticator apps.
            digits: Number of digits in a code (default 6).
            interval: Time step in seconds (default 30).
            valid_window: Accepted steps either side of now (default 2).
        """
        self.issuer = issuer
        self.digits = digits
        self.interval = interval
        self.valid_window = valid_window

    def _get_pyotp(self) -> Any:
        """Lazy import pyotp."""
        try:
            import pyotp

            return pyotp
        except ImportError as e:
            raise ImportError(
                "pyotp is required for TOTP support. "
                "Install with: pip install pyotp"
            ) from e

    def validate(self, secret: str, submitted_code: str, now: datetime) -> bool:
        """Check a submitted code against a shared secret.

        Args:
            secret: Base32-encoded shared secret.
            submitted_code: Code typed by the user.
            now: Verification time.

        Returns:
            True if the code matches a step within the window. Malformed
            codes and undecodable secrets return False.
        """
        code = submitted_code.strip()
        if len(code) != self.digits or not code.isdigit():
            return False

        pyotp = self._get_pyotp()
        totp = pyotp.TOTP(secret, digits=self.digits, interval=self.interval)
        try:
            return bool(totp.verify(code, for_time=now, valid_window=self.valid_window))
        except (binascii.Error, ValueError):
            # Secret is not valid base32
            return False

    def code_at(self, secret: str, at: datetime) -> str:
        """Compute the expected code for an instant.

        Args:
            secret: Base32-encoded shared secret.
            at: Instant to compute the code for.

        Returns:
            The code an authenticator app would show at ``at``.
        """
        pyotp = self._get_pyotp()
        totp = pyotp.TOTP(secret, digits=self.digits, interval=self.interval)
        return str(totp.at(at))

    def generate_setup(self, account_name: str) -> TotpSetup:
        """Generate a fresh TOTP secret and its provisioning data.

        The secret is returned, not stored. Attaching it to the user's
        credential record is the user-management flow's job.

        Args:
            account_name: Label shown in the authenticator app (usually email).

        Returns:
            TotpSetup with:
                - secret: Base32-encoded secret (persist this!)
                - qr_uri: otpauth:// URI for QR code generation
                - manual_key: Formatted key for manual entry
        """
        pyotp = self._get_pyotp()
        secret = pyotp.random_base32(length=32)

        totp = pyotp.TOTP(
            secret,
            digits=self.digits,
            interval=self.interval,
            issuer=self.issuer,
        )
        qr_uri = totp.provisioning_uri(name=account_name, issuer_name=self.issuer)

        return TotpSetup(
            secret=secret,
            qr_uri=qr_uri,
            manual_key=self._format_secret(secret),
        )

    def _format_secret(self, secret: str) -> str:
        """Format secret as groups of 4 characters for manual entry."""
        secret = secret.rstrip("=")
        return " ".join(secret[i : i + 4] for i in range(0, len(secret), 4))


__all__: list[str] = ["TotpValidator"]
