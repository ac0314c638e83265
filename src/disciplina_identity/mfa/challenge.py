"""Second-factor challenge issuing.

Decides what the user must submit after a successful password check and,
for the email factor, creates and delivers a fresh one-time code.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from ..exceptions import MfaSetupError, UnsupportedResendError
from ..ports import SecondFactorMode
from .otp import InMemoryOtpStore, OtpConfig, generate_email_code, utc_now
from .ports import ChallengeDescriptor, IMfaDeliveryHook, IOtpStore

logger = logging.getLogger(__name__)


class SecondFactorChallengeIssuer:
    """Issues second-factor challenges.

    For TOTP nothing is stored: the secret already lives on the credential
    record. For email a new code is generated, stored with a 5 minute
    expiry (superseding any earlier code for the user) and handed to the
    delivery hook.

    Example:
        ```python
        issuer = SecondFactorChallengeIssuer(
            otp_store=InMemoryOtpStore(),
            delivery_hook=MyEmailHook(),
        )
        challenge = await issuer.issue_challenge(
            "user-1", SecondFactorMode.EMAIL, email="alice@school.edu"
        )
        ```
    """

    def __init__(
        self,
        *,
        otp_store: IOtpStore | None = None,
        delivery_hook: IMfaDeliveryHook | None = None,
        config: OtpConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the challenge issuer.

        Args:
            otp_store: Store for emailed codes (default in-memory).
            delivery_hook: Hook that sends emailed codes (optional).
            config: Code range and lifetime.
            clock: Returns the current aware UTC datetime.
        """
        self._clock = clock or utc_now
        self.otp_store = otp_store or InMemoryOtpStore(clock=self._clock)
        self.delivery_hook = delivery_hook
        self.config = config or OtpConfig()

    async def issue_challenge(
        self,
        user_id: str,
        mode: SecondFactorMode,
        *,
        email: str | None = None,
    ) -> ChallengeDescriptor:
        """Produce the challenge for a user's configured factor.

        Args:
            user_id: User identifier.
            mode: The user's second-factor mode.
            email: Delivery address for the email factor.

        Returns:
            ChallengeDescriptor telling the caller what to submit.

        Raises:
            MfaSetupError: If mode is NONE (no challenge applies).
        """
        if mode is SecondFactorMode.TOTP:
            logger.debug("TOTP challenge for user %s", user_id)
            return ChallengeDescriptor(user_id=user_id, mode=mode)

        if mode is SecondFactorMode.EMAIL:
            return await self._issue_email_code(user_id, email)

        raise MfaSetupError(f"No second factor configured for user {user_id}")

    async def resend(
        self,
        user_id: str,
        mode: SecondFactorMode,
        *,
        email: str | None = None,
    ) -> ChallengeDescriptor:
        """Issue a fresh emailed code.

        The previous code is superseded, never extended.

        Args:
            user_id: User identifier.
            mode: The user's second-factor mode.
            email: Delivery address.

        Returns:
            ChallengeDescriptor for the new code.

        Raises:
            UnsupportedResendError: If mode is not EMAIL.
        """
        if mode is not SecondFactorMode.EMAIL:
            raise UnsupportedResendError()
        return await self._issue_email_code(user_id, email)

    async def _issue_email_code(
        self, user_id: str, email: str | None
    ) -> ChallengeDescriptor:
        code = generate_email_code(self.config)
        expires_at = self._clock() + timedelta(seconds=self.config.ttl_seconds)

        await self.otp_store.put(user_id, code, expires_at)

        delivered = False
        if self.delivery_hook is not None:
            if not email:
                raise MfaSetupError(f"No email address for user {user_id}")
            await self.delivery_hook.send_email_otp(email, code)
            delivered = True

        logger.info(
            "Email code issued for user %s (expires %s, delivered=%s)",
            user_id,
            expires_at.isoformat(),
            delivered,
        )
        return ChallengeDescriptor(
            user_id=user_id,
            mode=SecondFactorMode.EMAIL,
            expires_at=expires_at,
            delivered=delivered,
        )


__all__: list[str] = ["SecondFactorChallengeIssuer"]
