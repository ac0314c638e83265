"""Credential verification against the application's user store.

First step of the login flow: checks identifier + password and reports
which second factor, if any, the user must pass next.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..exceptions import InvalidCredentialsError, PasswordExpiredError
from ..ports import (
    IPasswordVerifier,
    IUserCredentialsRepository,
    SecondFactorMode,
    UserCredentials,
)
from .hasher import PasswordHasher

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_identifier(identifier: str) -> str:
    """Normalize a login identifier (email) for lookup."""
    return identifier.strip().lower()


@dataclass(frozen=True)
class VerifiedCredentials:
    """Successful credential check.

    Attributes:
        valid: Always True; failures raise instead.
        user_id: Resolved user identifier.
        second_factor_mode: Second factor configured on the credential record.
        user: The credential record that matched.
    """

    valid: bool
    user_id: str
    second_factor_mode: SecondFactorMode
    user: UserCredentials


class CredentialVerifier:
    """Verifies identifier/password pairs.

    Unknown identifier, wrong password, missing hash and disabled account
    all raise the same InvalidCredentialsError with the same message, and
    an unknown identifier still pays for one hash verification, so the
    failure cannot be used to enumerate accounts.

    A correct password older than ``password_max_age_days`` (or with no
    recorded change date) raises PasswordExpiredError instead of passing.

    Example:
        ```python
        verifier = CredentialVerifier(user_repository=repo)
        result = await verifier.verify("alice@school.edu", "secret")
        if result.second_factor_mode is SecondFactorMode.NONE:
            ...
        ```
    """

    def __init__(
        self,
        *,
        user_repository: IUserCredentialsRepository,
        password_hasher: IPasswordVerifier | None = None,
        password_max_age_days: int | None = 90,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the verifier.

        Args:
            user_repository: Repository for credential records.
            password_hasher: Password-hashing collaborator (default bcrypt).
            password_max_age_days: Maximum password age; None disables the
                check.
            clock: Returns the current aware UTC datetime.
        """
        self.user_repository = user_repository
        self.password_hasher = password_hasher or PasswordHasher()
        self.password_max_age_days = password_max_age_days
        self._clock = clock or _utc_now

    async def verify(self, identifier: str, password: str) -> VerifiedCredentials:
        """Verify credentials.

        Args:
            identifier: Login identifier (email).
            password: Plaintext password.

        Returns:
            VerifiedCredentials for the matching user.

        Raises:
            InvalidCredentialsError: Unknown identifier, wrong password,
                or disabled account.
            PasswordExpiredError: Correct password, but it must be changed.
        """
        user = await self.user_repository.get_by_email(
            normalize_identifier(identifier)
        )

        if user is None or not user.password_hash:
            await self._equalize_timing(password)
            logger.info("Credential check failed")
            raise InvalidCredentialsError()

        matches = await asyncio.to_thread(
            self.password_hasher.verify, password, user.password_hash
        )
        if not matches or not user.is_active:
            logger.info("Credential check failed")
            raise InvalidCredentialsError()

        if self._password_expired(user):
            logger.info("Password expired for user %s", user.user_id)
            raise PasswordExpiredError(user.user_id)

        logger.debug(
            "Credentials verified for user %s (second factor: %s)",
            user.user_id,
            user.second_factor_mode.value,
        )
        return VerifiedCredentials(
            valid=True,
            user_id=user.user_id,
            second_factor_mode=user.second_factor_mode,
            user=user,
        )

    def _password_expired(self, user: UserCredentials) -> bool:
        if self.password_max_age_days is None:
            return False
        if user.password_changed_at is None:
            return True
        age = self._clock() - user.password_changed_at
        return age >= timedelta(days=self.password_max_age_days)

    async def _equalize_timing(self, password: str) -> None:
        dummy_verify = getattr(self.password_hasher, "dummy_verify", None)
        if dummy_verify is not None:
            await asyncio.to_thread(dummy_verify, password)


__all__: list[str] = [
    "CredentialVerifier",
    "VerifiedCredentials",
    "normalize_identifier",
]
