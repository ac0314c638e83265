"""Login request/response boundary.

AuthenticationService exposes the exchanges the surrounding application
calls: submit credentials, submit the second-factor code, resend the
emailed code and cancel. In-flight attempts are kept in process memory,
one per pending user id; a new challenged login for the same user
replaces the previous attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ..exceptions import (
    InvalidOrExpiredCodeError,
    LoginAttemptNotFoundError,
    LoginStateError,
)
from ..mfa.otp import utc_now
from ..observability.metrics import LoginMetrics
from .state_machine import LoginState, LoginStateMachine

if TYPE_CHECKING:
    from ..db.verifier import CredentialVerifier
    from ..mfa.challenge import SecondFactorChallengeIssuer
    from ..mfa.totp import TotpValidator
    from ..ports import IAuthAuditStore, SecondFactorMode
    from ..session import SessionCredential, SessionIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialsResult:
    """Outcome of a successful credential submission.

    Either ``session`` and ``user`` are set (no second factor), or
    ``pending_user_id`` and ``method`` are (second factor required).
    """

    second_factor_required: bool
    session: SessionCredential | None = None
    user: dict[str, Any] | None = None
    pending_user_id: str | None = None
    method: SecondFactorMode | None = None


@dataclass(frozen=True)
class AuthenticatedResult:
    """Outcome of a successful second-factor submission."""

    session: SessionCredential
    user: dict[str, Any]


@dataclass(frozen=True)
class ResendResult:
    """Acknowledgement of a resend request."""

    success: bool
    expires_at: datetime | None = None


class AuthenticationService:
    """Entry point for the login flow.

    Example:
        ```python
        service = create_authentication_service(
            user_repository=repo,
            session_config=SessionConfig(secret_key=secret),
            delivery_hook=MailHook(),
        )

        result = await service.submit_credentials("alice@school.edu", "secret")
        if result.second_factor_required:
            done = await service.submit_code(result.pending_user_id, "123456")
        ```
    """

    def __init__(
        self,
        *,
        credential_verifier: CredentialVerifier,
        challenge_issuer: SecondFactorChallengeIssuer,
        totp_validator: TotpValidator,
        session_issuer: SessionIssuer,
        audit_store: IAuthAuditStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.credential_verifier = credential_verifier
        self.challenge_issuer = challenge_issuer
        self.totp_validator = totp_validator
        self.session_issuer = session_issuer
        self.audit_store = audit_store
        self._clock = clock or utc_now
        self._attempts: dict[str, LoginStateMachine] = {}

    def new_machine(self) -> LoginStateMachine:
        """Create a state machine wired to this service's collaborators."""
        return LoginStateMachine(
            credential_verifier=self.credential_verifier,
            challenge_issuer=self.challenge_issuer,
            totp_validator=self.totp_validator,
            session_issuer=self.session_issuer,
            audit_store=self.audit_store,
            clock=self._clock,
        )

    def has_pending(self, user_id: str) -> bool:
        """Whether a second-factor step is outstanding for a user."""
        return user_id in self._attempts

    async def submit_credentials(
        self, identifier: str, password: str
    ) -> CredentialsResult:
        """Check credentials and start the second factor if one is configured.

        Args:
            identifier: Login identifier (email).
            password: Plaintext password.

        Returns:
            CredentialsResult.

        Raises:
            InvalidCredentialsError: Credentials rejected.
            PasswordExpiredError: Correct password that must be changed first.
        """
        machine = self.new_machine()
        with LoginMetrics.operation("submit_credentials"):
            state = await machine.submit(identifier, password)

        if state is LoginState.AUTHENTICATED:
            session, user = machine.session, machine.user
            if session is None or user is None:
                raise LoginStateError(machine.state.value, "read session")
            return CredentialsResult(
                second_factor_required=False,
                session=session,
                user=user.public_data(),
            )

        context = machine.context
        if context is None:
            raise LoginStateError(machine.state.value, "read challenge")
        replaced = self._attempts.get(context.user_id)
        self._attempts[context.user_id] = machine
        if replaced is not None:
            logger.debug("Replaced in-flight login for user %s", context.user_id)

        return CredentialsResult(
            second_factor_required=True,
            pending_user_id=context.user_id,
            method=context.mode,
        )

    async def submit_code(self, pending_user_id: str, code: str) -> AuthenticatedResult:
        """Complete a login with the second-factor code.

        Args:
            pending_user_id: User id returned by submit_credentials.
            code: TOTP or emailed code.

        Returns:
            AuthenticatedResult with the session credential.

        Raises:
            InvalidOrExpiredCodeError: Wrong, reused or expired code, or no
                login pending for the user.
        """
        machine = self._attempts.get(pending_user_id)
        if machine is None:
            raise InvalidOrExpiredCodeError()

        try:
            with LoginMetrics.operation("submit_code"):
                session = await machine.submit_code(code)
        except LoginStateError as e:
            # Another request already completed or cancelled this attempt
            raise InvalidOrExpiredCodeError() from e

        if self._attempts.get(pending_user_id) is machine:
            del self._attempts[pending_user_id]

        user = machine.user
        if user is None:
            raise LoginStateError(machine.state.value, "read user")
        return AuthenticatedResult(session=session, user=user.public_data())

    async def resend(self, pending_user_id: str) -> ResendResult:
        """Send a fresh emailed code, invalidating the previous one.

        Args:
            pending_user_id: User id returned by submit_credentials.

        Returns:
            ResendResult acknowledgement.

        Raises:
            UnsupportedResendError: The pending factor is TOTP.
            LoginAttemptNotFoundError: No login pending for the user.
        """
        machine = self._attempts.get(pending_user_id)
        if machine is None:
            raise LoginAttemptNotFoundError("No login pending for this user")

        try:
            with LoginMetrics.operation("resend"):
                challenge = await machine.resend()
        except LoginStateError as e:
            raise LoginAttemptNotFoundError("No login pending for this user") from e

        return ResendResult(success=True, expires_at=challenge.expires_at)

    async def cancel(self, pending_user_id: str) -> None:
        """Abandon a pending login. Unknown ids are ignored.

        Args:
            pending_user_id: User id returned by submit_credentials.
        """
        machine = self._attempts.pop(pending_user_id, None)
        if machine is None:
            return
        try:
            await machine.cancel()
        except LoginStateError:
            logger.debug("Login for user %s already finished", pending_user_id)


__all__: list[str] = [
    "AuthenticationService",
    "AuthenticatedResult",
    "CredentialsResult",
    "ResendResult",
]
