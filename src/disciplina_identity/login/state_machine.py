"""Login state machine.

Drives one interactive login attempt from credentials to an issued
session, independent of any presentation layer:

    IDLE --submit--> CREDENTIALS_SUBMITTED --> AUTHENTICATED
                                           --> SECOND_FACTOR_CHALLENGED
                                           --> FAILED
    SECOND_FACTOR_CHALLENGED --submit_code--> AUTHENTICATED
                                          --> SECOND_FACTOR_FAILED
    SECOND_FACTOR_CHALLENGED --resend--> SECOND_FACTOR_CHALLENGED
    SECOND_FACTOR_CHALLENGED --cancel--> IDLE

SECOND_FACTOR_FAILED accepts the same transitions as
SECOND_FACTOR_CHALLENGED so the user can retry without re-entering the
password. FAILED is terminal for the attempt; a new submit starts over.
Any error raised while credentials are being checked ends in FAILED.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from ..audit.events import (
    login_cancelled_event,
    login_failed_event,
    login_success_event,
    mfa_challenged_event,
    mfa_failed_event,
    mfa_verified_event,
    session_created_event,
)
from ..exceptions import (
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    LoginStateError,
    MfaSetupError,
    PasswordExpiredError,
)
from ..mfa.otp import utc_now
from ..observability.metrics import LoginMetrics
from ..ports import SecondFactorMode, UserCredentials

if TYPE_CHECKING:
    from ..audit.events import AuthAuditEvent
    from ..db.verifier import CredentialVerifier
    from ..mfa.challenge import SecondFactorChallengeIssuer
    from ..mfa.ports import ChallengeDescriptor
    from ..mfa.totp import TotpValidator
    from ..ports import IAuthAuditStore
    from ..session import SessionCredential, SessionIssuer

logger = logging.getLogger(__name__)


class LoginState(str, Enum):
    """States of a login attempt."""

    IDLE = "idle"
    CREDENTIALS_SUBMITTED = "credentials_submitted"
    AUTHENTICATED = "authenticated"
    SECOND_FACTOR_CHALLENGED = "second_factor_challenged"
    SECOND_FACTOR_FAILED = "second_factor_failed"
    FAILED = "failed"


_CHALLENGE_STATES = frozenset(
    {LoginState.SECOND_FACTOR_CHALLENGED, LoginState.SECOND_FACTOR_FAILED}
)
_SUBMIT_STATES = frozenset({LoginState.IDLE, LoginState.FAILED})


@dataclass(frozen=True)
class LoginAttemptContext:
    """What the flow remembers between the password and the code step.

    Attributes:
        user_id: Resolved user identifier.
        mode: Second factor the user must pass.
        user: Credential record read at the password step.
        challenge: The challenge currently outstanding.
        started_at: When the password step succeeded.
    """

    user_id: str
    mode: SecondFactorMode
    user: UserCredentials
    challenge: ChallengeDescriptor
    started_at: datetime


class LoginStateMachine:
    """Finite-state machine for one login attempt.

    Transitions are serialized per machine. Failures update the state
    first and then propagate the identity error to the caller.

    Example:
        ```python
        machine = LoginStateMachine(
            credential_verifier=verifier,
            challenge_issuer=challenge_issuer,
            totp_validator=TotpValidator(),
            session_issuer=session_issuer,
        )
        state = await machine.submit("alice@school.edu", "secret")
        if state is LoginState.SECOND_FACTOR_CHALLENGED:
            session = await machine.submit_code("123456")
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

        self._state = LoginState.IDLE
        self._context: LoginAttemptContext | None = None
        self._session: SessionCredential | None = None
        self._user: UserCredentials | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> LoginState:
        return self._state

    @property
    def context(self) -> LoginAttemptContext | None:
        """Attempt context while a second factor is outstanding."""
        return self._context

    @property
    def session(self) -> SessionCredential | None:
        """Session credential once AUTHENTICATED."""
        return self._session

    @property
    def user(self) -> UserCredentials | None:
        """Authenticated user once AUTHENTICATED."""
        return self._user

    def _require(self, action: str, allowed: frozenset[LoginState]) -> None:
        if self._state not in allowed:
            raise LoginStateError(self._state.value, action)

    async def _audit(self, event: AuthAuditEvent) -> None:
        if self.audit_store is not None:
            await self.audit_store.record(event)

    # ═══════════════════════════════════════════════════════════
    # TRANSITIONS
    # ═══════════════════════════════════════════════════════════

    async def submit(self, identifier: str, password: str) -> LoginState:
        """Submit identifier and password.

        Any error leaves the machine in FAILED, from which a new submit
        may start over.

        Args:
            identifier: Login identifier (email).
            password: Plaintext password.

        Returns:
            AUTHENTICATED or SECOND_FACTOR_CHALLENGED.

        Raises:
            InvalidCredentialsError: Credentials rejected; state is FAILED.
            PasswordExpiredError: Correct password that must be changed
                first; state is FAILED.
            MfaSetupError: The user's second factor is misconfigured;
                state is FAILED.
            LoginStateError: Not in IDLE or FAILED.
        """
        async with self._lock:
            self._require("submit credentials", _SUBMIT_STATES)
            self._state = LoginState.CREDENTIALS_SUBMITTED
            self._context = None
            self._session = None
            self._user = None

            try:
                return await self._submit(identifier, password)
            except Exception:
                if self._state is LoginState.CREDENTIALS_SUBMITTED:
                    self._state = LoginState.FAILED
                    LoginMetrics.record_result("login", result="error")
                    logger.warning("Login attempt aborted by an unexpected error")
                raise

    async def submit_code(self, code: str) -> SessionCredential:
        """Submit the second-factor code.

        Args:
            code: TOTP or emailed code.

        Returns:
            The issued session credential; state is AUTHENTICATED.

        Raises:
            InvalidOrExpiredCodeError: Code rejected; state is
                SECOND_FACTOR_FAILED and the attempt can be retried.
            LoginStateError: No challenge outstanding.
        """
        async with self._lock:
            context = self._require_context("submit code")

            if not await self._check_code(context, code):
                self._state = LoginState.SECOND_FACTOR_FAILED
                LoginMetrics.record_result("mfa", method=context.mode.value, result="failure")
                await self._audit(mfa_failed_event(context.user_id, context.mode.value))
                logger.info(
                    "Second factor (%s) rejected for user %s",
                    context.mode.value,
                    context.user_id,
                )
                raise InvalidOrExpiredCodeError()

            await self._audit(mfa_verified_event(context.user_id, context.mode.value))
            return await self._authenticate(context.user, context.mode)

    async def resend(self) -> ChallengeDescriptor:
        """Request a fresh emailed code.

        Returns:
            Descriptor of the new challenge; state is SECOND_FACTOR_CHALLENGED.

        Raises:
            UnsupportedResendError: The factor is TOTP; state is unchanged.
            LoginStateError: No challenge outstanding.
        """
        async with self._lock:
            context = self._require_context("resend code")

            challenge = await self.challenge_issuer.resend(
                context.user_id, context.mode, email=context.user.email
            )
            self._context = replace(context, challenge=challenge)
            self._state = LoginState.SECOND_FACTOR_CHALLENGED
            LoginMetrics.record_result("resend", method=context.mode.value)
            await self._audit(
                mfa_challenged_event(context.user_id, context.mode.value, resent=True)
            )
            logger.info("Email code resent for user %s", context.user_id)
            return challenge

    async def cancel(self) -> None:
        """Abandon the second-factor step and return to IDLE.

        The outstanding emailed code, if any, is left to expire on its own.

        Raises:
            LoginStateError: No challenge outstanding.
        """
        async with self._lock:
            context = self._require_context("cancel")

            self._context = None
            self._state = LoginState.IDLE
            LoginMetrics.record_result("cancel", method=context.mode.value)
            await self._audit(login_cancelled_event(context.user_id, context.mode.value))
            logger.info("Login cancelled for user %s", context.user_id)

    # ═══════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════

    def _require_context(self, action: str) -> LoginAttemptContext:
        self._require(action, _CHALLENGE_STATES)
        if self._context is None:
            raise LoginStateError(self._state.value, action)
        return self._context

    async def _submit(self, identifier: str, password: str) -> LoginState:
        try:
            verified = await self.credential_verifier.verify(identifier, password)
        except InvalidCredentialsError:
            self._state = LoginState.FAILED
            LoginMetrics.record_result("login", result="failure")
            await self._audit(login_failed_event())
            raise
        except PasswordExpiredError as e:
            self._state = LoginState.FAILED
            LoginMetrics.record_result("login", result="password_expired")
            await self._audit(
                login_failed_event("PASSWORD_EXPIRED", principal_id=e.user_id)
            )
            raise

        user = verified.user
        mode = verified.second_factor_mode

        if mode is SecondFactorMode.NONE:
            await self._authenticate(user, mode)
            return self._state

        try:
            challenge = await self._issue_challenge(user, mode)
        except Exception:
            self._state = LoginState.FAILED
            LoginMetrics.record_result("challenge", method=mode.value, result="failure")
            raise

        self._context = LoginAttemptContext(
            user_id=user.user_id,
            mode=mode,
            user=user,
            challenge=challenge,
            started_at=self._clock(),
        )
        self._state = LoginState.SECOND_FACTOR_CHALLENGED
        LoginMetrics.record_result("challenge", method=mode.value)
        await self._audit(mfa_challenged_event(user.user_id, mode.value))
        logger.info(
            "Second factor (%s) required for user %s", mode.value, user.user_id
        )
        return self._state

    async def _issue_challenge(
        self, user: UserCredentials, mode: SecondFactorMode
    ) -> ChallengeDescriptor:
        if mode is SecondFactorMode.TOTP and not user.totp_secret:
            raise MfaSetupError(f"TOTP is not enabled for user {user.user_id}")
        return await self.challenge_issuer.issue_challenge(
            user.user_id, mode, email=user.email
        )

    async def _check_code(self, context: LoginAttemptContext, code: str) -> bool:
        if context.mode is SecondFactorMode.TOTP:
            secret = context.user.totp_secret or ""
            return self.totp_validator.validate(secret, code, self._clock())
        return await self.challenge_issuer.otp_store.consume(context.user_id, code)

    async def _authenticate(
        self, user: UserCredentials, mode: SecondFactorMode
    ) -> SessionCredential:
        session = self.session_issuer.issue(user.user_id, user.role)
        self._session = session
        self._user = user
        self._context = None
        self._state = LoginState.AUTHENTICATED

        LoginMetrics.record_result("login", method=mode.value)
        await self._audit(login_success_event(user.user_id, mode.value))
        await self._audit(
            session_created_event(
                user.user_id, role=session.role, expires_at=session.expires_at
            )
        )
        logger.info("User %s authenticated (second factor: %s)", user.user_id, mode.value)
        return session


__all__: list[str] = [
    "LoginState",
    "LoginAttemptContext",
    "LoginStateMachine",
]
