"""Login flow: state machine and request/response boundary."""

from .service import (
    AuthenticatedResult,
    AuthenticationService,
    CredentialsResult,
    ResendResult,
)
from .state_machine import LoginAttemptContext, LoginState, LoginStateMachine

__all__: list[str] = [
    "AuthenticationService",
    "AuthenticatedResult",
    "CredentialsResult",
    "ResendResult",
    "LoginAttemptContext",
    "LoginState",
    "LoginStateMachine",
]
