"""FastAPI router exposing the login exchanges.

All identity failures are reported with generic messages: the client
cannot tell an unknown account from a wrong password, nor a wrong code
from an expired one. An expired password is the exception: it is only
reported after the password matched, with the user id so the client can
send the user to a password change.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...exceptions import (
    INVALID_CREDENTIALS_MESSAGE,
    INVALID_OR_EXPIRED_CODE_MESSAGE,
    PASSWORD_EXPIRED_MESSAGE,
    UNSUPPORTED_RESEND_MESSAGE,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    LoginAttemptNotFoundError,
    MfaSetupError,
    PasswordExpiredError,
    UnsupportedResendError,
)
from ...session import SessionCredential

if TYPE_CHECKING:
    from ...login.service import AuthenticationService

logger = logging.getLogger(__name__)

LOGIN_UNAVAILABLE_MESSAGE = "Login is not available for this account"


class LoginRequest(BaseModel):
    identifier: str
    password: str


class VerifyCodeRequest(BaseModel):
    pending_user_id: str
    code: str


class PendingLoginRequest(BaseModel):
    pending_user_id: str


class LoginResponse(BaseModel):
    second_factor_required: bool
    session: SessionCredential | None = None
    user: dict[str, Any] | None = None
    pending_user_id: str | None = None
    method: str | None = None


class VerifyCodeResponse(BaseModel):
    session: SessionCredential
    user: dict[str, Any]


class AckResponse(BaseModel):
    success: bool
    message: str | None = None


def create_login_router(
    service: AuthenticationService,
    *,
    prefix: str = "/auth",
) -> APIRouter:
    """Create the login router.

    Routes:
        - POST {prefix}/login
        - POST {prefix}/verify-mfa
        - POST {prefix}/resend-mfa
        - POST {prefix}/cancel-mfa

    Args:
        service: The login flow boundary.
        prefix: URL prefix.

    Returns:
        APIRouter to include in the application.
    """
    router = APIRouter(prefix=prefix, tags=["auth"])

    @router.post("/login", response_model=LoginResponse)
    async def login(payload: LoginRequest) -> LoginResponse:
        try:
            result = await service.submit_credentials(payload.identifier, payload.password)
        except InvalidCredentialsError as err:
            raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS_MESSAGE) from err
        except PasswordExpiredError as err:
            raise HTTPException(
                status_code=403,
                detail={
                    "message": PASSWORD_EXPIRED_MESSAGE,
                    "password_expired": True,
                    "user_id": err.user_id,
                },
            ) from err
        except MfaSetupError as err:
            logger.warning("Second factor misconfigured: %s", err)
            raise HTTPException(status_code=409, detail=LOGIN_UNAVAILABLE_MESSAGE) from err

        return LoginResponse(
            second_factor_required=result.second_factor_required,
            session=result.session,
            user=result.user,
            pending_user_id=result.pending_user_id,
            method=result.method.value if result.method else None,
        )

    @router.post("/verify-mfa", response_model=VerifyCodeResponse)
    async def verify_mfa(payload: VerifyCodeRequest) -> VerifyCodeResponse:
        try:
            result = await service.submit_code(payload.pending_user_id, payload.code)
        except InvalidOrExpiredCodeError as err:
            raise HTTPException(
                status_code=400, detail=INVALID_OR_EXPIRED_CODE_MESSAGE
            ) from err

        return VerifyCodeResponse(session=result.session, user=result.user)

    @router.post("/resend-mfa", response_model=AckResponse)
    async def resend_mfa(payload: PendingLoginRequest) -> AckResponse:
        try:
            await service.resend(payload.pending_user_id)
        except UnsupportedResendError as err:
            raise HTTPException(status_code=400, detail=UNSUPPORTED_RESEND_MESSAGE) from err
        except LoginAttemptNotFoundError as err:
            raise HTTPException(
                status_code=400, detail=INVALID_OR_EXPIRED_CODE_MESSAGE
            ) from err

        return AckResponse(success=True, message="Code resent")

    @router.post("/cancel-mfa", response_model=AckResponse)
    async def cancel_mfa(payload: PendingLoginRequest) -> AckResponse:
        await service.cancel(payload.pending_user_id)
        return AckResponse(success=True)

    return router


__all__: list[str] = [
    "create_login_router",
    "LoginRequest",
    "VerifyCodeRequest",
    "PendingLoginRequest",
    "LoginResponse",
    "VerifyCodeResponse",
    "AckResponse",
]
