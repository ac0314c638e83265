"""Session credential issuing and verification.

A session credential is a signed JWT (HS256 by default, via joserfc)
carrying the user id, role, issuance time and expiry. It is stateless:
any holder of a correctly signed, unexpired token is authenticated. No
store is consulted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from joserfc import jwt
from joserfc.errors import JoseError
from joserfc.jwk import OctKey
from pydantic import BaseModel, ConfigDict

from .exceptions import ExpiredTokenError, InvalidTokenError

logger = logging.getLogger(__name__)

_MIN_SECRET_LENGTH = 32


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionConfig:
    """Session credential configuration.

    Attributes:
        secret_key: HMAC signing key (at least 32 characters).
        ttl_seconds: Credential lifetime (default 7 days).
        algorithm: JWS algorithm (HS256, HS384 or HS512).
        issuer: Optional ``iss`` claim, checked on resolve when set.
    """

    secret_key: str
    ttl_seconds: int = 604800  # 7 days
    algorithm: str = "HS256"
    issuer: str | None = None

    def __post_init__(self) -> None:
        if len(self.secret_key) < _MIN_SECRET_LENGTH:
            raise ValueError(
                f"secret_key must be at least {_MIN_SECRET_LENGTH} characters"
            )
        if self.ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if self.algorithm not in {"HS256", "HS384", "HS512"}:
            raise ValueError(f"Unsupported algorithm: {self.algorithm}")


class SessionCredential(BaseModel):
    """Immutable session credential issued after successful login.

    Attributes:
        token: Signed JWT to present as ``Authorization: Bearer <token>``.
        user_id: Authenticated user.
        role: User role at issuance.
        issued_at: Issuance time (UTC, second precision).
        expires_at: Expiry time (UTC, second precision).
        token_type: Always "Bearer".
    """

    model_config = ConfigDict(frozen=True)

    token: str
    user_id: str
    role: str
    issued_at: datetime
    expires_at: datetime
    token_type: str = "Bearer"  # noqa: S105

    @property
    def expires_in(self) -> int:
        """Lifetime in seconds from issuance."""
        return int((self.expires_at - self.issued_at).total_seconds())


class SessionIssuer:
    """Mints and verifies session credentials.

    Example:
        ```python
        issuer = SessionIssuer(SessionConfig(secret_key=settings.jwt_secret))

        credential = issuer.issue("user-1", "teacher")
        # later, on each request
        credential = issuer.resolve(bearer_token)
        ```
    """

    def __init__(
        self,
        config: SessionConfig,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the session issuer.

        Args:
            config: Signing key, lifetime and algorithm.
            clock: Returns the current aware UTC datetime.
        """
        self.config = config
        self._clock = clock or _utc_now
        self._key = OctKey.import_key(config.secret_key)

    def issue(self, user_id: str, role: str) -> SessionCredential:
        """Issue a session credential.

        Args:
            user_id: Authenticated user.
            role: User role.

        Returns:
            SessionCredential with a signed token.

        Raises:
            ValueError: If user_id or role is empty.
        """
        if not user_id or not isinstance(user_id, str):
            raise ValueError("user_id must be a non-empty string")
        if not role or not isinstance(role, str):
            raise ValueError("role must be a non-empty string")

        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + timedelta(seconds=self.config.ttl_seconds)

        claims: dict[str, Any] = {
            "sub": user_id,
            "role": role,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        if self.config.issuer:
            claims["iss"] = self.config.issuer

        token = jwt.encode(
            {"alg": self.config.algorithm},
            claims,
            self._key,
            algorithms=[self.config.algorithm],
        )

        return SessionCredential(
            token=token,
            user_id=user_id,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def resolve(self, token: str) -> SessionCredential:
        """Verify a token and rebuild its credential.

        Args:
            token: The signed JWT.

        Returns:
            SessionCredential for the token.

        Raises:
            InvalidTokenError: Bad signature, malformed token, missing
                claims or wrong issuer.
            ExpiredTokenError: Token is past its expiry.
        """
        if not token:
            raise InvalidTokenError("Session token is required")

        try:
            decoded = jwt.decode(token, self._key, algorithms=[self.config.algorithm])
        except (JoseError, ValueError) as e:
            raise InvalidTokenError(str(e)) from e

        claims = decoded.claims
        try:
            user_id = str(claims["sub"])
            role = str(claims["role"])
            issued_at = datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError("Session token is missing required claims") from e

        if self.config.issuer and claims.get("iss") != self.config.issuer:
            raise InvalidTokenError("Session token issuer mismatch")

        if self._clock() >= expires_at:
            raise ExpiredTokenError("Session has expired")

        return SessionCredential(
            token=token,
            user_id=user_id,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )


__all__: list[str] = [
    "SessionConfig",
    "SessionCredential",
    "SessionIssuer",
]
