"""FastAPI dependencies for session credentials.

Resolves ``Authorization: Bearer <token>`` into a SessionCredential.
Validity is decided by the token's signature and expiry alone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import Depends, HTTPException, Request

from ...exceptions import AuthenticationError
from ...session import SessionCredential

if TYPE_CHECKING:
    from collections.abc import Callable

    from ...session import SessionIssuer


def extract_bearer_token(headers: Any) -> str | None:
    """Extract Bearer token from the Authorization header.

    Args:
        headers: HTTP headers mapping.

    Returns:
        Token string or None if not found.
    """
    auth_header = headers.get("Authorization") or headers.get("authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2:
        return None

    scheme, token = parts
    if scheme.lower() != "bearer":
        return None

    return token


def session_dependency(issuer: SessionIssuer) -> Callable[[Request], SessionCredential]:
    """Create a dependency returning the caller's session credential or 401.

    Args:
        issuer: SessionIssuer used to verify tokens.

    Returns:
        Dependency function.

    Example:
        ```python
        get_session = session_dependency(session_issuer)

        @router.get("/me")
        def get_me(session = Depends(get_session)):
            return {"user_id": session.user_id}
        ```
    """

    def dependency(request: Request) -> SessionCredential:
        token = extract_bearer_token(request.headers)
        if token is None:
            raise HTTPException(
                status_code=401,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )
        try:
            return issuer.resolve(token)
        except AuthenticationError as err:
            raise HTTPException(
                status_code=401,
                detail="Invalid or expired session",
                headers={"WWW-Authenticate": "Bearer"},
            ) from err

    return dependency


def require_role(
    issuer: SessionIssuer, *roles: str
) -> Callable[[SessionCredential], SessionCredential]:
    """Create a dependency that requires one of the given roles.

    Args:
        issuer: SessionIssuer used to verify tokens.
        *roles: Accepted role names.

    Returns:
        Dependency function.

    Example:
        ```python
        @router.delete("/students/{id}")
        def delete_student(session = Depends(require_role(issuer, "admin"))):
            ...
        ```
    """
    get_session = session_dependency(issuer)

    def dependency(
        session: SessionCredential = Depends(get_session),  # noqa: B008
    ) -> SessionCredential:
        if session.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"One of these roles required: {', '.join(roles)}",
            )
        return session

    return dependency


__all__: list[str] = [
    "extract_bearer_token",
    "session_dependency",
    "require_role",
]
