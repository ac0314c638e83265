"""FastAPI integration for disciplina-identity."""

from .dependencies import extract_bearer_token, require_role, session_dependency
from .router import create_login_router

__all__: list[str] = [
    # Router
    "create_login_router",
    # Dependencies
    "extract_bearer_token",
    "session_dependency",
    "require_role",
]
