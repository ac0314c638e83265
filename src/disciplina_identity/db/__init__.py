"""Password verification module for disciplina-identity."""

from .hasher import PasswordHasher
from .verifier import CredentialVerifier, VerifiedCredentials, normalize_identifier

__all__: list[str] = [
    "CredentialVerifier",
    "PasswordHasher",
    "VerifiedCredentials",
    "normalize_identifier",
]
