"""Password hashing utilities.

Provides bcrypt-based password hashing. Supports argon2id as an optional
stronger algorithm; verification detects the algorithm from the hash.
"""

from __future__ import annotations

from typing import Any, Literal, cast

_TIMING_PASSWORD = "disciplina-timing-equalizer"  # noqa: S105


class PasswordHasher:
    """Password hasher using bcrypt or argon2id.

    Implements the IPasswordVerifier port used by CredentialVerifier.

    Example:
        ```python
        hasher = PasswordHasher()

        hashed = hasher.hash("user_password")
        assert hasher.verify("user_password", hashed)
        ```
    """

    def __init__(
        self,
        *,
        algorithm: Literal["bcrypt", "argon2id"] = "bcrypt",
        rounds: int = 12,
    ) -> None:
        """Initialize the password hasher.

        Args:
            algorithm: Hashing algorithm for new hashes (default bcrypt).
            rounds: bcrypt rounds (cost factor, default 12).
        """
        self.algorithm = algorithm
        self.rounds = rounds
        self._bcrypt: Any = None
        self._argon2: Any = None
        self._dummy_hash: str | None = None

    def _get_bcrypt(self) -> Any:
        """Lazy import bcrypt."""
        if self._bcrypt is None:
            try:
                import bcrypt

                self._bcrypt = bcrypt
            except ImportError as e:
                raise ImportError(
                    "bcrypt is required for password hashing. "
                    "Install with: pip install bcrypt"
                ) from e
        return self._bcrypt

    def _get_argon2(self) -> Any:
        """Lazy import argon2."""
        if self._argon2 is None:
            try:
                from argon2 import PasswordHasher as Argon2Hasher

                self._argon2 = Argon2Hasher()
            except ImportError as e:
                raise ImportError(
                    "argon2-cffi is required for argon2id hashing. "
                    "Install with: pip install disciplina-identity[argon2]"
                ) from e
        return self._argon2

    def hash(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plaintext password.

        Returns:
            Hashed password string.
        """
        if self.algorithm == "argon2id":
            return cast("str", self._get_argon2().hash(password))
        bcrypt_module = self._get_bcrypt()
        salt = bcrypt_module.gensalt(rounds=self.rounds)
        return bcrypt_module.hashpw(password.encode(), salt).decode()  # type: ignore[no-any-return]

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash.

        Args:
            password: Plaintext password to verify.
            password_hash: The stored hash.

        Returns:
            True if password matches. Malformed hashes never match.
        """
        if password_hash.startswith("$argon2"):
            return self._verify_argon2id(password, password_hash)
        return self._verify_bcrypt(password, password_hash)

    def dummy_verify(self, password: str) -> bool:
        """Run a full verification against a throwaway hash.

        Used when the identifier is unknown so the response takes as long
        as a wrong-password check. Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(_TIMING_PASSWORD)
        self.verify(password, self._dummy_hash)
        return False

    def _verify_bcrypt(self, password: str, password_hash: str) -> bool:
        bcrypt_module = self._get_bcrypt()
        try:
            return cast(
                "bool",
                bcrypt_module.checkpw(password.encode(), password_hash.encode()),
            )
        except ValueError:
            # Invalid salt / malformed hash
            return False

    def _verify_argon2id(self, password: str, password_hash: str) -> bool:
        hasher = self._get_argon2()
        from argon2.exceptions import InvalidHashError, VerificationError

        try:
            return cast("bool", hasher.verify(password_hash, password))
        except (VerificationError, InvalidHashError):
            return False


__all__: list[str] = ["PasswordHasher"]
