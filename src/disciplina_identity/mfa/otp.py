"""Emailed one-time codes: generation and the in-memory code store.

Codes are six decimal digits drawn uniformly from [100000, 999999], so a
leading zero cannot occur. The store keeps at most one live code per user,
checks expiry lazily on consume, and never schedules timers.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .ports import IOtpStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OtpConfig:
    """Emailed code configuration.

    Attributes:
        code_min: Smallest code value (inclusive).
        code_max: Largest code value (inclusive).
        ttl_seconds: Lifetime of a code from issuance.
    """

    code_min: int = 100000
    code_max: int = 999999
    ttl_seconds: int = 300  # 5 minutes

    def __post_init__(self) -> None:
        if self.code_min < 0 or self.code_max < self.code_min:
            raise ValueError("code_min must be non-negative and <= code_max")
        if len(str(self.code_min)) != len(str(self.code_max)):
            raise ValueError("code_min and code_max must have the same digit count")
        if self.ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")


def generate_email_code(config: OtpConfig | None = None) -> str:
    """Generate a numeric one-time code.

    Args:
        config: Code range (default 100000-999999).

    Returns:
        The code as a string of digits.
    """
    config = config or OtpConfig()
    span = config.code_max - config.code_min + 1
    return str(config.code_min + secrets.randbelow(span))


@dataclass
class _KeyLock:
    """Lock for one user key plus the number of tasks holding or awaiting it."""

    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    ref_count: int = 0


class InMemoryOtpStore(IOtpStore):
    """Process-local one-time code store.

    Entries vanish on restart and are not shared between processes.
    Each operation runs under a per-user lock, so two racing consume()
    calls for one valid code produce exactly one success, and a put()
    racing a consume() leaves either the old or the new code usable.

    Example:
        ```python
        store = InMemoryOtpStore()
        await store.put("user-1", "123456", utc_now() + timedelta(minutes=5))

        assert await store.consume("user-1", "123456")
        assert not await store.consume("user-1", "123456")  # single use
        ```
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        """Initialize the store.

        Args:
            clock: Returns the current aware UTC datetime (default wall clock).
        """
        self._clock = clock or utc_now
        self._entries: dict[str, tuple[str, datetime]] = {}
        self._locks: dict[str, _KeyLock] = {}
        self._global_lock = asyncio.Lock()

    @asynccontextmanager
    async def _locked(self, user_id: str) -> AsyncIterator[None]:
        async with self._global_lock:
            key_lock = self._locks.get(user_id)
            if key_lock is None:
                key_lock = _KeyLock()
                self._locks[user_id] = key_lock
            key_lock.ref_count += 1

        try:
            async with key_lock.lock:
                yield
        finally:
            async with self._global_lock:
                key_lock.ref_count -= 1
                if key_lock.ref_count <= 0:
                    self._locks.pop(user_id, None)

    async def put(self, user_id: str, code: str, expires_at: datetime) -> None:
        async with self._locked(user_id):
            superseded = user_id in self._entries
            self._entries[user_id] = (code, expires_at)
        logger.debug(
            "Stored one-time code for user %s (superseded=%s)", user_id, superseded
        )

    async def consume(self, user_id: str, submitted_code: str) -> bool:
        async with self._locked(user_id):
            entry = self._entries.get(user_id)
            if entry is None:
                return False

            stored_code, expires_at = entry

            if self._clock() > expires_at:
                del self._entries[user_id]
                logger.debug("One-time code for user %s expired", user_id)
                return False

            if secrets.compare_digest(stored_code.encode(), submitted_code.encode()):
                # Single use
                del self._entries[user_id]
                return True

            return False

    async def delete(self, user_id: str) -> None:
        async with self._locked(user_id):
            self._entries.pop(user_id, None)


__all__: list[str] = [
    "OtpConfig",
    "InMemoryOtpStore",
    "generate_email_code",
    "utc_now",
]
