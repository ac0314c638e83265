"""In-memory login audit trail for testing and development."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..ports import IAuthAuditStore
from .events import AuthEventType

if TYPE_CHECKING:
    from datetime import datetime

    from .events import AuthAuditEvent

_FAILURE_TYPES = frozenset({AuthEventType.LOGIN_FAILED, AuthEventType.MFA_FAILED})


class InMemoryAuthAuditStore(IAuthAuditStore):
    """In-memory implementation of IAuthAuditStore.

    Keeps the login trail in arrival order. Failed credential checks have
    no principal and are only reachable through the type and failure
    queries.

    Note:
        Events are stored in memory and will be lost on restart.
        Not suitable for production use.

    Example:
        ```python
        store = InMemoryAuthAuditStore()
        await store.record(login_success_event("user-123", "email"))
        events = await store.get_events("user-123")
        last = store.last_login("user-123")
        ```
    """

    def __init__(self) -> None:
        """Initialize an empty audit trail."""
        self._events: list[AuthAuditEvent] = []
        self._by_principal: dict[str, list[AuthAuditEvent]] = {}

    async def record(self, event: AuthAuditEvent) -> None:
        """Append an event to the trail.

        Args:
            event: The login event to store.
        """
        self._events.append(event)
        if event.principal_id:
            self._by_principal.setdefault(event.principal_id, []).append(event)

    async def get_events(
        self,
        principal_id: str,
        *,
        event_types: list[AuthEventType] | None = None,
        limit: int = 100,
    ) -> list[AuthAuditEvent]:
        """Get a user's login events, most recent first.

        Args:
            principal_id: User ID.
            event_types: Only return these event types.
            limit: Maximum number of events.

        Returns:
            Matching events.
        """
        matching = [
            event
            for event in reversed(self._by_principal.get(principal_id, []))
            if not event_types or event.event_type in event_types
        ]
        return matching[:limit]

    def events_of_type(self, event_type: AuthEventType) -> list[AuthAuditEvent]:
        """Return all events of a type, oldest first."""
        return [event for event in self._events if event.event_type is event_type]

    def failures_since(self, since: datetime) -> list[AuthAuditEvent]:
        """Failed password and code checks at or after a point in time.

        Args:
            since: Aware UTC datetime lower bound.

        Returns:
            LOGIN_FAILED and MFA_FAILED events, most recent first.
        """
        return [
            event
            for event in reversed(self._events)
            if event.event_type in _FAILURE_TYPES and event.timestamp >= since
        ]

    def last_login(self, principal_id: str) -> AuthAuditEvent | None:
        """The user's most recent successful login, if any."""
        for event in reversed(self._by_principal.get(principal_id, [])):
            if event.event_type is AuthEventType.LOGIN_SUCCESS:
                return event
        return None

    def count(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        """Drop the whole trail. Useful between tests."""
        self._events.clear()
        self._by_principal.clear()


__all__: list[str] = ["InMemoryAuthAuditStore"]
