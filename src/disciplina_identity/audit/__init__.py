"""Audit module for login events.

Provides audit event types, factory functions and an in-memory store.
"""

from __future__ import annotations

from .events import (
    AuthAuditEvent,
    AuthEventType,
    login_cancelled_event,
    login_failed_event,
    login_success_event,
    mfa_challenged_event,
    mfa_failed_event,
    mfa_verified_event,
    session_created_event,
)
from .memory import InMemoryAuthAuditStore

__all__: list[str] = [
    # Event types and classes
    "AuthEventType",
    "AuthAuditEvent",
    # Event factory functions
    "login_success_event",
    "login_failed_event",
    "login_cancelled_event",
    "mfa_challenged_event",
    "mfa_verified_event",
    "mfa_failed_event",
    "session_created_event",
    # Store implementations
    "InMemoryAuthAuditStore",
]
