"""Login metrics helpers for Prometheus integration.

Metrics are registered lazily on first use. Without prometheus_client
installed every helper is a no-op.

Usage:
    ```python
    from disciplina_identity.observability import LoginMetrics

    with LoginMetrics.operation("submit_credentials"):
        result = await service.submit_credentials(identifier, password)

    LoginMetrics.record_result("login", method="email", result="success")
    ```
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Generator


class _LoginMetricsRegistry:
    """Registry for login Prometheus metrics."""

    def __init__(self) -> None:
        self._histogram: Any = None
        self._counter: Any = None
        self._initialized = False

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        try:
            from prometheus_client import Counter, Histogram

            self._histogram = Histogram(
                "login_operation_duration_seconds",
                "Login operation duration",
                ["operation"],
            )
            self._counter = Counter(
                "login_operations_total",
                "Login operation count",
                ["operation", "method", "result"],
            )
        except ImportError:
            _logger.debug("prometheus_client not available, metrics disabled")

        self._initialized = True

    @property
    def histogram(self) -> Any:
        self._ensure_initialized()
        return self._histogram

    @property
    def counter(self) -> Any:
        self._ensure_initialized()
        return self._counter


# Global registry instance
_registry = _LoginMetricsRegistry()


class LoginMetrics:
    """Helpers for recording login flow metrics."""

    @staticmethod
    @contextmanager
    def operation(operation: str) -> Generator[None, None, None]:
        """Time a login operation.

        Args:
            operation: Operation name (submit_credentials, submit_code, resend).
        """
        start = time.monotonic()
        try:
            yield
        finally:
            histogram = _registry.histogram
            if histogram is not None:
                histogram.labels(operation=operation).observe(time.monotonic() - start)

    @staticmethod
    def record_result(
        operation: str,
        *,
        method: str = "unknown",
        result: str = "success",
    ) -> None:
        """Count the outcome of a login operation.

        Args:
            operation: Operation name (login, challenge, mfa, resend, cancel).
            method: Second-factor mode involved.
            result: Outcome label (success, failure).
        """
        counter = _registry.counter
        if counter is not None:
            counter.labels(operation=operation, method=method, result=result).inc()


__all__: list[str] = ["LoginMetrics"]
