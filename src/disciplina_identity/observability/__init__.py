"""Observability helpers for the login flow."""

from .metrics import LoginMetrics

__all__: list[str] = ["LoginMetrics"]
