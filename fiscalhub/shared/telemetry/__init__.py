"""Telemetry helpers (logging)."""

from fiscalhub.shared.telemetry.logging import setup_logging

__all__ = [
    "setup_logging",
]
