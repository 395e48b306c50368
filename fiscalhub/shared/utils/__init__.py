"""Shared utilities: datetime."""

from fiscalhub.shared.utils.datetime import (
    ensure_utc,
    parse_timestamp,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "parse_timestamp",
]
