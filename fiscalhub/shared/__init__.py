"""Shared utilities: collection keys, feedback, telemetry and datetime helpers.

Used by application and infrastructure. No business logic.
"""

from fiscalhub.shared.keys import (
    accountants_key,
    clients_key,
    files_key,
    folders_key,
    permissions_key,
    site_users_key,
)
from fiscalhub.shared.utils import ensure_utc, parse_timestamp, utc_now

__all__ = [
    "accountants_key",
    "clients_key",
    "files_key",
    "folders_key",
    "permissions_key",
    "site_users_key",
    "ensure_utc",
    "parse_timestamp",
    "utc_now",
]
