"""Collection key builders. Single place for per-view cache key format.

Key components (client_id, folder_id) must not contain COLLECTION_KEY_SEP
to avoid ambiguous or colliding keys.
"""

from fiscalhub.core.constants import (
    COLLECTION_KEY_SEP,
    KEY_ACCOUNTANTS,
    KEY_CLIENTS,
    KEY_FILES,
    KEY_FOLDERS,
    KEY_PERMISSIONS,
    KEY_SITE_USERS,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the key separator."""
    if not value:
        raise ValueError(f"Collection key component {name!r} must be non-empty")
    if COLLECTION_KEY_SEP in value:
        raise ValueError(
            f"Collection key component {name!r} must not contain separator {COLLECTION_KEY_SEP!r}"
        )


def clients_key() -> str:
    return KEY_CLIENTS


def accountants_key() -> str:
    return KEY_ACCOUNTANTS


def site_users_key() -> str:
    return KEY_SITE_USERS


def permissions_key() -> str:
    return KEY_PERMISSIONS


def folders_key(client_id: str) -> str:
    """Key for the folders of one client."""
    _validate_key_component(client_id, "client_id")
    return f"{KEY_FOLDERS}{COLLECTION_KEY_SEP}{client_id}"


def files_key(folder_id: str) -> str:
    """Key for the files of one folder."""
    _validate_key_component(folder_id, "folder_id")
    return f"{KEY_FILES}{COLLECTION_KEY_SEP}{folder_id}"
