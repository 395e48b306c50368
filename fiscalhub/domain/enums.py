"""Domain enumerations for fiscalhub.

Enums represent fixed sets of domain values: raw role names, the derived
effective role, protected actions, remote error classes and change kinds.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class RoleName(_ValuesMixin, str, Enum):
    """Role stored in a RoleAssignment row."""

    ADMIN = "admin"
    USER = "user"
    ACCOUNTANT = "accountant"


class EffectiveRole(_ValuesMixin, str, Enum):
    """Single role used for authorization decisions (derived per session)."""

    ADMIN = "admin"
    USER = "user"
    ACCOUNTANT = "accountant"
    NONE = "none"


class Action(_ValuesMixin, str, Enum):
    """Protected actions gated by CapabilityPolicy."""

    VIEW_CLIENTS = "view_clients"
    EDIT_CLIENTS = "edit_clients"
    VIEW_ACCOUNTANTS = "view_accountants"
    EDIT_ACCOUNTANTS = "edit_accountants"
    MANAGE_FOLDERS = "manage_folders"
    UPLOAD_FILES = "upload_files"
    DELETE_FILES = "delete_files"
    VIEW_DOCUMENTS = "view_documents"
    DOWNLOAD_FILES = "download_files"
    MANAGE_ASSIGNMENTS = "manage_assignments"
    MANAGE_USERS = "manage_users"
    MANAGE_PERMISSIONS = "manage_permissions"


class ErrorKind(_ValuesMixin, str, Enum):
    """Classification of a remote failure.

    FORBIDDEN, NOT_FOUND and CONFLICT are never retried; TRANSIENT is.
    """

    FORBIDDEN = "forbidden"
    NOT_FOUND = "not-found"
    CONFLICT = "duplicate"
    TRANSIENT = "transient"

    @property
    def retryable(self) -> bool:
        return self is ErrorKind.TRANSIENT


class ChangeKind(_ValuesMixin, str, Enum):
    """Kind of a realtime change event."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
