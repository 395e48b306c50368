"""DTO for the process-wide capability flags record."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any


@dataclass(frozen=True)
class CapabilityFlags:
    """Named boolean toggles fine-tuning what a 'user' role may do.

    Global, versionless, last-writer-wins. Missing flags are False (fail-closed).
    """

    user_can_view_clients: bool = False
    user_can_edit_clients: bool = False
    user_can_view_accountants: bool = False
    user_can_edit_accountants: bool = False
    user_can_manage_folders: bool = False
    user_can_delete_files: bool = False
    admin_can_manage_users: bool = False
    admin_can_manage_permissions: bool = False

    def is_enabled(self, flag: str) -> bool:
        """Return the flag value; unknown names are False."""
        return flag in self.names() and bool(getattr(self, flag))

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_row(cls, row: dict[str, Any] | None) -> CapabilityFlags:
        """Build from an app_permissions row; None values and absent columns are False."""
        if not row:
            return cls()
        return cls(**{name: bool(row.get(name) or False) for name in cls.names()})

    def to_row(self) -> dict[str, bool]:
        return asdict(self)
