"""DTOs for identities and their raw role rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fiscalhub.domain.enums import RoleName


@dataclass(frozen=True)
class Identity:
    """Authenticated identity (owned by the Backend Service)."""

    id: str
    email: str
    full_name: str | None = None


@dataclass(frozen=True)
class RoleAssignment:
    """One (identity_id, role) row. Duplicates are tolerated; hashable for sets."""

    identity_id: str
    role: RoleName

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> RoleAssignment:
        return cls(identity_id=str(row["user_id"]), role=RoleName(row["role"]))
