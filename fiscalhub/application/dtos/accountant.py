"""DTOs for accountants (identities holding an 'accountant' role row)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fiscalhub.application.dtos.assignment import LinkedClient
from fiscalhub.shared.utils.datetime import parse_timestamp


@dataclass(frozen=True)
class AccountantResult:
    """Accountant read-model built from the profile row."""

    id: str
    email: str
    full_name: str | None
    created_at: datetime | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> AccountantResult:
        return cls(
            id=str(row["id"]),
            email=row.get("email") or "",
            full_name=row.get("full_name"),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class AccountantWithClients:
    """Accountant plus the clients linked through the assignment graph."""

    accountant: AccountantResult
    clients: tuple[LinkedClient, ...] = field(default=())
