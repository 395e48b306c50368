"""DTO for realtime change events delivered per table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fiscalhub.domain.enums import ChangeKind


@dataclass(frozen=True)
class ChangeEvent:
    """One change on a table: new_row for insert/update, old_row for delete."""

    kind: ChangeKind
    new_row: dict[str, Any] | None = None
    old_row: dict[str, Any] | None = None

    @property
    def row(self) -> dict[str, Any]:
        """The row the event applies to (old_row only for delete)."""
        row = self.old_row if self.kind is ChangeKind.DELETE else self.new_row
        if not row:
            raise ValueError(f"{self.kind.value} event without row")
        return row

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the channel wire shape."""
        return {
            "eventType": self.kind.value.upper(),
            "new": self.new_row or {},
            "old": self.old_row or {},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangeEvent:
        """Deserialize {'eventType'|'kind', 'new', 'old'}; empty rows become None."""
        raw_kind = data.get("eventType") or data.get("kind")
        if not raw_kind:
            raise KeyError("eventType")
        return cls(
            kind=ChangeKind(str(raw_kind).lower()),
            new_row=data.get("new") or data.get("new_row") or None,
            old_row=data.get("old") or data.get("old_row") or None,
        )
