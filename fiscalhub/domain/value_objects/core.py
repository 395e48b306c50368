"""Domain value objects for fiscalhub.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
import uuid
from dataclasses import dataclass
from typing import ClassVar

_NON_DIGIT_RE = re.compile(r"\D")
# Keep letters, digits, dot, dash, underscore; everything else becomes "_".
_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class Cnpj:
    """Brazilian company tax id (CNPJ), stored as 14 digits.

    Use Cnpj.parse() to accept formatted input such as '12.345.678/0001-95'.
    """

    value: str

    LENGTH: ClassVar[int] = 14

    def __post_init__(self) -> None:
        if not self.value.isdigit() or len(self.value) != self.LENGTH:
            raise ValueError(f"CNPJ must contain {self.LENGTH} digits")

    @classmethod
    def parse(cls, raw: str) -> "Cnpj":
        """Strip punctuation and validate."""
        return cls(_NON_DIGIT_RE.sub("", raw or ""))

    def formatted(self) -> str:
        v = self.value
        return f"{v[:2]}.{v[2:5]}.{v[5:8]}/{v[8:12]}-{v[12:]}"


@dataclass(frozen=True)
class StoragePath:
    """Blob key for a file record: '{client_id}/{folder_id}/{unique}-{name}'.

    Path components must not be empty nor contain '/' or '..'.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Storage path must be a non-empty string")
        parts = self.value.split("/")
        if any(p in ("", ".", "..") for p in parts):
            raise ValueError(f"Invalid storage path: {self.value!r}")

    @classmethod
    def for_upload(cls, client_id: str, folder_id: str, file_name: str) -> "StoragePath":
        """Build a unique path for a new upload under client/folder."""
        safe = _UNSAFE_NAME_RE.sub("_", file_name.strip()).strip("._") or "file"
        return cls(f"{client_id}/{folder_id}/{uuid.uuid4().hex}-{safe}")
