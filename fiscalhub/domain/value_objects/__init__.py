"""Domain value objects (immutable, self-validating)."""

from fiscalhub.domain.value_objects.core import Cnpj, StoragePath

__all__ = [
    "Cnpj",
    "StoragePath",
]
