"""Domain layer: enums, value objects, and exceptions.

No dependencies on infrastructure. Used by application and
infrastructure layers.
"""

from fiscalhub.domain.enums import (
    Action,
    ChangeKind,
    EffectiveRole,
    ErrorKind,
    RoleName,
)
from fiscalhub.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    ConflictError,
    FiscalHubException,
    ForbiddenError,
    NotFoundError,
    RemoteException,
    ResourceNotFoundException,
    SessionNotActiveException,
    TransientError,
    ValidationException,
)
from fiscalhub.domain.value_objects import Cnpj, StoragePath

__all__ = [
    # Enums
    "Action",
    "ChangeKind",
    "EffectiveRole",
    "ErrorKind",
    "RoleName",
    # Exceptions
    "AuthenticationException",
    "AuthorizationException",
    "ConflictError",
    "FiscalHubException",
    "ForbiddenError",
    "NotFoundError",
    "RemoteException",
    "ResourceNotFoundException",
    "SessionNotActiveException",
    "TransientError",
    "ValidationException",
    # Value objects
    "Cnpj",
    "StoragePath",
]
