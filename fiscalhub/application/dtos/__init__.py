"""Application DTOs (frozen dataclasses; no dependency on transport)."""

from fiscalhub.application.dtos.accountant import AccountantResult, AccountantWithClients
from fiscalhub.application.dtos.assignment import (
    AssignmentResult,
    LinkedAccountant,
    LinkedClient,
)
from fiscalhub.application.dtos.capability import CapabilityFlags
from fiscalhub.application.dtos.client import ClientResult
from fiscalhub.application.dtos.folder import FileRecordResult, FolderResult
from fiscalhub.application.dtos.identity import Identity, RoleAssignment
from fiscalhub.application.dtos.realtime import ChangeEvent
from fiscalhub.application.dtos.result import (
    ApiListResult,
    ApiResult,
    RemoteErrorPayload,
    RemoteResponse,
)

__all__ = [
    "AccountantResult",
    "AccountantWithClients",
    "ApiListResult",
    "ApiResult",
    "AssignmentResult",
    "CapabilityFlags",
    "ChangeEvent",
    "ClientResult",
    "FileRecordResult",
    "FolderResult",
    "Identity",
    "LinkedAccountant",
    "LinkedClient",
    "RemoteErrorPayload",
    "RemoteResponse",
    "RoleAssignment",
]
