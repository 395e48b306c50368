"""Application services: authorization, retry, assignments, realtime caches, CRUD.

AuthService is imported from fiscalhub.application.services.auth_service
directly (it depends on fiscalhub.core.session, which depends on this package).
"""

from fiscalhub.application.services.accountant_service import AccountantService
from fiscalhub.application.services.assignment_graph import AssignmentGraph
from fiscalhub.application.services.capability_flags_service import CapabilityFlagsService
from fiscalhub.application.services.capability_policy import CapabilityPolicy, can
from fiscalhub.application.services.client_service import ClientService
from fiscalhub.application.services.file_service import FileService
from fiscalhub.application.services.folder_service import FolderService
from fiscalhub.application.services.live_collection import LiveCollection
from fiscalhub.application.services.realtime_reconciler import (
    CachedCollection,
    RealtimeReconciler,
    apply_change,
)
from fiscalhub.application.services.retry_executor import (
    RetryExecutor,
    RetryPolicy,
    classify_error_code,
)
from fiscalhub.application.services.role_resolver import RoleResolver, resolve_effective_role

__all__ = [
    "AccountantService",
    "AssignmentGraph",
    "CachedCollection",
    "CapabilityFlagsService",
    "CapabilityPolicy",
    "ClientService",
    "FileService",
    "FolderService",
    "LiveCollection",
    "RealtimeReconciler",
    "RetryExecutor",
    "RetryPolicy",
    "RoleResolver",
    "apply_change",
    "can",
    "classify_error_code",
    "resolve_effective_role",
]
