"""Domain exceptions for fiscalhub.

Defines the exception taxonomy for authorization, validation and remote
failures. RetryExecutor catches RemoteException subclasses (and any other
exception) and normalizes them into ApiResult envelopes, so callers above
it branch on the envelope instead of catching these.
"""

from typing import Any

from fiscalhub.domain.enums import ErrorKind


class FiscalHubException(Exception):
    """Base exception for all fiscalhub errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(FiscalHubException):
    """Raised when input validation fails (e.g. invalid CNPJ or empty name)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(FiscalHubException):
    """Raised when sign-in fails (e.g. invalid credentials)."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(FiscalHubException):
    """Raised when the effective role may not perform the action."""

    def __init__(
        self,
        action: str | None = None,
        role: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional action, role, and message.

        Args:
            action: Action that was attempted (e.g. 'edit_clients').
            role: Effective role of the caller (e.g. 'user').
            message: Human-readable message; default used when action omitted.
        """
        if action:
            message = f"Permission denied: {action}"
        details: dict[str, Any] = {}
        if action:
            details["action"] = action
        if role:
            details["role"] = role
        super().__init__(message, "PERMISSION_DENIED", details)


class SessionNotActiveException(FiscalHubException):
    """Raised when an operation needs a signed-in session and none is active."""

    def __init__(self) -> None:
        super().__init__("No active session", "SESSION_NOT_ACTIVE")


class ResourceNotFoundException(FiscalHubException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class RemoteException(FiscalHubException):
    """Failure reported by (or while talking to) the Backend Service.

    Attributes:
        kind: ErrorKind used by RetryExecutor to decide whether to retry.
        code: Backend error code as received (opaque), if any.
    """

    kind: ErrorKind = ErrorKind.TRANSIENT

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message, self.kind.value.upper().replace("-", "_"), {"code": code} if code else {})


class ForbiddenError(RemoteException):
    """Caller lacks rights (backend policy rejected the operation)."""

    kind = ErrorKind.FORBIDDEN


class NotFoundError(RemoteException):
    """Single-row fetch matched zero rows."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(RemoteException):
    """Uniqueness violation (e.g. duplicate assignment edge)."""

    kind = ErrorKind.CONFLICT


class TransientError(RemoteException):
    """Likely-temporary failure (network, timeout, 5xx-equivalent)."""

    kind = ErrorKind.TRANSIENT


REMOTE_EXCEPTIONS: dict[ErrorKind, type[RemoteException]] = {
    ErrorKind.FORBIDDEN: ForbiddenError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.TRANSIENT: TransientError,
}
