"""Result envelopes shared by every remote call.

RemoteResponse is what a Backend Service operation returns ({data, error, count}).
ApiResult / ApiListResult are what RetryExecutor hands back to callers; they
never carry exceptions, only the normalized {data, error, success} contract.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from fiscalhub.domain.enums import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteErrorPayload:
    """Error body returned by the backend: message plus opaque classification code."""

    message: str
    code: str | None = None


@dataclass(frozen=True)
class RemoteResponse(Generic[T]):
    """Raw outcome of one backend operation."""

    data: T | None = None
    error: RemoteErrorPayload | None = None
    count: int | None = None

    @classmethod
    def failure(cls, message: str, code: str | None = None) -> RemoteResponse[T]:
        return cls(error=RemoteErrorPayload(message, code))


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Normalized single-value result: {data, error, success}."""

    data: T | None
    error: str | None
    success: bool
    error_kind: ErrorKind | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: T | None) -> ApiResult[T]:
        return cls(data=data, error=None, success=True)

    @classmethod
    def fail(
        cls,
        message: str,
        kind: ErrorKind | None = None,
        code: str | None = None,
    ) -> ApiResult[T]:
        return cls(data=None, error=message, success=False, error_kind=kind, error_code=code)

    @property
    def is_conflict(self) -> bool:
        return self.error_kind is ErrorKind.CONFLICT

    @property
    def is_not_found(self) -> bool:
        return self.error_kind is ErrorKind.NOT_FOUND

    @property
    def is_forbidden(self) -> bool:
        return self.error_kind is ErrorKind.FORBIDDEN


@dataclass(frozen=True)
class ApiListResult(Generic[T]):
    """Normalized list result: {data: [], error, success, count}."""

    data: list[T] = field(default_factory=list)
    error: str | None = None
    success: bool = True
    count: int | None = None
    error_kind: ErrorKind | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: list[T], count: int | None = None) -> ApiListResult[T]:
        return cls(data=list(data), error=None, success=True, count=count)

    @classmethod
    def fail(
        cls,
        message: str,
        kind: ErrorKind | None = None,
        code: str | None = None,
    ) -> ApiListResult[T]:
        return cls(data=[], error=message, success=False, error_kind=kind, error_code=code)

    @property
    def is_forbidden(self) -> bool:
        return self.error_kind is ErrorKind.FORBIDDEN
