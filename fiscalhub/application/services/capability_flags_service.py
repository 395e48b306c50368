"""Capability flags service: read and save the process-wide flags row."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fiscalhub.application.dtos.capability import CapabilityFlags
from fiscalhub.application.dtos.result import ApiResult, RemoteResponse
from fiscalhub.application.interfaces.backend import IRowStore
from fiscalhub.application.query import RowQuery
from fiscalhub.application.services.retry_executor import RetryExecutor
from fiscalhub.core.constants import CODE_INSUFFICIENT_PRIVILEGE, TABLE_APP_PERMISSIONS
from fiscalhub.domain.enums import Action, ErrorKind
from fiscalhub.schemas.capability import CapabilityFlagsUpdate
from fiscalhub.schemas.validation import parse_input

if TYPE_CHECKING:
    from fiscalhub.core.session import SessionContext

logger = logging.getLogger(__name__)

NOTHING_SAVED_MESSAGE = "No permissions were updated (check that you are an admin)"


class CapabilityFlagsService:
    """The single app_permissions row (lowest id wins). Last writer wins."""

    def __init__(self, store: IRowStore, executor: RetryExecutor) -> None:
        self._store = store
        self._executor = executor

    async def load(self) -> ApiResult[CapabilityFlags]:
        """Current flags; an absent row gives all-false flags."""

        async def _load() -> RemoteResponse[CapabilityFlags]:
            response = await self._first_row()
            if response.error is not None:
                return RemoteResponse(error=response.error)
            return RemoteResponse(data=CapabilityFlags.from_row(response.data))

        return await self._executor.execute(_load)

    async def save(
        self,
        flags: CapabilityFlags | CapabilityFlagsUpdate | dict[str, Any],
        session: SessionContext | None = None,
    ) -> ApiResult[CapabilityFlags]:
        """Write every flag. With a session, requires MANAGE_PERMISSIONS first."""
        if session is not None and not session.can(Action.MANAGE_PERMISSIONS):
            return ApiResult.fail(
                f"Permission denied: {Action.MANAGE_PERMISSIONS.value}", ErrorKind.FORBIDDEN
            )
        if isinstance(flags, CapabilityFlags):
            values = flags.to_row()
        else:
            payload, error = parse_input(CapabilityFlagsUpdate, flags)
            if payload is None:
                return ApiResult.fail(error or "Invalid permissions")
            values = payload.to_flags().to_row()

        async def _save() -> RemoteResponse[CapabilityFlags]:
            current = await self._first_row()
            if current.error is not None:
                return RemoteResponse(error=current.error)
            if current.data is None:
                query = RowQuery.on(TABLE_APP_PERMISSIONS).insert(values).maybe_single()
            else:
                query = (
                    RowQuery.on(TABLE_APP_PERMISSIONS)
                    .update(values)
                    .eq("id", current.data["id"])
                    .maybe_single()
                )
            saved = await self._store.execute(query)
            if saved.error is not None:
                return RemoteResponse(error=saved.error)
            if not saved.data:
                # row filtered out by backend policy
                return RemoteResponse.failure(NOTHING_SAVED_MESSAGE, CODE_INSUFFICIENT_PRIVILEGE)
            return RemoteResponse(data=CapabilityFlags.from_row(saved.data))

        result = await self._executor.execute(_save)
        if result.success:
            logger.info("Capability flags saved")
            if session is not None and result.data is not None:
                session.flags = result.data
        return result

    async def _first_row(self) -> RemoteResponse[dict[str, Any] | None]:
        return await self._store.execute(
            RowQuery.on(TABLE_APP_PERMISSIONS).select("*").order("id").limit(1).maybe_single()
        )
