"""AssignmentGraph: many-to-many edges between accountants and clients.

Invariants:
- At most one edge per (accountant_id, client_id); a second link is a Conflict.
- unlink is idempotent: removing a missing edge is success.
- Joined listings never return an edge whose other endpoint no longer exists.

Joins are done client-side: select the edges, then select the opposite
entities by id and drop edges that found no match.
"""

from __future__ import annotations

import logging
from typing import Any

from fiscalhub.application.dtos.assignment import (
    AssignmentResult,
    LinkedAccountant,
    LinkedClient,
)
from fiscalhub.application.dtos.result import ApiListResult, ApiResult, RemoteResponse
from fiscalhub.application.interfaces.backend import IRowStore
from fiscalhub.application.query import RowQuery
from fiscalhub.application.services.retry_executor import (
    RetryExecutor,
    classify_error_code,
)
from fiscalhub.core.constants import (
    ALREADY_LINKED_MESSAGE,
    CODE_UNIQUE_VIOLATION,
    TABLE_ACCOUNTANT_CLIENTS,
    TABLE_CLIENTS,
    TABLE_PROFILES,
)
from fiscalhub.domain.enums import ErrorKind

logger = logging.getLogger(__name__)

EDGE_COLUMNS = "id, accountant_id, client_id, created_at"
CLIENT_SUMMARY_COLUMNS = "id, name, cnpj, created_at, created_by"
ACCOUNTANT_SUMMARY_COLUMNS = "id, email, full_name"


class AssignmentGraph:
    """Link / unlink / list edges; every backend call goes through RetryExecutor."""

    def __init__(self, store: IRowStore, executor: RetryExecutor) -> None:
        self._store = store
        self._executor = executor

    async def link(self, accountant_id: str, client_id: str) -> ApiResult[AssignmentResult]:
        """Create the edge. An existing edge fails with ErrorKind.CONFLICT."""
        if not accountant_id or not client_id:
            return ApiResult.fail("accountant_id and client_id are required")

        async def _link() -> RemoteResponse[AssignmentResult]:
            existing = await self._store.execute(
                RowQuery.on(TABLE_ACCOUNTANT_CLIENTS)
                .select("id")
                .eq("accountant_id", accountant_id)
                .eq("client_id", client_id)
                .maybe_single()
            )
            if existing.error is not None:
                return RemoteResponse(error=existing.error)
            if existing.data:
                return RemoteResponse.failure(ALREADY_LINKED_MESSAGE, CODE_UNIQUE_VIOLATION)
            created = await self._store.execute(
                RowQuery.on(TABLE_ACCOUNTANT_CLIENTS)
                .insert({"accountant_id": accountant_id, "client_id": client_id})
                .single()
            )
            if created.error is not None:
                return RemoteResponse(error=created.error)
            return RemoteResponse(data=AssignmentResult.from_row(created.data))

        result = await self._executor.execute(_link)
        if result.is_conflict:
            # Unique violation from a concurrent link renders the same message.
            return ApiResult.fail(ALREADY_LINKED_MESSAGE, ErrorKind.CONFLICT, result.error_code)
        if result.success:
            logger.info("Linked accountant %s to client %s", accountant_id, client_id)
        return result

    async def unlink(self, accountant_id: str, client_id: str) -> ApiResult[None]:
        """Remove the edge if present. Missing edge is success."""

        async def _unlink() -> RemoteResponse[None]:
            response = await self._store.execute(
                RowQuery.on(TABLE_ACCOUNTANT_CLIENTS)
                .delete()
                .eq("accountant_id", accountant_id)
                .eq("client_id", client_id)
            )
            if response.error is not None and classify_error_code(
                response.error.code
            ) is not ErrorKind.NOT_FOUND:
                return RemoteResponse(error=response.error)
            return RemoteResponse(data=None)

        return await self._executor.execute(_unlink)

    async def unlink_all_for_accountant(self, accountant_id: str) -> ApiResult[None]:
        """Remove every edge of an accountant (used before removing the accountant)."""

        async def _unlink_all() -> RemoteResponse[None]:
            response = await self._store.execute(
                RowQuery.on(TABLE_ACCOUNTANT_CLIENTS).delete().eq("accountant_id", accountant_id)
            )
            if response.error is not None and classify_error_code(
                response.error.code
            ) is not ErrorKind.NOT_FOUND:
                return RemoteResponse(error=response.error)
            return RemoteResponse(data=None)

        return await self._executor.execute(_unlink_all)

    async def list_clients_for(self, accountant_id: str) -> ApiListResult[LinkedClient]:
        """Clients linked to accountant_id, newest edge first."""

        async def _list() -> RemoteResponse[list[LinkedClient]]:
            pairs = await self._joined(
                "accountant_id", accountant_id, "client_id", TABLE_CLIENTS, CLIENT_SUMMARY_COLUMNS
            )
            if isinstance(pairs, RemoteResponse):
                return pairs
            linked = [LinkedClient.from_rows(edge, row) for edge, row in pairs]
            return RemoteResponse(data=linked, count=len(linked))

        return await self._executor.execute_list(_list)

    async def list_accountants_for(self, client_id: str) -> ApiListResult[LinkedAccountant]:
        """Accountants linked to client_id, newest edge first."""

        async def _list() -> RemoteResponse[list[LinkedAccountant]]:
            pairs = await self._joined(
                "client_id", client_id, "accountant_id", TABLE_PROFILES, ACCOUNTANT_SUMMARY_COLUMNS
            )
            if isinstance(pairs, RemoteResponse):
                return pairs
            linked = [LinkedAccountant.from_rows(edge, row) for edge, row in pairs]
            return RemoteResponse(data=linked, count=len(linked))

        return await self._executor.execute_list(_list)

    async def _joined(
        self,
        own_column: str,
        own_id: str,
        other_column: str,
        other_table: str,
        other_columns: str,
    ) -> list[tuple[dict[str, Any], dict[str, Any]]] | RemoteResponse[Any]:
        """Edges for own_id paired with their other endpoint; dangling edges dropped.

        Returns a failed RemoteResponse if either read fails.
        """
        edges = await self._store.execute(
            RowQuery.on(TABLE_ACCOUNTANT_CLIENTS)
            .select(EDGE_COLUMNS)
            .eq(own_column, own_id)
            .order("created_at", desc=True)
        )
        if edges.error is not None:
            return RemoteResponse(error=edges.error)
        edge_rows = edges.data or []
        if not edge_rows:
            return []
        other_ids = sorted({str(e[other_column]) for e in edge_rows})
        others = await self._store.execute(
            RowQuery.on(other_table).select(other_columns).in_("id", other_ids)
        )
        if others.error is not None:
            return RemoteResponse(error=others.error)
        by_id = {str(row["id"]): row for row in others.data or []}
        pairs = []
        for edge in edge_rows:
            row = by_id.get(str(edge[other_column]))
            if row is None:
                logger.debug("Skipping dangling assignment %s", edge.get("id"))
                continue
            pairs.append((edge, row))
        return pairs
