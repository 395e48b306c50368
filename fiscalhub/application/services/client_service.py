"""Client application service: CRUD over clients plus role-scoped listing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fiscalhub.application.dtos.client import ClientResult
from fiscalhub.application.dtos.result import ApiListResult, ApiResult, RemoteResponse
from fiscalhub.application.interfaces.backend import IRowStore
from fiscalhub.application.query import RowQuery
from fiscalhub.application.services.assignment_graph import AssignmentGraph
from fiscalhub.application.services.retry_executor import RetryExecutor, classify_error_code
from fiscalhub.core.constants import TABLE_CLIENTS
from fiscalhub.domain.enums import Action, EffectiveRole, ErrorKind
from fiscalhub.domain.value_objects import Cnpj
from fiscalhub.schemas.client import ClientCreate, ClientUpdate
from fiscalhub.schemas.validation import parse_input

if TYPE_CHECKING:
    from fiscalhub.core.session import SessionContext


def _one(response: RemoteResponse[Any]) -> RemoteResponse[ClientResult]:
    if response.error is not None:
        return RemoteResponse(error=response.error)
    return RemoteResponse(data=ClientResult.from_row(response.data))


def _many(response: RemoteResponse[Any]) -> RemoteResponse[list[ClientResult]]:
    if response.error is not None:
        return RemoteResponse(error=response.error)
    rows = response.data or []
    return RemoteResponse(data=[ClientResult.from_row(r) for r in rows], count=response.count)


def _created_key(client: ClientResult) -> float:
    return client.created_at.timestamp() if client.created_at else 0.0


class ClientService:
    """Clients (tenant entities identified by CNPJ)."""

    def __init__(
        self,
        store: IRowStore,
        executor: RetryExecutor,
        graph: AssignmentGraph | None = None,
    ) -> None:
        self._store = store
        self._executor = executor
        self._graph = graph or AssignmentGraph(store, executor)

    async def list_clients(self) -> ApiListResult[ClientResult]:
        """All clients, newest first, with total count."""

        async def _list() -> RemoteResponse[list[ClientResult]]:
            return _many(
                await self._store.execute(
                    RowQuery.on(TABLE_CLIENTS).select("*", count=True).order("created_at", desc=True)
                )
            )

        return await self._executor.execute_list(_list)

    async def list_visible_clients(self, session: SessionContext) -> ApiListResult[ClientResult]:
        """Clients the session may see: all for admin/user, linked ones for accountants."""
        if not session.can(Action.VIEW_CLIENTS):
            return ApiListResult.fail("Permission denied: view_clients", ErrorKind.FORBIDDEN)
        if session.role is not EffectiveRole.ACCOUNTANT:
            return await self.list_clients()
        identity = session.identity
        if identity is None:
            return ApiListResult.fail("No active session", ErrorKind.FORBIDDEN)
        linked = await self._graph.list_clients_for(identity.id)
        if not linked.success:
            return ApiListResult.fail(linked.error or "", linked.error_kind, linked.error_code)
        clients = [c.to_client() for c in linked.data]
        clients.sort(key=_created_key, reverse=True)
        return ApiListResult.ok(clients, len(clients))

    async def get_client(self, client_id: str) -> ApiResult[ClientResult]:
        async def _get() -> RemoteResponse[ClientResult]:
            return _one(
                await self._store.execute(
                    RowQuery.on(TABLE_CLIENTS).select("*").eq("id", client_id).single()
                )
            )

        return await self._executor.execute(_get)

    async def get_client_by_cnpj(self, cnpj: str) -> ApiResult[ClientResult]:
        """Look up by CNPJ; formatted input is accepted."""
        try:
            digits = Cnpj.parse(cnpj).value
        except ValueError as e:
            return ApiResult.fail(str(e))

        async def _get() -> RemoteResponse[ClientResult]:
            return _one(
                await self._store.execute(
                    RowQuery.on(TABLE_CLIENTS).select("*").eq("cnpj", digits).single()
                )
            )

        return await self._executor.execute(_get)

    async def create_client(
        self,
        data: ClientCreate | dict[str, Any],
        created_by: str | None = None,
    ) -> ApiResult[ClientResult]:
        """Validate and insert. Duplicate CNPJ fails with ErrorKind.CONFLICT."""
        payload, error = parse_input(ClientCreate, data)
        if payload is None:
            return ApiResult.fail(error or "Invalid client data")
        row = {"name": payload.name, "cnpj": payload.cnpj, "created_by": created_by}

        async def _create() -> RemoteResponse[ClientResult]:
            return _one(await self._store.execute(RowQuery.on(TABLE_CLIENTS).insert(row).single()))

        return await self._executor.execute(_create)

    async def update_client(
        self,
        client_id: str,
        data: ClientUpdate | dict[str, Any],
    ) -> ApiResult[ClientResult]:
        payload, error = parse_input(ClientUpdate, data)
        if payload is None:
            return ApiResult.fail(error or "Invalid client data")
        values = payload.model_dump(exclude_none=True)
        if not values:
            return ApiResult.fail("At least one of name or cnpj is required")

        async def _update() -> RemoteResponse[ClientResult]:
            return _one(
                await self._store.execute(
                    RowQuery.on(TABLE_CLIENTS).update(values).eq("id", client_id).single()
                )
            )

        return await self._executor.execute(_update)

    async def remove_client(self, client_id: str) -> ApiResult[None]:
        async def _remove() -> RemoteResponse[None]:
            response = await self._store.execute(
                RowQuery.on(TABLE_CLIENTS).delete().eq("id", client_id)
            )
            return RemoteResponse(error=response.error)

        return await self._executor.execute(_remove)

    async def cnpj_exists(self, cnpj: str, exclude_id: str | None = None) -> ApiResult[bool]:
        """True if another client already uses cnpj (NotFound maps to False)."""
        try:
            digits = Cnpj.parse(cnpj).value
        except ValueError as e:
            return ApiResult.fail(str(e))

        async def _exists() -> RemoteResponse[bool]:
            query = RowQuery.on(TABLE_CLIENTS).select("id").eq("cnpj", digits)
            if exclude_id:
                query = query.neq("id", exclude_id)
            response = await self._store.execute(query.limit(1))
            if response.error is not None:
                if classify_error_code(response.error.code) is ErrorKind.NOT_FOUND:
                    return RemoteResponse(data=False)
                return RemoteResponse(error=response.error)
            return RemoteResponse(data=bool(response.data))

        return await self._executor.execute(_exists)
