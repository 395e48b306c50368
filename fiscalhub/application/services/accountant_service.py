"""Accountant application service.

An accountant is a profile whose identity holds an 'accountant' role row.
Creating one and changing its credentials go through privileged RPCs; both
are idempotent server-side, so they are retried like any other call.
"""

from __future__ import annotations

import logging
from typing import Any

from fiscalhub.application.dtos.accountant import AccountantResult, AccountantWithClients
from fiscalhub.application.dtos.assignment import LinkedClient
from fiscalhub.application.dtos.result import ApiListResult, ApiResult, RemoteResponse
from fiscalhub.application.interfaces.backend import IProvisioningClient, IRowStore
from fiscalhub.application.query import RowQuery
from fiscalhub.application.services.assignment_graph import (
    CLIENT_SUMMARY_COLUMNS,
    EDGE_COLUMNS,
    AssignmentGraph,
)
from fiscalhub.application.services.retry_executor import RetryExecutor, classify_error_code
from fiscalhub.core.constants import (
    TABLE_ACCOUNTANT_CLIENTS,
    TABLE_CLIENTS,
    TABLE_PROFILES,
    TABLE_USER_ROLES,
)
from fiscalhub.domain.enums import ErrorKind, RoleName
from fiscalhub.schemas.accountant import AccountantCreate, AccountantUpdate
from fiscalhub.schemas.validation import parse_input

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id, email, full_name, created_at"


class AccountantService:
    """Accountants: profiles + role rows + assignment edges."""

    def __init__(
        self,
        store: IRowStore,
        provisioning: IProvisioningClient,
        executor: RetryExecutor,
        graph: AssignmentGraph | None = None,
    ) -> None:
        self._store = store
        self._provisioning = provisioning
        self._executor = executor
        self._graph = graph or AssignmentGraph(store, executor)

    async def list_accountants(self) -> ApiListResult[AccountantResult]:
        """Accountant profiles, newest first."""

        async def _list() -> RemoteResponse[list[AccountantResult]]:
            response = await self._accountant_profiles()
            if response.error is not None:
                return RemoteResponse(error=response.error)
            accountants = [AccountantResult.from_row(r) for r in response.data or []]
            return RemoteResponse(data=accountants, count=len(accountants))

        return await self._executor.execute_list(_list)

    async def get_accountant(self, accountant_id: str) -> ApiResult[AccountantResult]:
        async def _get() -> RemoteResponse[AccountantResult]:
            return await self._single_accountant("id", accountant_id)

        return await self._executor.execute(_get)

    async def get_accountant_by_email(self, email: str) -> ApiResult[AccountantResult]:
        async def _get() -> RemoteResponse[AccountantResult]:
            return await self._single_accountant("email", email)

        return await self._executor.execute(_get)

    async def email_exists(self, email: str, exclude_id: str | None = None) -> ApiResult[bool]:
        """True if another profile already uses email (NotFound maps to False)."""

        async def _exists() -> RemoteResponse[bool]:
            query = RowQuery.on(TABLE_PROFILES).select("id").eq("email", email)
            if exclude_id:
                query = query.neq("id", exclude_id)
            response = await self._store.execute(query.limit(1))
            if response.error is not None:
                if classify_error_code(response.error.code) is ErrorKind.NOT_FOUND:
                    return RemoteResponse(data=False)
                return RemoteResponse(error=response.error)
            return RemoteResponse(data=bool(response.data))

        return await self._executor.execute(_exists)

    async def create_accountant(
        self, data: AccountantCreate | dict[str, Any]
    ) -> ApiResult[AccountantResult]:
        """Create the identity with the accountant role, then return its profile."""
        payload, error = parse_input(AccountantCreate, data)
        if payload is None:
            return ApiResult.fail(error or "Invalid accountant data")

        async def _create() -> RemoteResponse[AccountantResult]:
            created = await self._provisioning.create_identity(
                payload.email, payload.password, payload.full_name, RoleName.ACCOUNTANT.value
            )
            if created.error is not None:
                return RemoteResponse(error=created.error)
            return await self._single_accountant("email", payload.email)

        result = await self._executor.execute(_create)
        if result.success:
            logger.info("Created accountant %s", payload.email)
        return result

    async def update_accountant(
        self,
        accountant_id: str,
        data: AccountantUpdate | dict[str, Any],
    ) -> ApiResult[AccountantResult]:
        """Update the profile; change credentials too when a new password is given."""
        payload, error = parse_input(AccountantUpdate, data)
        if payload is None:
            return ApiResult.fail(error or "Invalid accountant data")
        values = payload.model_dump(include={"email", "full_name"}, exclude_none=True)
        if not values and not payload.new_password:
            return ApiResult.fail("Nothing to update")

        async def _update() -> RemoteResponse[AccountantResult]:
            if values:
                updated = await self._store.execute(
                    RowQuery.on(TABLE_PROFILES).update(values).eq("id", accountant_id).single()
                )
            else:
                updated = await self._store.execute(
                    RowQuery.on(TABLE_PROFILES).select(PROFILE_COLUMNS).eq("id", accountant_id).single()
                )
            if updated.error is not None:
                return RemoteResponse(error=updated.error)
            if payload.new_password:
                credentials = await self._provisioning.update_credentials(
                    accountant_id, email=payload.email, password=payload.new_password
                )
                if credentials.error is not None:
                    return RemoteResponse(error=credentials.error)
            return RemoteResponse(data=AccountantResult.from_row(updated.data))

        return await self._executor.execute(_update)

    async def remove_accountant(self, accountant_id: str) -> ApiResult[None]:
        """Unlink every client, drop the accountant role row, then the profile.

        The identity itself is kept in the auth store.
        """
        unlinked = await self._graph.unlink_all_for_accountant(accountant_id)
        if not unlinked.success:
            return unlinked

        async def _remove() -> RemoteResponse[None]:
            role = await self._store.execute(
                RowQuery.on(TABLE_USER_ROLES)
                .delete()
                .eq("user_id", accountant_id)
                .eq("role", RoleName.ACCOUNTANT.value)
            )
            if role.error is not None:
                return RemoteResponse(error=role.error)
            profile = await self._store.execute(
                RowQuery.on(TABLE_PROFILES).delete().eq("id", accountant_id)
            )
            return RemoteResponse(error=profile.error)

        result = await self._executor.execute(_remove)
        if result.success:
            logger.info("Removed accountant %s", accountant_id)
        return result

    async def list_accountants_with_clients(self) -> ApiListResult[AccountantWithClients]:
        """Each accountant with its linked clients; dangling edges are dropped."""

        async def _list() -> RemoteResponse[list[AccountantWithClients]]:
            profiles = await self._accountant_profiles()
            if profiles.error is not None:
                return RemoteResponse(error=profiles.error)
            accountants = [AccountantResult.from_row(r) for r in profiles.data or []]
            if not accountants:
                return RemoteResponse(data=[], count=0)

            edges = await self._store.execute(
                RowQuery.on(TABLE_ACCOUNTANT_CLIENTS)
                .select(EDGE_COLUMNS)
                .in_("accountant_id", [a.id for a in accountants])
                .order("created_at", desc=True)
            )
            if edges.error is not None:
                return RemoteResponse(error=edges.error)
            edge_rows = edges.data or []
            clients_by_id: dict[str, dict[str, Any]] = {}
            if edge_rows:
                clients = await self._store.execute(
                    RowQuery.on(TABLE_CLIENTS)
                    .select(CLIENT_SUMMARY_COLUMNS)
                    .in_("id", sorted({str(e["client_id"]) for e in edge_rows}))
                )
                if clients.error is not None:
                    return RemoteResponse(error=clients.error)
                clients_by_id = {str(c["id"]): c for c in clients.data or []}

            linked: dict[str, list[LinkedClient]] = {a.id: [] for a in accountants}
            for edge in edge_rows:
                client = clients_by_id.get(str(edge["client_id"]))
                if client is not None:
                    linked[str(edge["accountant_id"])].append(LinkedClient.from_rows(edge, client))
            result = [AccountantWithClients(a, tuple(linked[a.id])) for a in accountants]
            return RemoteResponse(data=result, count=len(result))

        return await self._executor.execute_list(_list)

    async def _accountant_ids(self) -> RemoteResponse[list[str]]:
        roles = await self._store.execute(
            RowQuery.on(TABLE_USER_ROLES).select("user_id").eq("role", RoleName.ACCOUNTANT.value)
        )
        if roles.error is not None:
            return RemoteResponse(error=roles.error)
        return RemoteResponse(data=sorted({str(r["user_id"]) for r in roles.data or []}))

    async def _accountant_profiles(self) -> RemoteResponse[list[dict[str, Any]]]:
        ids = await self._accountant_ids()
        if ids.error is not None or not ids.data:
            return RemoteResponse(data=[], error=ids.error)
        return await self._store.execute(
            RowQuery.on(TABLE_PROFILES)
            .select(PROFILE_COLUMNS)
            .in_("id", ids.data)
            .order("created_at", desc=True)
        )

    async def _single_accountant(self, column: str, value: str) -> RemoteResponse[AccountantResult]:
        """Profile matching column=value that holds the accountant role (NotFound otherwise)."""
        profile = await self._store.execute(
            RowQuery.on(TABLE_PROFILES).select(PROFILE_COLUMNS).eq(column, value).single()
        )
        if profile.error is not None:
            return RemoteResponse(error=profile.error)
        role = await self._store.execute(
            RowQuery.on(TABLE_USER_ROLES)
            .select("user_id")
            .eq("user_id", profile.data["id"])
            .eq("role", RoleName.ACCOUNTANT.value)
            .limit(1)
            .single()
        )
        if role.error is not None:
            return RemoteResponse(error=role.error)
        return RemoteResponse(data=AccountantResult.from_row(profile.data))
