"""Privileged RPC client: identity creation and credential changes.

Both functions run server-side with elevated rights and are idempotent on
resend (an existing identity is reused; setting the same credentials twice
is a no-op), so callers retry them through RetryExecutor.
"""

from __future__ import annotations

from typing import Any

from fiscalhub.application.dtos.result import RemoteResponse
from fiscalhub.core.constants import RPC_CREATE_USER, RPC_UPDATE_CREDENTIALS
from fiscalhub.infrastructure.backend._rest_client import BackendRESTClient


class BackendProvisioningClient:
    """IProvisioningClient over backend functions."""

    def __init__(self, client: BackendRESTClient) -> None:
        self._client = client

    async def create_identity(
        self, email: str, password: str, full_name: str, role: str
    ) -> RemoteResponse[dict[str, Any]]:
        return await self._client.invoke(
            RPC_CREATE_USER,
            {"email": email, "password": password, "full_name": full_name, "role": role},
        )

    async def update_credentials(
        self,
        user_id: str,
        email: str | None = None,
        password: str | None = None,
    ) -> RemoteResponse[dict[str, Any]]:
        if email is None and password is None:
            return RemoteResponse(data={})
        body: dict[str, Any] = {"accountantId": user_id}
        if email is not None:
            body["email"] = email
        if password is not None:
            body["password"] = password
        return await self._client.invoke(RPC_UPDATE_CREDENTIALS, body)
