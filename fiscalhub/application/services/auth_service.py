"""Auth service: sign in to a SessionContext, sign out and tear it down."""

from __future__ import annotations

import logging

from fiscalhub.application.dtos.identity import Identity
from fiscalhub.application.dtos.result import ApiResult, RemoteResponse
from fiscalhub.application.interfaces.backend import IAuthClient, IChangeFeed, IRowStore
from fiscalhub.application.services.retry_executor import RetryExecutor
from fiscalhub.core.session import SessionContext

logger = logging.getLogger(__name__)


class AuthService:
    """Builds one SessionContext per successful sign-in."""

    def __init__(
        self,
        auth: IAuthClient,
        store: IRowStore,
        executor: RetryExecutor,
        *,
        feed: IChangeFeed | None = None,
        realtime_enabled: bool = True,
    ) -> None:
        self._auth = auth
        self._store = store
        self._executor = executor
        self._feed = feed
        self._realtime_enabled = realtime_enabled

    def new_session(self) -> SessionContext:
        return SessionContext(
            self._store,
            self._executor,
            feed=self._feed,
            realtime_enabled=self._realtime_enabled,
        )

    async def sign_in(self, email: str, password: str) -> ApiResult[SessionContext]:
        """Authenticate and return an initialized session (role and flags loaded)."""
        if not email or not password:
            return ApiResult.fail("Email and password are required")

        async def _sign_in() -> RemoteResponse[Identity]:
            response = await self._auth.sign_in_with_password(email, password)
            if response.error is not None:
                return RemoteResponse(error=response.error)
            user = (response.data or {}).get("user") or {}
            metadata = user.get("user_metadata") or {}
            return RemoteResponse(
                data=Identity(
                    id=str(user["id"]),
                    email=user.get("email") or email,
                    full_name=metadata.get("full_name"),
                )
            )

        signed_in = await self._executor.execute(_sign_in)
        if not signed_in.success or signed_in.data is None:
            logger.info("Sign-in failed for %s: %s", email, signed_in.error)
            return ApiResult.fail(
                signed_in.error or "Authentication failed",
                signed_in.error_kind,
                signed_in.error_code,
            )
        session = await self.new_session().init(signed_in.data)
        return ApiResult.ok(session)

    async def sign_out(self, session: SessionContext) -> ApiResult[None]:
        """Tear the session down locally, then revoke the backend session."""
        await session.teardown()

        async def _sign_out() -> RemoteResponse[None]:
            return await self._auth.sign_out()

        return await self._executor.execute(_sign_out)
