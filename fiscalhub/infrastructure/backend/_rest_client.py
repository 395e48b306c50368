"""Thin Backend Service REST client (row CRUD, auth, functions).

Translates RowQuery into PostgREST-style requests and normalizes every
failure into a RemoteResponse error (message + opaque code) instead of
raising, so RetryExecutor can classify it. All HTTP calls use
httpx.AsyncClient so they do not block the event loop.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from fiscalhub.application.dtos.result import RemoteResponse
from fiscalhub.application.query import Cardinality, Operation, RowQuery
from fiscalhub.core.constants import CODE_SINGLE_ROW_NOT_FOUND, UNKNOWN_ERROR_MESSAGE

logger = logging.getLogger(__name__)

_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


def _encode_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _encode_in(values: tuple[Any, ...]) -> str:
    """in.(a,b,"c,d") with values containing reserved chars quoted."""
    encoded = []
    for v in values:
        s = _encode_value(v)
        if any(ch in s for ch in ',()"'):
            s = '"' + s.replace('"', '\\"') + '"'
        encoded.append(s)
    return f"in.({','.join(encoded)})"


def build_params(query: RowQuery) -> list[tuple[str, str]]:
    """Query-string parameters for a RowQuery (select, filters, order, limit)."""
    params: list[tuple[str, str]] = []
    if query.operation is Operation.SELECT or query.cardinality is not Cardinality.MANY:
        params.append(("select", query.columns))
    elif query.operation in (Operation.INSERT, Operation.UPSERT, Operation.UPDATE):
        params.append(("select", "*"))
    for f in query.filters:
        if f.op == "in":
            params.append((f.column, _encode_in(f.value)))
        else:
            params.append((f.column, f"{f.op}.{_encode_value(f.value)}"))
    if query.on_conflict:
        params.append(("on_conflict", query.on_conflict))
    if query.order_by:
        params.append(("order", f"{query.order_by}.{'desc' if query.descending else 'asc'}"))
    if query.row_limit is not None:
        params.append(("limit", str(query.row_limit)))
    return params


def build_prefer(query: RowQuery) -> str | None:
    prefs: list[str] = []
    if query.operation is not Operation.SELECT:
        prefs.append("return=representation")
    if query.operation is Operation.UPSERT:
        prefs.append("resolution=merge-duplicates")
    if query.with_count:
        prefs.append("count=exact")
    return ",".join(prefs) or None


def parse_count(content_range: str | None) -> int | None:
    """Total from a Content-Range header such as '0-9/42' or '*/0'."""
    if not content_range or "/" not in content_range:
        return None
    total = content_range.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else None


def error_from_response(resp: httpx.Response) -> RemoteResponse[Any]:
    """Build a failed RemoteResponse from an error body; code falls back to the HTTP status."""
    message = UNKNOWN_ERROR_MESSAGE
    code: str | None = str(resp.status_code)
    try:
        body = resp.json()
    except (json.JSONDecodeError, ValueError):
        body = None
    if isinstance(body, dict):
        message = (
            body.get("message")
            or body.get("error_description")
            or body.get("msg")
            or body.get("error")
            or message
        )
        if body.get("code"):
            code = str(body["code"])
    elif resp.text:
        message = resp.text
    return RemoteResponse.failure(str(message), code)


class BackendRESTClient:
    """Backend Service client: IRowStore + IAuthClient + function invocation."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._anon_key = anon_key
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None
        self._access_token: str | None = None

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    @property
    def rest_url(self) -> str:
        return f"{self._base}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self._base}/auth/v1"

    @property
    def functions_url(self) -> str:
        return f"{self._base}/functions/v1"

    @property
    def storage_url(self) -> str:
        return f"{self._base}/storage/v1"

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def set_access_token(self, token: str | None) -> None:
        self._access_token = token

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    def headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self._access_token or self._anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def execute(self, query: RowQuery) -> RemoteResponse[Any]:
        """Run one RowQuery against /rest/v1/{table}."""
        url = f"{self.rest_url}/{query.table}"
        extra: dict[str, str] = {"Content-Type": "application/json"}
        prefer = build_prefer(query)
        if prefer:
            extra["Prefer"] = prefer
        if query.cardinality is Cardinality.SINGLE:
            extra["Accept"] = _OBJECT_MEDIA_TYPE
        method = {
            Operation.SELECT: "GET",
            Operation.INSERT: "POST",
            Operation.UPSERT: "POST",
            Operation.UPDATE: "PATCH",
            Operation.DELETE: "DELETE",
        }[query.operation]
        try:
            resp = await self._http.request(
                method,
                url,
                params=build_params(query),
                headers=self.headers(extra),
                json=query.payload if query.payload is not None else None,
            )
        except httpx.HTTPError as e:
            logger.debug("Request to %s failed: %s", url, e)
            return RemoteResponse.failure(str(e) or e.__class__.__name__)

        if resp.status_code >= 400:
            return error_from_response(resp)
        count = parse_count(resp.headers.get("content-range"))
        data = resp.json() if resp.content else None
        if query.cardinality is Cardinality.MAYBE_SINGLE:
            rows = data if isinstance(data, list) else ([data] if data else [])
            return RemoteResponse(data=rows[0] if rows else None, count=count)
        if query.cardinality is Cardinality.SINGLE and data is None:
            return RemoteResponse.failure("No rows returned", CODE_SINGLE_ROW_NOT_FOUND)
        return RemoteResponse(data=data, count=count)

    async def sign_in_with_password(self, email: str, password: str) -> RemoteResponse[dict[str, Any]]:
        """Password grant; stores the access token for later row calls."""
        try:
            resp = await self._http.post(
                f"{self.auth_url}/token",
                params={"grant_type": "password"},
                headers=self.headers({"Content-Type": "application/json"}),
                json={"email": email, "password": password},
            )
        except httpx.HTTPError as e:
            return RemoteResponse.failure(str(e) or e.__class__.__name__)
        if resp.status_code in (400, 401):
            failed = error_from_response(resp)
            # invalid credentials are not worth retrying
            message = failed.error.message if failed.error else UNKNOWN_ERROR_MESSAGE
            return RemoteResponse.failure(message, "401")
        if resp.status_code >= 400:
            return error_from_response(resp)
        body = resp.json()
        self._access_token = body.get("access_token")
        return RemoteResponse(data=body)

    async def sign_out(self) -> RemoteResponse[None]:
        if self._access_token is None:
            return RemoteResponse()
        try:
            resp = await self._http.post(f"{self.auth_url}/logout", headers=self.headers())
        except httpx.HTTPError as e:
            return RemoteResponse.failure(str(e) or e.__class__.__name__)
        self._access_token = None
        if resp.status_code >= 400 and resp.status_code != 401:
            return error_from_response(resp)
        return RemoteResponse()

    async def invoke(self, function: str, body: dict[str, Any]) -> RemoteResponse[dict[str, Any]]:
        """POST body to a backend function; non-2xx becomes an error response."""
        try:
            resp = await self._http.post(
                f"{self.functions_url}/{function}",
                headers=self.headers({"Content-Type": "application/json"}),
                json=body,
            )
        except httpx.HTTPError as e:
            return RemoteResponse.failure(str(e) or e.__class__.__name__)
        if resp.status_code >= 400:
            return error_from_response(resp)
        return RemoteResponse(data=resp.json() if resp.content else {})
