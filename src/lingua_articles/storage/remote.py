"""Table-oriented query client for the hosted backend (PostgREST wire format)."""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import httpx
import structlog

from lingua_articles.errors import StoreRejected, StoreUnavailable

logger = structlog.get_logger()

# Gateway-level statuses mean the database is down, not that it refused us.
_UNAVAILABLE_STATUSES = {502, 503, 504}

Row = dict[str, Any]


class RemoteStore(Protocol):
    """Query contract the user data layer relies on.

    Filters are equality matches on every given column. All methods raise
    ``StoreUnavailable`` on transport failure and ``StoreRejected`` when the
    backend refuses the request.
    """

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        order_by: str | Sequence[str] | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[Row]: ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row: ...

    async def update(
        self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]
    ) -> list[Row]: ...

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> list[Row]: ...


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _columns(order_by: str | Sequence[str]) -> list[str]:
    return [order_by] if isinstance(order_by, str) else list(order_by)


class PostgrestStore:
    """RemoteStore over a PostgREST endpoint (e.g. a Supabase project).

    Args:
        base_url: Project URL; ``/rest/v1`` is appended.
        api_key: Anonymous or service key sent as ``apikey`` and bearer token.
        timeout: Seconds per request, or None to leave it to the transport.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/rest/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PostgrestStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @staticmethod
    def _filter_params(filters: Mapping[str, Any] | None) -> dict[str, str]:
        return {column: f"eq.{_encode_value(v)}" for column, v in (filters or {}).items()}

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        returning: bool = False,
    ) -> list[Row]:
        headers = {"Prefer": "return=representation"} if returning else None
        try:
            response = await self._client.request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
        except httpx.TransportError as e:
            logger.error("backend_unreachable", method=method, table=table, error=str(e))
            raise StoreUnavailable(f"{method} {table}: {e}") from e

        if response.status_code in _UNAVAILABLE_STATUSES:
            raise StoreUnavailable(f"{method} {table}: HTTP {response.status_code}")
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get("message", response.text) if isinstance(body, dict) else response.text
            logger.warning(
                "backend_rejected",
                method=method,
                table=table,
                status=response.status_code,
                detail=detail,
            )
            raise StoreRejected(f"{method} {table}: {detail}", response.status_code)

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        order_by: str | Sequence[str] | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[Row]:
        params = {"select": columns, **self._filter_params(filters)}
        if order_by:
            direction = "asc" if ascending else "desc"
            params["order"] = ",".join(f"{c}.{direction}" for c in _columns(order_by))
        if limit is not None:
            params["limit"] = str(limit)
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        rows = await self._request("POST", table, json=dict(row), returning=True)
        if not rows:
            raise StoreRejected(f"POST {table}: no row returned")
        return rows[0]

    async def update(
        self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]
    ) -> list[Row]:
        return await self._request(
            "PATCH",
            table,
            params=self._filter_params(filters),
            json=dict(values),
            returning=True,
        )

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> list[Row]:
        return await self._request(
            "DELETE", table, params=self._filter_params(filters), returning=True
        )
