"""Thin client for Supabase's PostgREST endpoint (``{url}/rest/v1``).

Filters are passed as PostgREST query parameters, one operator expression per
column, e.g. ``{"id": eq("cart-42"), "status": in_(["opened", "clicked"])}``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from cart_whisperer.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filters = dict[str, str]


def _quote(value: Any) -> str:
    text = str(value).lower() if isinstance(value, bool) else str(value)
    if any(ch in text for ch in ',()"\\ '):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def eq(value: Any) -> str:
    return f"eq.{_quote(value)}"


def in_(values: Iterable[Any]) -> str:
    return f"in.({','.join(_quote(v) for v in values)})"


def _total_from_content_range(header: str | None) -> int:
    # "0-24/573" or "*/0"
    if not header or "/" not in header:
        raise ValueError(f"missing total in Content-Range: {header!r}")
    return int(header.rsplit("/", 1)[1])


class SupabaseRestClient:
    """Row-level reads and writes against hosted Postgres tables."""

    def __init__(self, client: httpx.AsyncClient, *, anon_key: str) -> None:
        self._client = client
        self._anon_key = anon_key

    async def _send(
        self,
        method: str,
        table: str,
        *,
        action: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self._anon_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = await self._client.request(
                method,
                f"/rest/v1/{table}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise UpstreamAppError(
                code="database_unavailable",
                message="Database service is unavailable",
            ) from exc

        if response.status_code >= 300:
            logger.error(
                "database.request_failed",
                extra={
                    "table": table,
                    "action": action,
                    "upstream_status": response.status_code,
                },
            )
            raise UpstreamAppError(
                code=f"database_{action}_failed",
                message=f"Could not {action} {table}",
                details={"upstream_status": response.status_code},
            )
        return response

    @staticmethod
    def _rows(response: httpx.Response, table: str) -> list[Row]:
        try:
            rows = response.json()
        except ValueError:
            rows = None
        if not isinstance(rows, list):
            raise UpstreamAppError(
                code="database_malformed_response",
                message=f"Unexpected response reading {table}",
                details={"upstream_status": response.status_code},
            )
        return rows

    async def insert(self, table: str, row: Row, *, returning: bool = False) -> list[Row]:
        """Insert one row into ``table``.

        Returns the stored row (as a one-element list) when ``returning`` is
        set, otherwise an empty list.

        Raises:
            UpstreamAppError: If the database rejects the row or is unreachable.
        """
        response = await self._send(
            "POST",
            table,
            action="insert",
            json=row,
            prefer="return=representation" if returning else "return=minimal",
        )
        return self._rows(response, table) if returning else []

    async def select(
        self,
        table: str,
        *,
        filters: Filters | None = None,
        columns: str = "*",
        order: str | None = None,
        limit: int | None = None,
    ) -> list[Row]:
        params = {"select": columns, **(filters or {})}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        response = await self._send("GET", table, action="select", params=params)
        return self._rows(response, table)

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        """Update matching rows and return them; an empty list means no match."""
        response = await self._send(
            "PATCH",
            table,
            action="update",
            params=filters,
            json=values,
            prefer="return=representation",
        )
        return self._rows(response, table)

    async def delete(self, table: str, *, filters: Filters) -> list[Row]:
        """Delete matching rows and return them; an empty list means no match."""
        response = await self._send(
            "DELETE",
            table,
            action="delete",
            params=filters,
            prefer="return=representation",
        )
        return self._rows(response, table)

    async def count(self, table: str, *, filters: Filters | None = None) -> int:
        """Exact number of rows matching ``filters``, without fetching them."""
        response = await self._send(
            "HEAD",
            table,
            action="select",
            params={"select": "*", **(filters or {})},
            prefer="count=exact",
        )
        try:
            return _total_from_content_range(response.headers.get("content-range"))
        except ValueError as exc:
            raise UpstreamAppError(
                code="database_malformed_response",
                message=f"Unexpected response counting {table}",
                details={"upstream_status": response.status_code},
            ) from exc
