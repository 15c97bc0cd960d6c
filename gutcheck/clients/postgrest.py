"""Minimal PostgREST (Supabase REST) client."""

from typing import Any

import httpx

from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)


class RowStoreError(Exception):
    """A row-store request failed."""


class PostgrestClient:
    """Async client for the PostgREST interface exposed by Supabase."""

    def __init__(self, base_url: str, api_key: str, client: httpx.AsyncClient | None = None):
        """Initialize PostgREST client.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: Service or anon key
            client: Pre-built HTTP client, mainly for tests
        """
        self.rest_url = base_url.rstrip("/") + "/rest/v1"
        self.client = client or httpx.AsyncClient(
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    async def select(
        self,
        table: str,
        filters: list[tuple[str, str, Any]] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select rows from a table.

        Args:
            table: Table name
            filters: (column, operator, value) triples, e.g. ("user_id", "eq", "u1")
            order: Order clause, e.g. "entry_date.desc"
            limit: Maximum number of rows

        Returns:
            Rows as dictionaries
        """
        params: list[tuple[str, str]] = [("select", "*")]
        for column, operator, value in filters or []:
            params.append((column, f"{operator}.{value}"))
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))

        logger.debug(f"Selecting from {table} with {params}")
        response = await self._request("GET", table, params=params)
        return response.json()

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a row and return it as stored."""
        response = await self._request(
            "POST",
            table,
            json=row,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        return rows[0] if isinstance(rows, list) and rows else row

    async def _request(self, method: str, table: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, f"{self.rest_url}/{table}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RowStoreError(f"{method} {table} failed with {e.response.status_code}: {e.response.text}") from e
        except httpx.HTTPError as e:
            raise RowStoreError(f"{method} {table} failed: {e}") from e
        return response

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
