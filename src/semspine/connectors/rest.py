"""Generic REST connector.

For JSON APIs without schema introspection. Discovery goes through
``list_endpoints()`` + ``sample()``; execution builds a GET request against
the object's endpoint with ``limit`` and ``filter[i][field]=op:value`` query
parameters. httpx percent-encodes every parameter, so filter values never
reach the URL raw.

Usage:
    connector = RestConnector(
        "catalog",
        base_url="https://api.example.com",
        endpoints=["/customers", "/orders"],
    )
    rows = await connector.sample("/customers", 25)
"""

from __future__ import annotations

from typing import Any

import httpx

from semspine.core.errors import ConnectorQueryError, ConnectorUnavailableError
from semspine.core.logging import get_logger
from semspine.core.models import NativeQuery, SourceKind

from .base import ExecuteResult, make_step

logger = get_logger(__name__)

DEFAULT_ENDPOINTS = ["/items", "/records", "/users"]


class RestConnector:
    """
    Connector for a generic JSON REST API.

    ``endpoints`` is the manifest used for discovery; ``object_endpoints``
    overrides the default ``/<object>s`` path per object.
    """

    def __init__(
        self,
        id: str,
        *,
        base_url: str,
        endpoints: list[str] | None = None,
        object_endpoints: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._id = id
        self._base_url = base_url.rstrip("/")
        self._endpoints = endpoints
        self._object_endpoints = object_endpoints or {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(headers=headers, timeout=timeout)

    @property
    def id(self) -> str:
        return self._id

    @property
    def kind(self) -> SourceKind:
        return SourceKind.REST

    @property
    def base_url(self) -> str:
        return self._base_url

    # ── Discovery ────────────────────────────────────────────────────

    async def list_endpoints(self) -> list[str]:
        if self._endpoints is not None:
            return list(self._endpoints)
        return list(DEFAULT_ENDPOINTS)

    async def sample(self, endpoint: str, n: int = 25) -> list[dict[str, Any]]:
        return await self._get_rows(f"{self._base_url}{endpoint}", {"limit": n})

    # ── Execution ────────────────────────────────────────────────────

    def endpoint_for(self, object_name: str) -> str:
        return self._object_endpoints.get(object_name) or f"/{object_name.lower()}s"

    def build_params(self, native_query: NativeQuery) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = [("limit", str(native_query.limit))]
        for i, clause in enumerate(native_query.where):
            params.append((f"filter[{i}][{clause.field}]", f"{clause.op}:{_render_value(clause.value)}"))
        return params

    async def execute(self, native_query: NativeQuery) -> ExecuteResult:
        url = f"{self._base_url}{self.endpoint_for(native_query.object)}"
        params = self.build_params(native_query)
        request_url = str(httpx.URL(url, params=params))
        rows = await self._get_rows(url, params)

        logger.debug("rest.executed", source_id=self._id, url=request_url, rows=len(rows))
        return ExecuteResult(rows=rows, step=make_step(self._id, native_query, query=request_url))

    async def _get_rows(self, url: str, params: Any) -> list[dict[str, Any]]:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error_cls = ConnectorUnavailableError if status >= 500 else ConnectorQueryError
            raise error_cls(
                f"GET {url} returned {status}",
                cause=e,
            ).with_context(source_id=self._id, url=url, http_status=status) from e
        except httpx.HTTPError as e:
            raise ConnectorUnavailableError(
                f"GET {url} failed: {e}",
                cause=e,
            ).with_context(source_id=self._id, url=url) from e

        if not response.content:
            return []
        try:
            payload = response.json()
        except ValueError as e:
            raise ConnectorQueryError(
                f"GET {url} did not return JSON",
                cause=e,
            ).with_context(source_id=self._id, url=url) from e

        if payload is None:
            return []
        rows = payload if isinstance(payload, list) else [payload]
        if not all(isinstance(row, dict) for row in rows):
            raise ConnectorQueryError(
                f"GET {url} did not return JSON objects",
            ).with_context(source_id=self._id, url=url)
        return rows

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (list, tuple, set)):
        return ",".join(_render_value(v) for v in value)
    return str(value)


__all__ = [
    "RestConnector",
    "DEFAULT_ENDPOINTS",
]
