"""Salesforce (CRM-style) connector.

Talks to the Salesforce REST API with an already-issued access token; token
acquisition and refresh belong to the caller. Native queries are rendered as
SOQL: field and object names must be plain (optionally dotted) identifiers,
and values are escaped or emitted as SOQL date literals.

Usage:
    crm = SalesforceConnector(
        "sf",
        instance_url="https://acme.my.salesforce.com",
        access_token=token,
        objects=["Account", "Opportunity"],
    )
    summary = await crm.describe()
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any

import httpx

from semspine.core.errors import ConnectorQueryError, ConnectorUnavailableError
from semspine.core.logging import get_logger
from semspine.core.models import (
    DiscoveredField,
    DiscoveredObject,
    DiscoverySummary,
    NativeQuery,
    ObjectHints,
    SourceKind,
)

from .base import ExecuteResult, make_step

logger = get_logger(__name__)

DEFAULT_API_VERSION = "v59.0"
DEFAULT_OBJECTS = ("Account", "Opportunity")

_SOQL_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_DATE_LITERAL = re.compile(r"^(YESTERDAY|TODAY|TOMORROW|(LAST|THIS|NEXT)_[A-Z_]+(:\d+)?)$")
_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
_SOQL_OPERATORS = {
    "=": "=",
    "!=": "!=",
    "<>": "!=",
    ">": ">",
    "<": "<",
    ">=": ">=",
    "<=": "<=",
    "IN": "IN",
    "NOT IN": "NOT IN",
    "LIKE": "LIKE",
}


def soql_identifier(name: str) -> str:
    if not _SOQL_IDENTIFIER.match(name):
        raise ConnectorQueryError(f"Not a SOQL field or object name: {name!r}")
    return name


def soql_value(value: Any) -> str:
    """Render a Python value as a SOQL literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return "(" + ", ".join(soql_value(v) for v in value) + ")"
    text = str(value)
    if _DATE_LITERAL.match(text):
        return text
    return "'" + "".join(_ESCAPES.get(ch, ch) for ch in text) + "'"


def build_soql(native_query: NativeQuery) -> str:
    fields = [soql_identifier(f) for f in native_query.select] or ["Id"]
    soql = f"SELECT {', '.join(fields)} FROM {soql_identifier(native_query.object)}"

    conditions = []
    for clause in native_query.where:
        op = _SOQL_OPERATORS.get(clause.op.upper())
        if op is None:
            raise ConnectorQueryError(f"Unsupported operator for SOQL: {clause.op!r}")
        value = clause.value
        if op in ("IN", "NOT IN") and not isinstance(value, (list, tuple, set)):
            value = [value]
        conditions.append(f"{soql_identifier(clause.field)} {op} {soql_value(value)}")
    if conditions:
        soql += " WHERE " + " AND ".join(conditions)

    if native_query.order_by:
        soql += f" ORDER BY {soql_identifier(native_query.order_by.field)} {native_query.order_by.direction.value}"

    return soql + f" LIMIT {native_query.limit}"


class SalesforceConnector:
    """Connector for a Salesforce org (describe + SOQL query)."""

    def __init__(
        self,
        id: str,
        *,
        instance_url: str,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        objects: list[str] | tuple[str, ...] = DEFAULT_OBJECTS,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._id = id
        self._instance_url = instance_url.rstrip("/")
        self._api_version = api_version
        self._objects = list(objects)
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def id(self) -> str:
        return self._id

    @property
    def kind(self) -> SourceKind:
        return SourceKind.SALESFORCE

    @property
    def api_root(self) -> str:
        return f"{self._instance_url}/services/data/{self._api_version}"

    # ── Discovery ────────────────────────────────────────────────────

    async def describe(self) -> DiscoverySummary:
        objects = []
        for name in self._objects:
            payload = await self._get_json(f"{self.api_root}/sobjects/{name}/describe", missing_ok=True)
            if payload is None:
                logger.info("salesforce.object_missing", source_id=self._id, object=name)
                continue
            objects.append(_describe_object(name, payload))
        return DiscoverySummary(objects=objects)

    # ── Execution ────────────────────────────────────────────────────

    async def execute(self, native_query: NativeQuery) -> ExecuteResult:
        soql = build_soql(native_query)
        payload = await self._get_json(f"{self.api_root}/query", params={"q": soql})
        records = list(payload.get("records") or [])

        while (
            not payload.get("done", True)
            and payload.get("nextRecordsUrl")
            and len(records) < native_query.limit
        ):
            payload = await self._get_json(f"{self._instance_url}{payload['nextRecordsUrl']}")
            records.extend(payload.get("records") or [])

        rows = [
            {k: v for k, v in record.items() if k != "attributes"}
            for record in records[: native_query.limit]
        ]
        logger.debug("salesforce.executed", source_id=self._id, object=native_query.object, rows=len(rows))
        return ExecuteResult(rows=rows, step=make_step(self._id, native_query, query=soql))

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        missing_ok: bool = False,
    ) -> Any:
        try:
            response = await self._client.get(url, params=params, headers=self._headers)
            if missing_ok and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error_cls = ConnectorUnavailableError if status >= 500 else ConnectorQueryError
            raise error_cls(
                f"Salesforce request failed with {status}: {_error_message(e.response)}",
                cause=e,
            ).with_context(source_id=self._id, url=url, http_status=status) from e
        except httpx.HTTPError as e:
            raise ConnectorUnavailableError(
                f"Salesforce request failed: {e}",
                cause=e,
            ).with_context(source_id=self._id, url=url) from e
        except ValueError as e:
            raise ConnectorQueryError(
                "Salesforce returned a non-JSON body",
                cause=e,
            ).with_context(source_id=self._id, url=url) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _describe_object(name: str, payload: dict[str, Any]) -> DiscoveredObject:
    fields = [
        DiscoveredField(
            name=f["name"],
            type=f.get("type", "string"),
            nullable=bool(f.get("nillable", True)),
        )
        for f in payload.get("fields", [])
    ]
    present = {f.name for f in fields}
    hints = ObjectHints(
        id_field="Id" if "Id" in present else None,
        created_at="CreatedDate" if "CreatedDate" in present else None,
        updated_at="LastModifiedDate" if "LastModifiedDate" in present else None,
    )
    return DiscoveredObject(name=payload.get("name", name), fields=fields, hints=hints)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, list) and body and isinstance(body[0], dict):
        return str(body[0].get("message", body[0]))
    return str(body)[:200]


__all__ = [
    "SalesforceConnector",
    "build_soql",
    "soql_value",
    "soql_identifier",
]
