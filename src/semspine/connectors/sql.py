"""Relational connector built on SQLAlchemy Core.

Native queries are rendered as SQLAlchemy ``select()`` constructs, so every
caller-supplied value travels as a bound parameter. Object and column names
come from the semantic contract: plain identifiers become column references,
anything else (``SUM(amount)``, ``first_name || ' ' || last_name``) is treated
as a contract-authored expression and emitted as a literal column.

Blocking DBAPI drivers run on a worker thread via ``asyncio.to_thread`` so the
event loop keeps dispatching other plans.

Usage:
    connector = SqlConnector("warehouse", url="postgresql+psycopg://...")
    result = await connector.execute(plan.native_query)
"""

from __future__ import annotations

import asyncio
import re
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from semspine.core.errors import ConfigError, ConnectorQueryError, ConnectorUnavailableError
from semspine.core.logging import get_logger
from semspine.core.models import (
    DiscoveredField,
    DiscoveredObject,
    DiscoverySummary,
    NativeQuery,
    ObjectHints,
    SortDirection,
    SourceKind,
)

from .base import ExecuteResult, make_step

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_QUALIFIED_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)+$")

_CREATED_HINTS = ("created_at", "created", "createddate", "created_date")
_UPDATED_HINTS = ("updated_at", "updated", "modified_at", "lastmodifieddate", "updated_date")


def _column_ref(expr: str) -> Any:
    """Column element for a concrete mapping expression."""
    if _IDENTIFIER.match(expr):
        return sa.column(expr)
    # Qualified names and contract-authored expressions are emitted verbatim;
    # they never carry caller input.
    return sa.literal_column(expr)


def _table_ref(name: str) -> Any:
    if _IDENTIFIER.match(name):
        return sa.table(name)
    if _QUALIFIED_IDENTIFIER.match(name):
        schema, _, table = name.rpartition(".")
        return sa.table(table, schema=schema)
    raise ConnectorQueryError(f"Invalid table name: {name!r}").with_context(object=name)


def _condition(column: Any, op: str, value: Any) -> Any:
    match op.upper():
        case "=":
            return column == value
        case "!=" | "<>":
            return column != value
        case ">":
            return column > value
        case "<":
            return column < value
        case ">=":
            return column >= value
        case "<=":
            return column <= value
        case "IN":
            return column.in_(value if isinstance(value, (list, tuple, set)) else [value])
        case "NOT IN":
            return column.not_in(value if isinstance(value, (list, tuple, set)) else [value])
        case "LIKE":
            return column.like(value)
    raise ConnectorQueryError(f"Unsupported operator for SQL: {op!r}")


def build_select(native_query: NativeQuery) -> sa.Select:
    """Render a native query as a parameterized SQLAlchemy ``Select``."""
    table = _table_ref(native_query.object)
    columns = [_column_ref(expr) for expr in native_query.select] or [sa.literal_column("*")]
    stmt = sa.select(*columns).select_from(table)

    for clause in native_query.where:
        stmt = stmt.where(_condition(_column_ref(clause.field), clause.op, clause.value))

    if native_query.order_by:
        order_col = _column_ref(native_query.order_by.field)
        stmt = stmt.order_by(
            order_col.desc() if native_query.order_by.direction == SortDirection.DESC else order_col.asc()
        )

    return stmt.limit(native_query.limit)


class SqlConnector:
    """
    Relational database connector.

    Accepts either a SQLAlchemy URL or a ready-made ``Engine``. The engine's
    dialect decides quoting and placeholder style; values are always bound.
    """

    def __init__(
        self,
        id: str,
        *,
        url: str | None = None,
        engine: Engine | None = None,
        schema: str | None = None,
        **engine_options: Any,
    ):
        if engine is None and url is None:
            raise ConfigError(f"SQL source {id} needs a url or an engine")
        self._id = id
        self._engine = engine if engine is not None else sa.create_engine(url, **engine_options)
        self._schema = schema

    @property
    def id(self) -> str:
        return self._id

    @property
    def kind(self) -> SourceKind:
        return SourceKind.SQL

    @property
    def engine(self) -> Engine:
        return self._engine

    # ── Execution ────────────────────────────────────────────────────

    async def execute(self, native_query: NativeQuery) -> ExecuteResult:
        stmt = build_select(native_query)
        compiled = stmt.compile(dialect=self._engine.dialect)
        rows = await asyncio.to_thread(self._run, stmt, native_query.object)

        logger.debug(
            "sql.executed",
            source_id=self._id,
            object=native_query.object,
            rows=len(rows),
        )
        step = make_step(
            self._id,
            native_query,
            query={"sql": str(compiled), "params": dict(compiled.params)},
        )
        return ExecuteResult(rows=rows, step=step)

    def _run(self, stmt: sa.Select, object_name: str) -> list[dict[str, Any]]:
        try:
            conn = self._engine.connect()
        except SQLAlchemyError as e:
            raise ConnectorUnavailableError(
                f"Cannot connect to source {self._id}: {e}",
                cause=e,
            ).with_context(source_id=self._id) from e

        with conn:
            try:
                result = conn.execute(stmt)
                return [dict(row._mapping) for row in result]
            except SQLAlchemyError as e:
                raise ConnectorQueryError(
                    f"Query on {object_name} failed: {e}",
                    cause=e,
                ).with_context(source_id=self._id, object=object_name) from e

    # ── Discovery ────────────────────────────────────────────────────

    async def describe(self) -> DiscoverySummary:
        return await asyncio.to_thread(self._describe)

    def _describe(self) -> DiscoverySummary:
        try:
            inspector = sa.inspect(self._engine)
            names = inspector.get_table_names(schema=self._schema)
            names += inspector.get_view_names(schema=self._schema)
            objects = [self._describe_table(inspector, name) for name in names]
        except SQLAlchemyError as e:
            raise ConnectorUnavailableError(
                f"Cannot introspect source {self._id}: {e}",
                cause=e,
            ).with_context(source_id=self._id) from e
        return DiscoverySummary(objects=objects)

    def _describe_table(self, inspector: Any, name: str) -> DiscoveredObject:
        columns = inspector.get_columns(name, schema=self._schema)
        fields = [
            DiscoveredField(
                name=col["name"],
                type=str(col["type"]).lower(),
                nullable=bool(col.get("nullable", True)),
            )
            for col in columns
        ]
        try:
            pk = inspector.get_pk_constraint(name, schema=self._schema).get("constrained_columns") or []
        except NotImplementedError:
            # views on some dialects
            pk = []
        lowered = {f.name.lower(): f.name for f in fields}
        hints = ObjectHints(
            id_field=pk[0] if pk else lowered.get("id"),
            created_at=next((lowered[h] for h in _CREATED_HINTS if h in lowered), None),
            updated_at=next((lowered[h] for h in _UPDATED_HINTS if h in lowered), None),
        )
        return DiscoveredObject(name=name, fields=fields, hints=hints)

    async def aclose(self) -> None:
        self._engine.dispose()


__all__ = [
    "SqlConnector",
    "build_select",
]
