"""Tests for the SQLAlchemy-backed connector."""

import pytest
import pytest_asyncio
import sqlalchemy as sa

from semspine.connectors.base import Describable
from semspine.connectors.sql import SqlConnector, build_select
from semspine.core.errors import ConfigError, ConnectorQueryError
from semspine.core.models import NativeQuery, OrderBy, SortDirection, WhereClause


@pytest.fixture
def sqlite_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'warehouse.db'}"
    engine = sa.create_engine(url)
    with engine.begin() as conn:
        conn.execute(
            sa.text(
                "CREATE TABLE customers ("
                "customer_id INTEGER PRIMARY KEY, customer_name TEXT NOT NULL, "
                "region_code TEXT, created_at TEXT)"
            )
        )
        conn.execute(
            sa.text(
                "INSERT INTO customers VALUES "
                "(1, 'Acme', 'EU', '2024-01-01'), "
                "(2, 'Globex', 'US', '2024-02-01'), "
                "(3, 'Initech', 'US', '2024-03-01')"
            )
        )
    engine.dispose()
    return url


@pytest_asyncio.fixture
async def connector(sqlite_url):
    conn = SqlConnector("pg", url=sqlite_url)
    yield conn
    await conn.aclose()


class TestBuildSelect:
    def test_values_are_bound_not_inlined(self):
        injected = "x'; DROP TABLE customers; --"
        stmt = build_select(
            NativeQuery(
                object="customers",
                select=["customer_id"],
                where=[WhereClause(field="customer_name", op="=", value=injected)],
                limit=5,
            )
        )
        compiled = stmt.compile()
        assert "DROP TABLE" not in str(compiled)
        assert injected in compiled.params.values()

    def test_invalid_table_name_rejected(self):
        with pytest.raises(ConnectorQueryError):
            build_select(NativeQuery(object="customers; drop", limit=1))

    def test_schema_qualified_table(self):
        sql = str(build_select(NativeQuery(object="sales.customers", select=["id"], limit=1)))
        assert "sales.customers" in sql

    def test_unknown_operator_rejected(self):
        with pytest.raises(ConnectorQueryError):
            build_select(
                NativeQuery(object="t", where=[WhereClause(field="a", op="BETWEEN", value=1)], limit=1)
            )


class TestSqlConnector:
    def test_requires_url_or_engine(self):
        with pytest.raises(ConfigError):
            SqlConnector("pg")

    @pytest.mark.asyncio
    async def test_execute_filters_orders_and_limits(self, connector):
        result = await connector.execute(
            NativeQuery(
                object="customers",
                select=["customer_id", "customer_name"],
                where=[WhereClause(field="region_code", op="=", value="US")],
                order_by=OrderBy(field="customer_id", direction=SortDirection.DESC),
                limit=10,
            )
        )
        assert result.rows == [
            {"customer_id": 3, "customer_name": "Initech"},
            {"customer_id": 2, "customer_name": "Globex"},
        ]
        assert result.step.source_id == "pg"
        assert result.step.fields == ["customer_id", "customer_name"]
        assert "US" in result.step.query["params"].values()

    @pytest.mark.asyncio
    async def test_in_operator_accepts_list(self, connector):
        result = await connector.execute(
            NativeQuery(
                object="customers",
                select=["customer_id"],
                where=[WhereClause(field="customer_id", op="IN", value=[1, 3])],
                order_by=OrderBy(field="customer_id"),
                limit=10,
            )
        )
        assert [r["customer_id"] for r in result.rows] == [1, 3]

    @pytest.mark.asyncio
    async def test_limit_applied(self, connector):
        result = await connector.execute(NativeQuery(object="customers", select=["customer_id"], limit=1))
        assert len(result.rows) == 1

    @pytest.mark.asyncio
    async def test_missing_table_is_query_error(self, connector):
        with pytest.raises(ConnectorQueryError):
            await connector.execute(NativeQuery(object="invoices", select=["id"], limit=1))

    @pytest.mark.asyncio
    async def test_describe(self, connector):
        assert isinstance(connector, Describable)
        summary = await connector.describe()
        customers = summary.find("customers")
        assert customers is not None
        assert customers.field_names() == {"customer_id", "customer_name", "region_code", "created_at"}
        assert customers.hints.id_field == "customer_id"
        assert customers.hints.created_at == "created_at"
        assert customers.hints.updated_at is None
