"""Tests for the in-memory registry."""

import pytest

from semspine.connectors.sql import SqlConnector
from semspine.core.errors import ConfigError
from semspine.core.models import DataSourceRef, MappingRule, SourceKind, Term
from semspine.registry import MemoryRegistry, Registry


class TestMemoryRegistry:
    def test_protocol(self):
        assert isinstance(MemoryRegistry(), Registry)

    @pytest.mark.asyncio
    async def test_upserts_replace_by_id(self):
        registry = MemoryRegistry()
        await registry.upsert_source(DataSourceRef(id="pg", kind=SourceKind.SQL, name="Old"))
        await registry.upsert_source(DataSourceRef(id="api", kind=SourceKind.REST, name="API"))
        await registry.upsert_source(DataSourceRef(id="pg", kind=SourceKind.SQL, name="New"))
        assert [(s.id, s.name) for s in await registry.get_sources()] == [("pg", "New"), ("api", "API")]

    @pytest.mark.asyncio
    async def test_get_contract_by_id(self, contract):
        registry = MemoryRegistry()
        assert await registry.get_contract() is None
        await registry.set_contract(contract)
        assert await registry.get_contract() is contract
        assert await registry.get_contract("c1") is contract
        assert await registry.get_contract("other") is None


class TestSnapshot:
    @pytest.mark.asyncio
    async def test_requires_contract(self):
        with pytest.raises(ConfigError):
            await MemoryRegistry().snapshot()

    @pytest.mark.asyncio
    async def test_merges_terms_and_rules(self, contract, make_connector):
        registry = MemoryRegistry()
        await registry.set_contract(contract)
        await registry.upsert_term(Term(id="t_customer", name="Client"))
        await registry.upsert_rule(
            MappingRule(id="r_extra", term_id="t_customer", source_id="pg", object="clients")
        )

        ctx = await registry.snapshot({"pg": make_connector("pg")})

        assert [t.name for t in ctx.contract.terms] == ["Client"]
        assert [r.id for r in ctx.contract.rules] == ["r_pg_customers", "r_extra"]
        assert contract.terms[0].name == "Customer"
        assert ctx.connector("pg") is not None

    @pytest.mark.asyncio
    async def test_builds_connectors_from_sources(self, contract):
        registry = MemoryRegistry()
        await registry.set_contract(contract)
        ref = DataSourceRef(id="pg", kind=SourceKind.SQL, name="Warehouse", config={"url": "sqlite://"})
        await registry.upsert_source(ref)

        ctx = await registry.snapshot()

        assert isinstance(ctx.connector("pg"), SqlConnector)
        assert ctx.sources["pg"] == ref
