"""
Shared pytest fixtures for semspine tests.

This module provides:
- A small customer/order semantic contract
- In-memory fake connectors (plain, describable, failing, slow)
- Settings with no lineage backoff so retry tests stay fast

Fake connectors are exposed through factory fixtures so test modules never
import from conftest.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from semspine.connectors.base import ExecuteResult, make_step
from semspine.core.models import (
    DiscoveredField,
    DiscoveredObject,
    DiscoverySummary,
    MappingRule,
    NativeQuery,
    SemanticContract,
    SourceKind,
    Term,
)
from semspine.core.settings import SemspineSettings, clear_settings_cache


# =============================================================================
# Fake connectors
# =============================================================================


class FakeConnector:
    """Connector returning canned rows; records every native query it gets."""

    def __init__(
        self,
        id: str,
        rows: list[dict[str, Any]] | None = None,
        *,
        kind: SourceKind = SourceKind.SQL,
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        self._id = id
        self._kind = kind
        self.rows = rows or []
        self.delay = delay
        self.error = error
        self.calls: list[NativeQuery] = []

    @property
    def id(self) -> str:
        return self._id

    @property
    def kind(self) -> SourceKind:
        return self._kind

    async def execute(self, native_query: NativeQuery) -> ExecuteResult:
        self.calls.append(native_query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ExecuteResult(rows=list(self.rows), step=make_step(self._id, native_query))


class FakeDescribableConnector(FakeConnector):
    """Fake connector that also reports a schema."""

    def __init__(self, id: str, summary: DiscoverySummary | None = None, *, describe_error: Exception | None = None, **kwargs):
        super().__init__(id, **kwargs)
        self.summary = summary or DiscoverySummary()
        self.describe_error = describe_error
        self.describe_calls = 0

    async def describe(self) -> DiscoverySummary:
        self.describe_calls += 1
        if self.describe_error is not None:
            raise self.describe_error
        return self.summary


@pytest.fixture
def make_connector():
    """Factory for :class:`FakeConnector`."""
    return FakeConnector


@pytest.fixture
def make_describable():
    """Factory for :class:`FakeDescribableConnector`."""
    return FakeDescribableConnector


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep SEMSPINE_* from the environment out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("SEMSPINE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> SemspineSettings:
    return SemspineSettings(
        _env_file=None,
        lineage_backoff_seconds=0,
        plan_timeout_seconds=5,
    )


# =============================================================================
# Contracts
# =============================================================================


@pytest.fixture
def customer_term() -> Term:
    return Term(
        id="t_customer",
        name="Customer",
        description="A paying account",
        owner="cs-team",
        examples=["ACME Corp"],
        business_definition="An organisation with an active paid subscription",
    )


@pytest.fixture
def customers_rule() -> MappingRule:
    return MappingRule(
        id="r_pg_customers",
        term_id="t_customer",
        source_id="pg",
        object="customers",
        expression="",
        fields=["id", "name"],
        field_mappings={"id": "id", "name": "name"},
    )


@pytest.fixture
def contract(customer_term, customers_rule) -> SemanticContract:
    """Single-rule contract: customers on source ``pg``."""
    return SemanticContract(
        id="c1",
        name="Customer contract",
        terms=[customer_term],
        rules=[customers_rule],
    )


@pytest.fixture
def federated_contract(customer_term) -> SemanticContract:
    """Customer object mapped on a SQL source and a CRM source."""
    return SemanticContract(
        id="c2",
        name="Federated customers",
        terms=[
            customer_term,
            Term(id="t_order", name="Order", description="A placed order"),
        ],
        rules=[
            MappingRule(
                id="r_pg",
                term_id="t_customer",
                source_id="pg",
                object="customer",
                fields=["id", "name", "region"],
                field_mappings={"id": "customer_id", "name": "customer_name", "region": "region_code"},
            ),
            MappingRule(
                id="r_sf",
                term_id="t_customer",
                source_id="sf",
                object="Customer",
                fields=["id", "name"],
                field_mappings={"id": "Id", "name": "Name"},
            ),
            MappingRule(
                id="r_orders",
                term_id="t_order",
                source_id="pg",
                object="customer_orders",
                fields=["id"],
                field_mappings={"id": "order_id"},
            ),
        ],
    )


@pytest.fixture
def customers_summary() -> DiscoverySummary:
    return DiscoverySummary(
        objects=[
            DiscoveredObject(
                name="customers",
                fields=[
                    DiscoveredField(name="id", type="integer", nullable=False),
                    DiscoveredField(name="name", type="text"),
                ],
            )
        ]
    )
