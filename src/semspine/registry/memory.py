"""
Registry collaborator.

The registry is where sources, terms, mapping rules and the active contract
live between requests. :class:`Registry` is the async interface the rest of
the system depends on; :class:`MemoryRegistry` is the in-process
implementation used for development and tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from semspine.connectors.base import Connector
from semspine.connectors.registry import build_connectors
from semspine.core.errors import ConfigError
from semspine.core.logging import get_logger
from semspine.core.models import DataSourceRef, MappingRule, SemanticContract, Term
from semspine.translation.context import EngineContext

logger = get_logger(__name__)


@runtime_checkable
class Registry(Protocol):
    async def get_sources(self) -> list[DataSourceRef]: ...

    async def upsert_source(self, source: DataSourceRef) -> None: ...

    async def get_contract(self, contract_id: str | None = None) -> SemanticContract | None: ...

    async def set_contract(self, contract: SemanticContract) -> None: ...

    async def list_terms(self) -> list[Term]: ...

    async def upsert_term(self, term: Term) -> None: ...

    async def list_rules(self) -> list[MappingRule]: ...

    async def upsert_rule(self, rule: MappingRule) -> None: ...


class MemoryRegistry:
    """Dict-backed registry. Upserts replace by id and keep first-insert order."""

    def __init__(self):
        self._sources: dict[str, DataSourceRef] = {}
        self._contract: SemanticContract | None = None
        self._terms: dict[str, Term] = {}
        self._rules: dict[str, MappingRule] = {}

    # ── Sources ──────────────────────────────────────────────────────

    async def get_sources(self) -> list[DataSourceRef]:
        return list(self._sources.values())

    async def upsert_source(self, source: DataSourceRef) -> None:
        self._sources[source.id] = source

    # ── Contract ─────────────────────────────────────────────────────

    async def get_contract(self, contract_id: str | None = None) -> SemanticContract | None:
        if self._contract is None:
            return None
        if contract_id is not None and self._contract.id != contract_id:
            return None
        return self._contract

    async def set_contract(self, contract: SemanticContract) -> None:
        self._contract = contract

    # ── Terms and rules ──────────────────────────────────────────────

    async def list_terms(self) -> list[Term]:
        return list(self._terms.values())

    async def upsert_term(self, term: Term) -> None:
        self._terms[term.id] = term

    async def list_rules(self) -> list[MappingRule]:
        return list(self._rules.values())

    async def upsert_rule(self, rule: MappingRule) -> None:
        self._rules[rule.id] = rule

    # ── Snapshot ─────────────────────────────────────────────────────

    async def snapshot(self, connectors: Mapping[str, Connector] | None = None) -> EngineContext:
        """
        Assemble an :class:`EngineContext` from the registry.

        Terms and rules upserted individually override the stored contract's
        entries with the same id. Connectors are built from the registered
        sources unless given.
        """
        contract = self._contract
        if contract is None:
            raise ConfigError("No contract registered")

        terms = {t.id: t for t in contract.terms} | self._terms
        rules = {r.id: r for r in contract.rules} | self._rules
        merged = contract.model_copy(update={"terms": list(terms.values()), "rules": list(rules.values())})

        sources = await self.get_sources()
        if connectors is None:
            connectors = build_connectors(sources)
        logger.debug("registry.snapshot", contract_id=merged.id, sources=len(sources), rules=len(rules))
        return EngineContext.build(merged, connectors, sources)


__all__ = ["Registry", "MemoryRegistry"]
