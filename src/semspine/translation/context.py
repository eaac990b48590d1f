"""
Immutable engine context.

An :class:`EngineContext` bundles the connectors, source records and semantic
contract one execution works against. It is never mutated; reconfiguration
builds a new context and swaps it into a :class:`ContextHolder`. An execution
that already took ``holder.current`` keeps that snapshot to the end, so it
never observes a half-applied update.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from semspine.connectors.base import Connector
from semspine.core.models import DataSourceRef, SemanticContract


@dataclass(frozen=True)
class EngineContext:
    """Snapshot of connectors, sources and contract for one execution."""

    contract: SemanticContract
    connectors: Mapping[str, Connector] = field(default_factory=dict)
    sources: Mapping[str, DataSourceRef] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "connectors", MappingProxyType(dict(self.connectors)))
        object.__setattr__(self, "sources", MappingProxyType(dict(self.sources)))

    @classmethod
    def build(
        cls,
        contract: SemanticContract,
        connectors: Mapping[str, Connector],
        sources: Iterable[DataSourceRef] = (),
    ) -> EngineContext:
        return cls(contract=contract, connectors=connectors, sources={s.id: s for s in sources})

    def connector(self, source_id: str) -> Connector | None:
        return self.connectors.get(source_id)

    def with_contract(self, contract: SemanticContract) -> EngineContext:
        return replace(self, contract=contract)

    def with_connectors(self, connectors: Mapping[str, Connector]) -> EngineContext:
        return replace(self, connectors=connectors)


class ContextHolder:
    """Holds the current :class:`EngineContext` and swaps it atomically."""

    def __init__(self, context: EngineContext):
        self._lock = threading.Lock()
        self._context = context

    @property
    def current(self) -> EngineContext:
        return self._context

    def swap(self, context: EngineContext) -> EngineContext:
        """Install ``context``; returns the one it replaced."""
        with self._lock:
            previous, self._context = self._context, context
        return previous


__all__ = ["EngineContext", "ContextHolder"]
