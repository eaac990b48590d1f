"""
Connector capability protocols.

Every backend adapter implements :class:`Connector` (``id``, ``kind`` and
``execute``). Schema introspection and endpoint sampling are optional
capabilities expressed as separate protocols, so callers branch on what a
connector *can* do instead of assuming a common base class:

    match connector:
        case Describable():
            summary = await connector.describe()
        case Sampleable():
            endpoints = await connector.list_endpoints()

Design Principles:
- Protocol over Inheritance: capabilities are runtime-checkable protocols
- Explicit over Implicit: each adapter owns its native query shape and its
  own safe parameterization
- A well-formed empty result is an empty row list, never an exception
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from semspine.core.models import (
    DiscoverySummary,
    LineageStep,
    NativeQuery,
    SourceKind,
)


@dataclass
class ExecuteResult:
    """Rows returned by one connector call plus its lineage step."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    step: LineageStep | None = None

    def __len__(self) -> int:
        return len(self.rows)


@runtime_checkable
class Connector(Protocol):
    """Protocol for all backend connectors."""

    @property
    def id(self) -> str:
        """Source id this connector serves."""
        ...

    @property
    def kind(self) -> SourceKind:
        ...

    async def execute(self, native_query: NativeQuery) -> ExecuteResult:
        """Run a compiled native query and return rows plus a lineage step."""
        ...


@runtime_checkable
class Describable(Protocol):
    """Connector that can report its own schema."""

    async def describe(self) -> DiscoverySummary:
        ...


@runtime_checkable
class Sampleable(Protocol):
    """Connector without native introspection that can list and sample endpoints."""

    async def list_endpoints(self) -> list[str]:
        ...

    async def sample(self, endpoint: str, n: int = 25) -> list[dict[str, Any]]:
        ...


@runtime_checkable
class Closeable(Protocol):
    async def aclose(self) -> None:
        ...


def make_step(
    source_id: str,
    native_query: NativeQuery,
    *,
    fields: list[str] | None = None,
    query: Any = None,
) -> LineageStep:
    """Build the lineage step for one executed native query.

    ``filter`` records the concrete where clauses; ``query`` is whatever the
    connector actually sent (SQL text + params, URL, SOQL).
    """
    return LineageStep(
        source_id=source_id,
        object=native_query.object or "unknown",
        fields=list(fields if fields is not None else native_query.select),
        filter=[w.to_dict() for w in native_query.where] or None,
        query=query,
    )


__all__ = [
    "ExecuteResult",
    "Connector",
    "Describable",
    "Sampleable",
    "Closeable",
    "make_step",
]
