"""
Schema discovery.

Connectors that can describe themselves (SQL catalogs, Salesforce describe)
are asked directly. Connectors without introspection are sampled endpoint by
endpoint and their fields inferred from the rows that come back.

Tags:
    semspine, discovery, schema-inference
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping
from typing import Any

from semspine.connectors.base import Connector, Describable, Sampleable
from semspine.core.errors import DiscoveryError
from semspine.core.logging import get_logger
from semspine.core.models import DiscoveredField, DiscoveredObject, DiscoverySummary, ObjectHints
from semspine.core.result import Err, Ok, Result

logger = get_logger(__name__)

DEFAULT_SAMPLE_SIZE = 25
INFER_ROWS = 10

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


async def discover(connector: Connector, *, sample_size: int = DEFAULT_SAMPLE_SIZE) -> DiscoverySummary:
    """Describe a connector, or infer its schema from sampled endpoints."""
    match connector:
        case Describable():
            return await connector.describe()
        case Sampleable():
            return await _discover_by_sampling(connector, sample_size)
    raise DiscoveryError("Connector does not support discovery").with_context(
        source_id=getattr(connector, "id", None)
    )


async def discover_all(
    connectors: Mapping[str, Connector],
    *,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> dict[str, Result[DiscoverySummary]]:
    """
    Discover every connector concurrently, keyed by source id.

    A source that fails is an ``Err`` in its slot; the others still report.
    """
    ids = list(connectors)
    results = await asyncio.gather(
        *(_discover_one(source_id, connectors[source_id], sample_size) for source_id in ids)
    )
    return dict(zip(ids, results))


async def _discover_one(source_id: str, connector: Connector, sample_size: int) -> Result[DiscoverySummary]:
    try:
        return Ok(await discover(connector, sample_size=sample_size))
    except Exception as e:
        logger.warning("discovery.source_failed", source_id=source_id, error=str(e))
        return Err(e)


async def _discover_by_sampling(connector: Sampleable, sample_size: int) -> DiscoverySummary:
    objects = []
    for endpoint in await connector.list_endpoints():
        try:
            fields = infer_fields(await connector.sample(endpoint, sample_size))
        except Exception as e:
            logger.warning(
                "discovery.sample_failed",
                source_id=getattr(connector, "id", None),
                endpoint=endpoint,
                error=str(e),
            )
            continue
        objects.append(DiscoveredObject(name=endpoint, fields=fields, hints=ObjectHints()))
    return DiscoverySummary(objects=objects)


def infer_fields(rows: list[dict[str, Any]]) -> list[DiscoveredField]:
    """
    Fields from the union of keys of the first rows.

    Types come from the first non-null value across all rows; every inferred
    field is nullable.
    """
    if not rows:
        return []
    names: dict[str, None] = {}
    for row in rows[:INFER_ROWS]:
        for key in row:
            names.setdefault(key, None)
    return [
        DiscoveredField(name=name, type=guess_type([row.get(name) for row in rows]), nullable=True)
        for name in names
    ]


def guess_type(values: list[Any]) -> str:
    sample = next((v for v in values if v is not None), None)
    # bool first: it is an int subclass
    if isinstance(sample, bool):
        return "boolean"
    if isinstance(sample, (int, float)):
        return "number"
    if isinstance(sample, str) and _ISO_DATE_PREFIX.match(sample):
        return "timestamp"
    return "string"


__all__ = [
    "discover",
    "discover_all",
    "infer_fields",
    "guess_type",
]
