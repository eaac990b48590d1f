"""Connector registry and factory.

Manifesto:
    Callers never hard-code adapter classes. The registry maps a
    ``SourceKind`` to a factory and ``build_connectors()`` turns the
    ``DataSourceRef`` records of a deployment into ready connectors keyed by
    source id.

Features:
    - ``ConnectorRegistry`` with the sql / rest / salesforce adapters
      pre-registered
    - ``register()`` for custom adapters
    - source ``config`` keys accepted in camelCase or snake_case

Tags:
    semspine, connectors, registry, factory
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from pydantic.alias_generators import to_snake

from semspine.core.errors import ConfigError
from semspine.core.logging import get_logger
from semspine.core.models import DataSourceRef, SourceKind

from .base import Connector
from .rest import RestConnector
from .salesforce import SalesforceConnector
from .sql import SqlConnector

logger = get_logger(__name__)

ConnectorFactory = Callable[..., Connector]


def _options(config: dict[str, Any]) -> dict[str, Any]:
    return {to_snake(key): value for key, value in config.items()}


class ConnectorRegistry:
    """
    Registry of connector factories by source kind.

    Pre-registered:
    - ``sql``: :class:`SqlConnector` (``url``, ``schema``)
    - ``rest``: :class:`RestConnector` (``baseUrl``, ``endpoints``,
      ``objectEndpoints``, ``headers``)
    - ``salesforce``: :class:`SalesforceConnector` (``instanceUrl``,
      ``accessToken``, ``apiVersion``, ``objects``)
    """

    def __init__(self):
        self._factories: dict[str, ConnectorFactory] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories[SourceKind.SQL.value] = SqlConnector
        self._factories[SourceKind.REST.value] = RestConnector
        self._factories[SourceKind.SALESFORCE.value] = SalesforceConnector

    def register(self, kind: str, factory: ConnectorFactory) -> None:
        """Register a connector factory for a kind."""
        self._factories[kind.lower()] = factory

    def create(self, kind: SourceKind | str, source_id: str, **options: Any) -> Connector:
        """Create a connector by kind."""
        name = kind.value if isinstance(kind, SourceKind) else kind.lower()
        if name not in self._factories:
            raise ConfigError(f"Unknown connector kind: {name}").with_context(source_id=source_id)
        try:
            return self._factories[name](source_id, **options)
        except TypeError as e:
            raise ConfigError(
                f"Invalid configuration for source {source_id}: {e}",
                cause=e,
            ).with_context(source_id=source_id) from e

    def list_kinds(self) -> list[str]:
        return sorted(self._factories.keys())


# Global registry
connector_registry = ConnectorRegistry()


def build_connector(
    source: DataSourceRef,
    *,
    registry: ConnectorRegistry | None = None,
    **overrides: Any,
) -> Connector:
    """
    Build one connector from a source record.

    Usage:
        ref = DataSourceRef(id="pg", kind="sql", name="Warehouse",
                            config={"url": "sqlite:///warehouse.db"})
        connector = build_connector(ref)
    """
    registry = registry or connector_registry
    options = _options(source.config)
    options.update(overrides)
    return registry.create(source.kind, source.id, **options)


def build_connectors(
    sources: Iterable[DataSourceRef],
    *,
    registry: ConnectorRegistry | None = None,
    http_timeout: float | None = None,
) -> dict[str, Connector]:
    """Connectors for every source, keyed by source id."""
    connectors: dict[str, Connector] = {}
    for source in sources:
        overrides: dict[str, Any] = {}
        if http_timeout is not None and source.kind in (SourceKind.REST, SourceKind.SALESFORCE):
            overrides["timeout"] = http_timeout
        connectors[source.id] = build_connector(source, registry=registry, **overrides)
        logger.debug("connectors.built", source_id=source.id, kind=source.kind.value)
    return connectors


__all__ = [
    "ConnectorRegistry",
    "connector_registry",
    "build_connector",
    "build_connectors",
]
