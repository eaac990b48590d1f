"""
Backend connectors.

Each adapter implements the :class:`Connector` protocol and, where the backend
allows it, :class:`Describable` or :class:`Sampleable` for discovery.
"""

from .base import (
    Closeable,
    Connector,
    Describable,
    ExecuteResult,
    Sampleable,
    make_step,
)
from .registry import (
    ConnectorRegistry,
    build_connector,
    build_connectors,
    connector_registry,
)
from .rest import RestConnector
from .salesforce import SalesforceConnector
from .sql import SqlConnector

__all__ = [
    "Closeable",
    "Connector",
    "Describable",
    "ExecuteResult",
    "Sampleable",
    "make_step",
    "ConnectorRegistry",
    "build_connector",
    "build_connectors",
    "connector_registry",
    "RestConnector",
    "SalesforceConnector",
    "SqlConnector",
]
