"""semspine core -- errors, results, logging, settings and the data model.

Architecture::

    errors.py      Structured error hierarchy (SemspineError, CompileError, ...)
    result.py      Result[T] envelope (Ok / Err / partition_results)
    logging.py     structlog configuration + get_logger
    settings.py    pydantic-settings runtime configuration
    models.py      Contracts, queries, plans, lineage, discovery, drift
"""

from .errors import (
    CompileError,
    ConfigError,
    ConnectorError,
    ConnectorQueryError,
    ConnectorTimeoutError,
    ConnectorUnavailableError,
    DiscoveryError,
    ErrorCategory,
    ErrorContext,
    IntentParseError,
    LineageEmitError,
    MissingFieldMappingError,
    NoMappingRuleError,
    PolicyDeniedError,
    SemspineError,
    UnknownSourceError,
    UnsupportedOperatorError,
)
from .logging import configure_logging, get_logger
from .result import Err, Ok, Result, partition_results
from .settings import SemspineSettings, clear_settings_cache, get_settings

__all__ = [
    "CompileError",
    "ConfigError",
    "ConnectorError",
    "ConnectorQueryError",
    "ConnectorTimeoutError",
    "ConnectorUnavailableError",
    "DiscoveryError",
    "ErrorCategory",
    "ErrorContext",
    "IntentParseError",
    "LineageEmitError",
    "MissingFieldMappingError",
    "NoMappingRuleError",
    "PolicyDeniedError",
    "SemspineError",
    "UnknownSourceError",
    "UnsupportedOperatorError",
    "configure_logging",
    "get_logger",
    "Err",
    "Ok",
    "Result",
    "partition_results",
    "SemspineSettings",
    "clear_settings_cache",
    "get_settings",
]
