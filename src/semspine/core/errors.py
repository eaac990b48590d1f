"""
Structured error types for semspine.

Every failure the translation core can produce is a ``SemspineError`` that
carries a category, retry semantics, structured context and an optional
chained cause. Callers at the transport boundary map categories to status
codes (VALIDATION -> 4xx, CONFIG/INTERNAL -> 5xx); the engine uses the same
metadata to decide which failures abort a request and which degrade into
partial results plus a note.

Manifesto:
    - **Typed hierarchy:** compile, connector, lineage and policy failures are
      distinct classes, never bare ``Exception``
    - **Explicit retry semantics:** each error knows whether it is retryable
    - **Rich context:** source, rule and run identifiers ride along for logs
    - **Error chaining:** the driver/HTTP exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                        SemspineError                          │
        │   (category, retryable, context, cause)                       │
        ├──────────────────────────────────────────────────────────────┤
        │  CompileError (VALIDATION)        ConfigError (CONFIG)        │
        │    NoMappingRuleError               UnknownSourceError        │
        │    MissingFieldMappingError                                   │
        │    UnsupportedOperatorError       ConnectorError (SOURCE)     │
        │                                     ConnectorQueryError       │
        │  DiscoveryError (SOURCE)            ConnectorUnavailableError │
        │  IntentParseError (PARSE)             ConnectorTimeoutError   │
        │  PolicyDeniedError (AUTH)                                     │
        │  LineageEmitError (INTERNAL)                                  │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = MissingFieldMappingError("region", "Account")
    >>> error.field, error.object
    ('region', 'Account')
    >>> error.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>

    >>> err = ConnectorUnavailableError("connection refused")
    >>> err.with_context(source_id="crm").context.source_id
    'crm'

Tags:
    error-handling, exception-hierarchy, retry-logic, semspine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Infrastructure errors (usually transient)
    NETWORK = "NETWORK"

    # Source/data errors
    SOURCE = "SOURCE"
    PARSE = "PARSE"
    VALIDATION = "VALIDATION"

    # Configuration errors (never retryable)
    CONFIG = "CONFIG"
    AUTH = "AUTH"

    # Internal errors
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields cover the identifiers the translation core deals in; anything
    else goes into ``metadata``. ``to_dict()`` drops unset fields.

    Attributes:
        run_id: Execution run identifier
        source_id: Data source / connector id
        rule_id: Mapping rule id
        object: Backend object (table, endpoint, sObject)
        url: URL being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    run_id: str | None = None
    source_id: str | None = None
    rule_id: str | None = None
    object: str | None = None
    url: str | None = None
    http_status: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["run_id", "source_id", "rule_id", "object", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SemspineError(Exception):
    """
    Base exception for all semspine errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers may
    override both per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SemspineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConnectorQueryError("bad column").with_context(
                source_id="warehouse",
                object="customers",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# COMPILE ERRORS
# =============================================================================


class CompileError(SemspineError):
    """
    A canonical query could not be compiled against the contract.

    Never retryable: the query or the contract must change.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class NoMappingRuleError(CompileError):
    """No mapping rule targets the requested object."""

    def __init__(self, object: str, **kwargs: Any):
        self.object = object
        super().__init__(f"No mapping rule for '{object}'", **kwargs)


class MissingFieldMappingError(CompileError):
    """A selected or filtered field has no mapping on a rule's object."""

    def __init__(self, field: str, object: str, *, rule_id: str | None = None, **kwargs: Any):
        self.field = field
        self.object = object
        self.rule_id = rule_id
        super().__init__(f"Missing mapping for '{field}' on {object}", **kwargs)
        self.with_context(object=object, rule_id=rule_id)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["field"] = self.field
        return result


class UnsupportedOperatorError(CompileError):
    """A where clause uses an operator outside the allow-list."""

    def __init__(self, op: str, **kwargs: Any):
        self.op = op
        super().__init__(f"Unsupported operator: {op!r}", **kwargs)


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SemspineError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class UnknownSourceError(ConfigError):
    """A plan references a source with no registered connector."""

    def __init__(self, source_id: str, **kwargs: Any):
        self.source_id = source_id
        super().__init__(f"No connector for source {source_id}", **kwargs)
        self.with_context(source_id=source_id)


# =============================================================================
# CONNECTOR ERRORS
# =============================================================================


class ConnectorError(SemspineError):
    """
    Error raised by a backend connector.

    Default not retryable (bad column, 4xx response). The engine converts
    these into per-plan notes rather than failing the whole request.
    """

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class ConnectorQueryError(ConnectorError):
    """The backend rejected the rendered query."""

    pass


class ConnectorUnavailableError(ConnectorError):
    """The backend could not be reached (network, pool, 5xx)."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class ConnectorTimeoutError(ConnectorUnavailableError):
    """A connector call exceeded its deadline."""

    def __init__(self, source_id: str, timeout: float, **kwargs: Any):
        self.source_id = source_id
        self.timeout = timeout
        super().__init__(f"Source {source_id} timed out after {timeout}s", **kwargs)
        self.with_context(source_id=source_id)


# =============================================================================
# OTHER ERRORS
# =============================================================================


class DiscoveryError(SemspineError):
    """A connector offers neither describe() nor endpoint sampling."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class LineageEmitError(SemspineError):
    """The lineage sink rejected a lineage record."""

    default_category = ErrorCategory.INTERNAL
    default_retryable = True


class PolicyDeniedError(SemspineError):
    """The policy collaborator denied at least one plan."""

    default_category = ErrorCategory.AUTH
    default_retryable = False

    def __init__(self, message: str = "policy_denied", *, source_id: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        if source_id is not None:
            self.with_context(source_id=source_id)


class IntentParseError(SemspineError):
    """Free-text input could not be turned into a canonical query."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SemspineError):
        return error.retryable
    retryable_types = (
        ConnectionError,
        TimeoutError,
        OSError,
    )
    return isinstance(error, retryable_types)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SemspineError",
    # Compile
    "CompileError",
    "NoMappingRuleError",
    "MissingFieldMappingError",
    "UnsupportedOperatorError",
    # Config
    "ConfigError",
    "UnknownSourceError",
    # Connector
    "ConnectorError",
    "ConnectorQueryError",
    "ConnectorUnavailableError",
    "ConnectorTimeoutError",
    # Other
    "DiscoveryError",
    "LineageEmitError",
    "PolicyDeniedError",
    "IntentParseError",
    # Utilities
    "is_retryable",
]
