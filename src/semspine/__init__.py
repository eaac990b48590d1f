"""
semspine - semantic query translation and federation.

A canonical query over business vocabulary is compiled against a semantic
contract into bounded per-source plans, executed across SQL, REST and CRM
connectors, and returned with lineage and term definitions.
"""

__version__ = "0.1.0"

from semspine.core.models import (  # noqa: E402
    CanonicalQuery,
    DataSourceRef,
    MappingRule,
    ResponseEnvelope,
    SafePlan,
    SemanticContract,
    Term,
)
from semspine.translation import Compiler, ContextHolder, Engine, EngineContext  # noqa: E402

__all__ = [
    "__version__",
    "CanonicalQuery",
    "DataSourceRef",
    "MappingRule",
    "ResponseEnvelope",
    "SafePlan",
    "SemanticContract",
    "Term",
    "Compiler",
    "ContextHolder",
    "Engine",
    "EngineContext",
]
