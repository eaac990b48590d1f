"""
Data model for the semantic translation core.

Contracts, queries, plans, lineage, discovery summaries and drift findings
are pydantic models. Python attributes are snake_case; JSON uses the
camelCase names the contract store and the transport speak (``termId``,
``fieldMappings``, ``orderBy``), and either spelling is accepted on input.

Example:
    >>> q = CanonicalQuery.model_validate(
    ...     {"object": "customers", "select": ["id", "name"], "limit": 10}
    ... )
    >>> q.limit
    10
    >>> rule = MappingRule(id="r1", termId="t1", sourceId="pg", object="customers",
    ...                    fieldMappings={"id": "id"})
    >>> rule.to_dict()["fieldMappings"]
    {'id': 'id'}
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SemspineModel(BaseModel):
    """Base model: camelCase aliases, populate by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict using the camelCase wire names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# =============================================================================
# CONTRACT
# =============================================================================


class SourceKind(str, Enum):
    """Backend families a connector can speak."""

    SQL = "sql"
    REST = "rest"
    SALESFORCE = "salesforce"


class DataSourceRef(SemspineModel):
    id: str
    kind: SourceKind
    name: str
    config: dict[str, Any] = Field(default_factory=dict)


class TermGovernance(SemspineModel):
    requires_approval: bool | None = None
    approval_workflow: str | None = None
    data_steward: str | None = None
    review_cycle: str | None = None


class Term(SemspineModel):
    """A named business concept. Identity is ``id``; ``name`` is display-only."""

    id: str
    name: str
    description: str | None = None
    owner: str | None = None
    examples: list[str] = Field(default_factory=list)
    counter_examples: list[str] = Field(default_factory=list)
    business_definition: str | None = None
    version: str | None = None
    last_reviewed: str | None = None
    governance: TermGovernance | None = None

    @property
    def is_well_defined(self) -> bool:
        """Has a business definition, at least one example and an owner."""
        return bool(self.business_definition and self.examples and self.owner)


class MappingRule(SemspineModel):
    """Binds one term to one backend object.

    ``expression`` is an opaque backend-specific filter string and is never
    parsed here. ``field_mappings`` maps semantic field -> concrete expression.
    """

    id: str
    term_id: str
    source_id: str
    object: str
    expression: str = ""
    fields: list[str] = Field(default_factory=list)
    field_mappings: dict[str, str] = Field(default_factory=dict)

    def missing_field_mappings(self) -> list[str]:
        """Entries of ``fields`` with no key in ``field_mappings``."""
        return [f for f in self.fields if f not in self.field_mappings]


class ContractConstraints(SemspineModel):
    default_limit: int | None = Field(default=None, ge=0)
    max_limit: int | None = Field(default=None, ge=0)
    timezone: str | None = None


class ContractGovernance(SemspineModel):
    organization: str
    data_stewards: list[str] = Field(default_factory=list)
    approval_workflow: Literal["single", "majority", "unanimous"] = "single"
    review_cycle: Literal["monthly", "quarterly", "biannual", "annual"] = "quarterly"


class SemanticDebtSnapshot(SemspineModel):
    """Last recorded debt figures, as stored alongside a contract."""

    term_coverage: float
    lineage_completeness: float
    wrangling_minutes: float
    rework_tickets: int
    drift_incidents: int
    last_assessment: str


class SemanticContract(SemspineModel):
    id: str
    name: str
    terms: list[Term] = Field(default_factory=list)
    rules: list[MappingRule] = Field(default_factory=list)
    constraints: ContractConstraints | None = None
    governance: ContractGovernance | None = None
    semantic_debt: SemanticDebtSnapshot | None = None

    def term(self, term_id: str) -> Term | None:
        for term in self.terms:
            if term.id == term_id:
                return term
        return None

    def term_name(self, term_id: str) -> str:
        """Display name for a term id, falling back to the id itself."""
        term = self.term(term_id)
        return term.name if term else term_id

    def definitions(self) -> dict[str, str]:
        """``{term name: description}`` for every term in the contract."""
        return {t.name: t.description or "" for t in self.terms}


# =============================================================================
# QUERIES AND PLANS
# =============================================================================


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class WhereClause(SemspineModel):
    field: str
    op: str
    value: Any = None


class OrderBy(SemspineModel):
    field: str
    direction: SortDirection = SortDirection.ASC

    @field_validator("direction", mode="before")
    @classmethod
    def _upper_direction(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class CanonicalQuery(SemspineModel):
    """Backend-agnostic request expressed over business fields."""

    object: str = Field(min_length=1)
    select: list[str] = Field(default_factory=list)
    where: list[WhereClause] = Field(default_factory=list)
    order_by: OrderBy | None = None
    limit: int | None = None


class NativeQuery(SemspineModel):
    """Bounded query over concrete fields; each connector renders it natively."""

    object: str
    select: list[str] = Field(default_factory=list)
    where: list[WhereClause] = Field(default_factory=list)
    order_by: OrderBy | None = None
    limit: int


class SafePlan(SemspineModel):
    """Compiled, bounded plan for one source.

    ``fields`` are the concrete field tokens of the rule's mappings (for
    policy checks), not the semantic field names.
    """

    source_id: str
    rule_id: str | None = None
    native_query: NativeQuery
    operators: list[str] = Field(default_factory=list)
    fields: list[str] = Field(default_factory=list)


# =============================================================================
# LINEAGE AND RESPONSES
# =============================================================================


class LineageStep(SemspineModel):
    source_id: str
    object: str
    fields: list[str] = Field(default_factory=list)
    filter: Any = None
    query: Any = None

    @property
    def is_complete(self) -> bool:
        return bool(self.source_id and self.object and self.fields)


class Lineage(SemspineModel):
    run_id: str
    timestamp: str
    steps: list[LineageStep] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """At least one step, and every step names source, object and fields."""
        return bool(self.steps) and all(step.is_complete for step in self.steps)


class ResponseEnvelope(SemspineModel):
    data: list[dict[str, Any]] = Field(default_factory=list)
    lineage: Lineage
    definitions: dict[str, str] | None = None
    notes: list[str] = Field(default_factory=list)


# =============================================================================
# DISCOVERY AND PROFILING
# =============================================================================


class DiscoveredField(SemspineModel):
    name: str
    type: str
    nullable: bool = True


class ObjectHints(SemspineModel):
    id_field: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class DiscoveredObject(SemspineModel):
    name: str
    fields: list[DiscoveredField] = Field(default_factory=list)
    hints: ObjectHints | None = None

    def field_names(self) -> set[str]:
        return {f.name for f in self.fields}


class DiscoverySummary(SemspineModel):
    """A connector's self-reported or inferred schema."""

    objects: list[DiscoveredObject] = Field(default_factory=list)

    def find(self, name: str) -> DiscoveredObject | None:
        for obj in self.objects:
            if obj.name == name:
                return obj
        return None


class TopValue(SemspineModel):
    value: Any
    count: int


class FieldProfile(SemspineModel):
    name: str
    null_ratio: float
    distinct_count: int | None = None
    top_values: list[TopValue] | None = None
    type_guess: str | None = None


# =============================================================================
# DRIFT
# =============================================================================


class DriftType(str, Enum):
    SCHEMA_CHANGE = "schema_change"
    FIELD_REMOVAL = "field_removal"
    TYPE_CHANGE = "type_change"
    CONSTRAINT_VIOLATION = "constraint_violation"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        return _SEVERITY_WEIGHTS[self]


_SEVERITY_WEIGHTS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


class SemanticDrift(SemspineModel):
    id: str
    term_id: str
    source_id: str
    detected_at: str
    drift_type: DriftType
    severity: Severity
    description: str
    impact: list[str] = Field(default_factory=list)
    resolution: str | None = None
    resolved_at: str | None = None


__all__ = [
    "SemspineModel",
    "SourceKind",
    "DataSourceRef",
    "TermGovernance",
    "Term",
    "MappingRule",
    "ContractConstraints",
    "ContractGovernance",
    "SemanticDebtSnapshot",
    "SemanticContract",
    "SortDirection",
    "WhereClause",
    "OrderBy",
    "CanonicalQuery",
    "NativeQuery",
    "SafePlan",
    "LineageStep",
    "Lineage",
    "ResponseEnvelope",
    "DiscoveredField",
    "ObjectHints",
    "DiscoveredObject",
    "DiscoverySummary",
    "TopValue",
    "FieldProfile",
    "DriftType",
    "Severity",
    "SemanticDrift",
]
