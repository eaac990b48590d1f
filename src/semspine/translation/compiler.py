"""
Canonical query compiler.

Turns a backend-agnostic :class:`CanonicalQuery` into one bounded
:class:`SafePlan` per matching mapping rule, so the engine can fan out to every
source that carries the requested object.

Manifesto:
    - **Contract-driven:** every selected, filtered or sorted field must be
      mapped by the rule; nothing the caller names reaches a backend unmapped
    - **Bounded:** every plan carries a limit clamped to the contract maximum
    - **Per-rule outcomes:** ``compile_rules()`` returns a Result per rule, so
      one rule with a missing mapping does not hide the plans of the others

Object matching:
    Rules whose object equals the requested object (case-insensitively) win.
    Only when no rule matches exactly does the compiler fall back to substring
    matching, which tolerates naming variance such as ``Account`` vs
    ``accounts``. Rule order in the contract is preserved either way.

Examples:
    >>> compiler = Compiler(contract)
    >>> plans = compiler.compile(CanonicalQuery(object="customer", select=["id"]))
    >>> plans[0].native_query.limit
    50

Tags:
    semspine, compiler, canonical-query, safe-plan
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from semspine.core.errors import (
    MissingFieldMappingError,
    NoMappingRuleError,
    UnsupportedOperatorError,
)
from semspine.core.logging import get_logger
from semspine.core.models import (
    CanonicalQuery,
    MappingRule,
    NativeQuery,
    OrderBy,
    SafePlan,
    SemanticContract,
    SortDirection,
    WhereClause,
)
from semspine.core.result import Err, Ok, Result, partition_results
from semspine.core.settings import SemspineSettings, get_settings

logger = get_logger(__name__)

ALLOWED_OPERATORS = ("=", "!=", "<>", ">", "<", ">=", "<=", "IN", "NOT IN", "LIKE")

_FIELD_TOKEN = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")


def extract_fields(expressions: Iterable[str]) -> list[str]:
    """Identifier-like tokens of the expressions, de-duplicated in first-seen order."""
    seen: dict[str, None] = {}
    for expression in expressions:
        for token in _FIELD_TOKEN.findall(expression):
            seen.setdefault(token, None)
    return list(seen)


def normalize_operator(op: str) -> str:
    normalized = " ".join(op.split()).upper()
    if normalized not in ALLOWED_OPERATORS:
        raise UnsupportedOperatorError(op)
    return normalized


class Compiler:
    """Compiles canonical queries against one semantic contract."""

    def __init__(self, contract: SemanticContract, settings: SemspineSettings | None = None):
        self.contract = contract
        self.settings = settings or get_settings()

    # ── Rule matching ────────────────────────────────────────────────

    def match_rules(self, object_name: str) -> list[MappingRule]:
        wanted = object_name.lower()
        exact = [r for r in self.contract.rules if r.object.lower() == wanted]
        if exact:
            return exact
        return [r for r in self.contract.rules if wanted in r.object.lower()]

    # ── Compilation ──────────────────────────────────────────────────

    def compile_rules(self, query: CanonicalQuery) -> list[Result[SafePlan]]:
        """
        One Result per matching rule, in contract order.

        Raises:
            NoMappingRuleError: no rule targets ``query.object``
            UnsupportedOperatorError: a where clause uses an unknown operator
        """
        rules = self.match_rules(query.object)
        if not rules:
            raise NoMappingRuleError(query.object)

        where = [
            WhereClause(field=w.field, op=normalize_operator(w.op), value=w.value)
            for w in query.where
        ]
        limit = self.effective_limit(query.limit)

        results: list[Result[SafePlan]] = []
        for rule in rules:
            try:
                results.append(Ok(self._compile_rule(rule, query, where, limit)))
            except MissingFieldMappingError as e:
                logger.info(
                    "compiler.rule_skipped",
                    rule_id=rule.id,
                    object=rule.object,
                    field=e.field,
                )
                results.append(Err(e))
        return results

    def compile(self, query: CanonicalQuery) -> list[SafePlan]:
        """
        Plans for every rule that compiled.

        Raises the first rule's error when none did, so a single-rule contract
        fails exactly like an all-or-nothing compiler.
        """
        plans, errors = partition_results(self.compile_rules(query))
        if not plans:
            raise errors[0]
        return plans

    def effective_limit(self, requested: int | None) -> int:
        constraints = self.contract.constraints
        default_limit = self.settings.default_limit
        max_limit = self.settings.max_limit
        if constraints is not None:
            if constraints.default_limit is not None:
                default_limit = constraints.default_limit
            if constraints.max_limit is not None:
                max_limit = constraints.max_limit
        limit = requested if requested is not None else default_limit
        return max(0, min(limit, max_limit))

    def _compile_rule(
        self,
        rule: MappingRule,
        query: CanonicalQuery,
        where: list[WhereClause],
        limit: int,
    ) -> SafePlan:
        def resolve(semantic_field: str) -> str:
            mapped = rule.field_mappings.get(semantic_field)
            if not mapped:
                raise MissingFieldMappingError(semantic_field, rule.object, rule_id=rule.id)
            return mapped

        select = [resolve(f) for f in query.select]
        native_where = [WhereClause(field=resolve(w.field), op=w.op, value=w.value) for w in where]

        if query.order_by is not None:
            order_by = OrderBy(field=resolve(query.order_by.field), direction=query.order_by.direction)
        elif select:
            order_by = OrderBy(field=select[0], direction=SortDirection.ASC)
        else:
            order_by = None

        operators = list(dict.fromkeys(w.op for w in native_where))

        return SafePlan(
            source_id=rule.source_id,
            rule_id=rule.id,
            native_query=NativeQuery(
                object=rule.object,
                select=select,
                where=native_where,
                order_by=order_by,
                limit=limit,
            ),
            operators=operators,
            fields=extract_fields(rule.field_mappings.values()),
        )


__all__ = [
    "ALLOWED_OPERATORS",
    "Compiler",
    "extract_fields",
    "normalize_operator",
]
