"""
Semantic debt assessment of a live contract.

Where :mod:`semspine.governance.calculator` scores questionnaire answers, the
assessor reads the contract itself and the lineage of past responses:

1. Term coverage: share of terms with a business definition, at least one
   example and an owner
2. Lineage completeness: share of past responses whose lineage names
   source, object and fields for every step
3. Wrangling efficiency: median minutes to a trustworthy answer
4. Rework frequency: definition-related tickets per month

Wrangling and rework figures come from :class:`UsageSignals`. Its defaults
are fixed placeholders until usage telemetry and ticketing are wired in.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from pydantic import Field

from semspine.core.logging import get_logger
from semspine.core.models import ResponseEnvelope, SemanticContract, SemspineModel

from .calculator import percentage, round_half_up

logger = get_logger(__name__)

TOP_AMBIGUOUS_TERMS = 10


@dataclass(frozen=True)
class UsageSignals:
    """Operational figures the contract cannot tell us."""

    median_minutes: float = 45
    baseline_minutes: float = 120
    monthly_tickets: int = 12
    definition_related_tickets: int = 8


# ── Result models ────────────────────────────────────────────────────


class TermCoverageMetric(SemspineModel):
    score: int
    current: int
    target: int
    top_ambiguous_terms: list[str] = Field(default_factory=list)


class LineageCompletenessMetric(SemspineModel):
    score: int
    current: int
    queries_without_provenance: int


class WranglingEfficiencyMetric(SemspineModel):
    score: float
    median_minutes: float
    improvement: int


class ReworkFrequencyMetric(SemspineModel):
    score: int
    monthly_tickets: int
    definition_related: int


class AssessmentMetrics(SemspineModel):
    term_coverage: TermCoverageMetric
    lineage_completeness: LineageCompletenessMetric
    wrangling_efficiency: WranglingEfficiencyMetric
    rework_frequency: ReworkFrequencyMetric


class AssessmentRecommendation(SemspineModel):
    priority: Literal["high", "medium", "low"]
    category: Literal["governance", "technical", "process"]
    action: str
    expected_impact: str
    effort: Literal["low", "medium", "high"]


class SemanticDebtAssessment(SemspineModel):
    organization: str
    assessment_date: str
    assessed_by: str
    overall_score: int
    metrics: AssessmentMetrics
    recommendations: list[AssessmentRecommendation] = Field(default_factory=list)


# ── Assessor ─────────────────────────────────────────────────────────


class DebtAssessor:
    def __init__(
        self,
        contract: SemanticContract,
        query_history: Sequence[ResponseEnvelope] = (),
        *,
        usage: UsageSignals = UsageSignals(),
    ):
        self.contract = contract
        self.query_history = list(query_history)
        self.usage = usage

    def assess(
        self,
        organization: str,
        assessed_by: str,
        *,
        assessed_at: datetime | None = None,
    ) -> SemanticDebtAssessment:
        metrics = AssessmentMetrics(
            term_coverage=self.term_coverage(),
            lineage_completeness=self.lineage_completeness(),
            wrangling_efficiency=self.wrangling_efficiency(),
            rework_frequency=self.rework_frequency(),
        )
        overall = round_half_up(
            metrics.term_coverage.score * 0.3
            + metrics.lineage_completeness.score * 0.3
            + metrics.wrangling_efficiency.score * 0.2
            + metrics.rework_frequency.score * 0.2
        )
        logger.info("assessment.completed", organization=organization, overall_score=overall)
        return SemanticDebtAssessment(
            organization=organization,
            assessment_date=(assessed_at or datetime.now(UTC)).isoformat(),
            assessed_by=assessed_by,
            overall_score=overall,
            metrics=metrics,
            recommendations=self.recommendations(metrics),
        )

    def term_coverage(self) -> TermCoverageMetric:
        terms = self.contract.terms
        defined = [t for t in terms if t.is_well_defined]
        defined_names = {t.name for t in defined}

        # most_common is stable for equal counts
        usage = Counter(rule.term_id for rule in self.contract.rules)
        top = [self.contract.term_name(term_id) for term_id, _ in usage.most_common(TOP_AMBIGUOUS_TERMS)]

        return TermCoverageMetric(
            score=percentage(len(defined), len(terms)),
            current=len(defined),
            target=len(terms),
            top_ambiguous_terms=[name for name in top if name not in defined_names],
        )

    def lineage_completeness(self) -> LineageCompletenessMetric:
        if not self.query_history:
            return LineageCompletenessMetric(score=0, current=0, queries_without_provenance=0)
        complete = sum(1 for response in self.query_history if response.lineage.is_complete)
        return LineageCompletenessMetric(
            score=percentage(complete, len(self.query_history)),
            current=complete,
            queries_without_provenance=len(self.query_history) - complete,
        )

    def wrangling_efficiency(self) -> WranglingEfficiencyMetric:
        median = self.usage.median_minutes
        baseline = self.usage.baseline_minutes
        return WranglingEfficiencyMetric(
            score=max(0, min(100, 100 - median)),
            median_minutes=median,
            improvement=percentage(baseline - median, baseline),
        )

    def rework_frequency(self) -> ReworkFrequencyMetric:
        tickets = self.usage.monthly_tickets
        return ReworkFrequencyMetric(
            score=max(0, 100 - tickets * 5),
            monthly_tickets=tickets,
            definition_related=self.usage.definition_related_tickets,
        )

    @staticmethod
    def recommendations(metrics: AssessmentMetrics) -> list[AssessmentRecommendation]:
        recs = []
        if metrics.term_coverage.score < 70:
            recs.append(
                AssessmentRecommendation(
                    priority="high",
                    category="governance",
                    action="Define clear business definitions for top 10 ambiguous terms",
                    expected_impact=f"Increase term coverage from {metrics.term_coverage.score}% to 90%+",
                    effort="medium",
                )
            )
        if metrics.lineage_completeness.score < 80:
            recs.append(
                AssessmentRecommendation(
                    priority="high",
                    category="technical",
                    action="Implement comprehensive lineage tracking for all queries",
                    expected_impact="Eliminate trust issues by showing complete data provenance",
                    effort="low",
                )
            )
        if metrics.wrangling_efficiency.median_minutes > 60:
            recs.append(
                AssessmentRecommendation(
                    priority="medium",
                    category="process",
                    action="Establish semantic contract review process",
                    expected_impact="Reduce time to trustworthy answers by 50%",
                    effort="medium",
                )
            )
        return recs


__all__ = [
    "UsageSignals",
    "DebtAssessor",
    "SemanticDebtAssessment",
    "AssessmentMetrics",
    "AssessmentRecommendation",
    "TermCoverageMetric",
    "LineageCompletenessMetric",
    "WranglingEfficiencyMetric",
    "ReworkFrequencyMetric",
]
