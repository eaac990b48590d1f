"""
Semantic debt calculator.

Scores an organisation's semantic debt from a questionnaire-style
:class:`AssessmentInput` (term counts, lineage coverage, time to answer,
rework and conflict figures) and derives a debt level, cost estimates,
prioritised recommendations and next steps.

Everything here is a pure function of the input; no I/O, no clock.

Scoring:
    - term coverage          ``round(100 * defined / terms)``
    - lineage completeness   ``round(100 * with_lineage / total_queries)``
    - wrangling efficiency   ``clamp(100 - 2 * avg_minutes, 0, 100)``
    - rework frequency       ``max(0, 100 - 5 * monthly_tickets)``
    - governance maturity    ``max(0, ownership% - 2 * conflict%)``
    - overall                ``round(.25 tc + .25 lc + .2 we + .15 rf + .15 gm)``

    Ratios with a zero denominator score 0. ``round`` is half-up.

Example:
    >>> result = DebtCalculator().calculate(AssessmentInput(
    ...     organization_size="medium", data_sources=5, business_terms=40,
    ...     defined_terms=10, terms_with_owners=20, queries_with_lineage=30,
    ...     total_queries=100, avg_time_to_answer=45, monthly_rework_tickets=12,
    ...     conflicting_definitions=6, manual_overrides=20,
    ...     stakeholder_disagreements=3))
    >>> result.semantic_debt_level
    'critical'

Tags:
    semspine, governance, semantic-debt, scoring
"""

from __future__ import annotations

import math
from typing import Literal

from pydantic import Field

from semspine.core.models import SemspineModel

ANALYST_HOURLY_RATE = 75
ANALYST_HEADCOUNT = 20

DebtLevel = Literal["low", "moderate", "high", "critical"]
Priority = Literal["critical", "high", "medium", "low"]
Category = Literal["governance", "technical", "process", "organizational"]
Effort = Literal["low", "medium", "high"]
Timeframe = Literal["immediate", "1-3 months", "3-6 months", "6+ months"]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (``round`` is banker's)."""
    return math.floor(value + 0.5)


def percentage(numerator: float, denominator: float) -> int:
    if denominator <= 0:
        return 0
    return round_half_up(numerator / denominator * 100)


# =============================================================================
# MODELS
# =============================================================================


class AssessmentInput(SemspineModel):
    organization_size: Literal["startup", "small", "medium", "large", "enterprise"]
    data_sources: int = Field(ge=0)
    business_terms: int = Field(ge=0)

    defined_terms: int = Field(ge=0)
    terms_with_owners: int = Field(ge=0)
    queries_with_lineage: int = Field(ge=0)
    total_queries: int = Field(ge=0)
    avg_time_to_answer: float = Field(ge=0, description="Minutes")
    monthly_rework_tickets: int = Field(ge=0)

    conflicting_definitions: int = Field(ge=0)
    manual_overrides: int = Field(ge=0)
    stakeholder_disagreements: int = Field(ge=0)


class DebtMetrics(SemspineModel):
    term_coverage: int
    lineage_completeness: int
    wrangling_efficiency: float
    rework_frequency: int
    governance_maturity: int


class EstimatedCosts(SemspineModel):
    monthly_waste: int
    annual_waste: int
    trust_erosion: int


class CalculatorRecommendation(SemspineModel):
    priority: Priority
    category: Category
    action: str
    expected_savings: int
    effort: Effort
    timeframe: Timeframe


class AssessmentResult(SemspineModel):
    overall_score: int
    semantic_debt_level: DebtLevel
    metrics: DebtMetrics
    estimated_costs: EstimatedCosts
    recommendations: list[CalculatorRecommendation] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)


# =============================================================================
# CALCULATOR
# =============================================================================


class DebtCalculator:
    """Stateless semantic debt calculator."""

    def calculate(self, data: AssessmentInput) -> AssessmentResult:
        metrics = self.metrics(data)
        overall = self.overall_score(metrics)
        level = self.debt_level(overall)
        recommendations = self.recommendations(data, metrics)
        return AssessmentResult(
            overall_score=overall,
            semantic_debt_level=level,
            metrics=metrics,
            estimated_costs=self.estimate_costs(data, overall),
            recommendations=recommendations,
            next_steps=self.next_steps(level, recommendations),
        )

    def metrics(self, data: AssessmentInput) -> DebtMetrics:
        ownership_rate = percentage(data.terms_with_owners, data.business_terms)
        conflict_rate = percentage(data.conflicting_definitions, data.business_terms)
        return DebtMetrics(
            term_coverage=percentage(data.defined_terms, data.business_terms),
            lineage_completeness=percentage(data.queries_with_lineage, data.total_queries),
            wrangling_efficiency=max(0.0, min(100.0, 100 - data.avg_time_to_answer * 2)),
            rework_frequency=max(0, 100 - data.monthly_rework_tickets * 5),
            governance_maturity=max(0, ownership_rate - conflict_rate * 2),
        )

    @staticmethod
    def overall_score(metrics: DebtMetrics) -> int:
        return round_half_up(
            metrics.term_coverage * 0.25
            + metrics.lineage_completeness * 0.25
            + metrics.wrangling_efficiency * 0.2
            + metrics.rework_frequency * 0.15
            + metrics.governance_maturity * 0.15
        )

    @staticmethod
    def debt_level(score: int) -> DebtLevel:
        if score >= 80:
            return "low"
        if score >= 60:
            return "moderate"
        if score >= 40:
            return "high"
        return "critical"

    @staticmethod
    def estimate_costs(data: AssessmentInput, overall_score: int) -> EstimatedCosts:
        monthly = data.avg_time_to_answer / 60 * ANALYST_HOURLY_RATE * ANALYST_HEADCOUNT
        return EstimatedCosts(
            monthly_waste=round_half_up(monthly),
            annual_waste=round_half_up(monthly * 12),
            trust_erosion=round_half_up((100 - overall_score) * 0.8),
        )

    def recommendations(self, data: AssessmentInput, metrics: DebtMetrics) -> list[CalculatorRecommendation]:
        recs = []

        if metrics.term_coverage < 50:
            recs.append(
                CalculatorRecommendation(
                    priority="critical",
                    category="governance",
                    action="Conduct term inventory and establish clear definitions for top 20 business terms",
                    expected_savings=round_half_up(data.monthly_rework_tickets * 1000),
                    effort="medium",
                    timeframe="1-3 months",
                )
            )

        if metrics.lineage_completeness < 60:
            recs.append(
                CalculatorRecommendation(
                    priority="critical",
                    category="technical",
                    action="Implement automated lineage tracking for all data queries",
                    expected_savings=round_half_up(
                        data.avg_time_to_answer * 0.3 * ANALYST_HOURLY_RATE * ANALYST_HEADCOUNT * 12
                    ),
                    effort="medium",
                    timeframe="1-3 months",
                )
            )

        if data.conflicting_definitions > data.business_terms * 0.1:
            recs.append(
                CalculatorRecommendation(
                    priority="high",
                    category="organizational",
                    action="Establish data stewardship council to resolve definition conflicts",
                    expected_savings=round_half_up(data.stakeholder_disagreements * 2000),
                    effort="high",
                    timeframe="3-6 months",
                )
            )

        if metrics.governance_maturity < 40:
            recs.append(
                CalculatorRecommendation(
                    priority="high",
                    category="process",
                    action="Implement term lifecycle management with approval workflows",
                    expected_savings=round_half_up(data.monthly_rework_tickets * 1500),
                    effort="medium",
                    timeframe="3-6 months",
                )
            )

        if data.manual_overrides > 50:
            recs.append(
                CalculatorRecommendation(
                    priority="medium",
                    category="process",
                    action="Automate data validation rules and reduce manual overrides",
                    expected_savings=round_half_up(data.manual_overrides * 100),
                    effort="medium",
                    timeframe="3-6 months",
                )
            )

        return recs

    @staticmethod
    def next_steps(level: DebtLevel, recommendations: list[CalculatorRecommendation]) -> list[str]:
        steps = [
            "Schedule semantic debt assessment workshop with key stakeholders",
            "Identify and prioritize top 10 ambiguous business terms",
            "Establish data stewardship governance structure",
        ]
        if level in ("critical", "high"):
            steps.insert(0, "Conduct executive briefing on semantic debt impact")
        if any(r.category == "technical" for r in recommendations):
            steps.append("Evaluate semantic layer technology solutions")
        steps.append("Create semantic debt reduction roadmap and timeline")
        return steps


__all__ = [
    "AssessmentInput",
    "AssessmentResult",
    "CalculatorRecommendation",
    "DebtCalculator",
    "DebtMetrics",
    "EstimatedCosts",
    "percentage",
    "round_half_up",
]
