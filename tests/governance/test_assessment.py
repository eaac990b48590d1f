"""Tests for the live contract debt assessor."""

from datetime import UTC, datetime

import pytest

from semspine.core.models import Lineage, LineageStep, ResponseEnvelope
from semspine.governance.assessment import DebtAssessor, UsageSignals


def response(complete: bool) -> ResponseEnvelope:
    fields = ["id"] if complete else []
    return ResponseEnvelope(
        lineage=Lineage(
            run_id="run_1_00000000",
            timestamp="2024-01-01T00:00:00Z",
            steps=[LineageStep(source_id="pg", object="customers", fields=fields)],
        )
    )


class TestAssess:
    def test_fully_covered_contract(self, contract):
        assessment = DebtAssessor(contract, [response(True), response(True)]).assess(
            "Acme", "analyst@acme.test", assessed_at=datetime(2024, 5, 1, tzinfo=UTC)
        )
        # 100 * .3 + 100 * .3 + 55 * .2 + 40 * .2
        assert assessment.overall_score == 79
        assert assessment.assessment_date == "2024-05-01T00:00:00+00:00"
        assert assessment.organization == "Acme"
        assert assessment.recommendations == []

    def test_empty_history_scores_zero_lineage(self, contract):
        assessment = DebtAssessor(contract).assess("Acme", "me")
        assert assessment.metrics.lineage_completeness.score == 0
        assert assessment.overall_score == 49
        assert [r.category for r in assessment.recommendations] == ["technical"]

    def test_usage_signals_override(self, contract):
        usage = UsageSignals(median_minutes=90, monthly_tickets=25)
        assessment = DebtAssessor(contract, [response(True)], usage=usage).assess("Acme", "me")
        assert assessment.metrics.wrangling_efficiency.score == 10
        assert assessment.metrics.wrangling_efficiency.improvement == 25
        assert assessment.metrics.rework_frequency.score == 0
        assert [r.category for r in assessment.recommendations] == ["process"]


class TestMetrics:
    def test_term_coverage_and_ambiguous_terms(self, federated_contract):
        metric = DebtAssessor(federated_contract).term_coverage()
        assert (metric.score, metric.current, metric.target) == (50, 1, 2)
        assert metric.top_ambiguous_terms == ["Order"]

    def test_lineage_completeness(self, contract):
        metric = DebtAssessor(contract, [response(True), response(False), response(True)]).lineage_completeness()
        assert metric.score == 67
        assert metric.current == 2
        assert metric.queries_without_provenance == 1

    def test_low_coverage_recommendation(self, federated_contract):
        recs = DebtAssessor(federated_contract, [response(True)]).assess("Acme", "me").recommendations
        assert recs[0].expected_impact == "Increase term coverage from 50% to 90%+"

    @pytest.mark.parametrize("median,score", [(0, 100), (45, 55), (150, 0)])
    def test_wrangling_clamped(self, contract, median, score):
        metric = DebtAssessor(contract, usage=UsageSignals(median_minutes=median)).wrangling_efficiency()
        assert metric.score == score
