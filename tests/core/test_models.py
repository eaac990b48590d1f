"""Tests for the pydantic data model."""

import pytest
from pydantic import ValidationError

from semspine.core.models import (
    CanonicalQuery,
    Lineage,
    LineageStep,
    MappingRule,
    OrderBy,
    SemanticContract,
    Severity,
    SortDirection,
    Term,
)


class TestAliases:
    def test_rule_accepts_camel_case_and_dumps_camel_case(self):
        rule = MappingRule.model_validate(
            {
                "id": "r1",
                "termId": "t1",
                "sourceId": "pg",
                "object": "customers",
                "fieldMappings": {"id": "customer_id"},
            }
        )
        assert rule.term_id == "t1"
        assert rule.to_dict()["fieldMappings"] == {"id": "customer_id"}

    def test_snake_case_input_also_accepted(self):
        rule = MappingRule(id="r1", term_id="t1", source_id="pg", object="x")
        assert rule.source_id == "pg"

    def test_query_order_by_alias(self):
        q = CanonicalQuery.model_validate({"object": "a", "orderBy": {"field": "id", "direction": "desc"}})
        assert q.order_by == OrderBy(field="id", direction=SortDirection.DESC)


class TestValidation:
    def test_empty_object_rejected(self):
        with pytest.raises(ValidationError):
            CanonicalQuery(object="")

    def test_bad_direction_rejected(self):
        with pytest.raises(ValidationError):
            OrderBy(field="id", direction="sideways")


class TestHelpers:
    def test_missing_field_mappings(self):
        rule = MappingRule(
            id="r", term_id="t", source_id="s", object="o",
            fields=["id", "name", "region"], field_mappings={"id": "id"},
        )
        assert rule.missing_field_mappings() == ["name", "region"]

    def test_term_well_defined(self):
        assert Term(id="t", name="T", owner="o", examples=["e"], business_definition="d").is_well_defined
        assert not Term(id="t", name="T", owner="o", business_definition="d").is_well_defined

    def test_contract_definitions_and_term_name(self):
        contract = SemanticContract(
            id="c", name="c",
            terms=[Term(id="t1", name="Customer", description="payer"), Term(id="t2", name="Order")],
        )
        assert contract.definitions() == {"Customer": "payer", "Order": ""}
        assert contract.term_name("t1") == "Customer"
        assert contract.term_name("missing") == "missing"

    def test_lineage_completeness(self):
        step = LineageStep(source_id="pg", object="customers", fields=["id"])
        assert Lineage(run_id="r", timestamp="t", steps=[step]).is_complete
        assert not Lineage(run_id="r", timestamp="t", steps=[]).is_complete
        incomplete = LineageStep(source_id="pg", object="customers", fields=[])
        assert not Lineage(run_id="r", timestamp="t", steps=[step, incomplete]).is_complete

    def test_severity_weights(self):
        assert [s.weight for s in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)] == [4, 3, 2, 1]
