"""Tests for the business term template catalogue."""

from semspine.core.models import SourceKind
from semspine.governance.templates import (
    TEMPLATES,
    all_categories,
    search_templates,
    template_by_name,
    templates_by_category,
)


class TestCatalogue:
    def test_categories_in_first_seen_order(self):
        assert all_categories() == ["Customer", "Revenue", "Product", "Support", "Operations"]

    def test_by_category_is_case_insensitive(self):
        names = [t.name for t in templates_by_category("customer")]
        assert names == ["Active Customer", "Customer Lifetime Value"]

    def test_every_template_is_well_defined(self):
        for key, template in TEMPLATES.items():
            assert template.to_term(f"t_{key}").is_well_defined, key


class TestLookup:
    def test_by_display_name_or_key(self):
        assert template_by_name("Active  Customer") is TEMPLATES["active_customer"]
        assert template_by_name("system_uptime") is TEMPLATES["system_uptime"]
        assert template_by_name("Unknown Term") is None

    def test_search_matches_definition(self):
        assert TEMPLATES["active_customer"] in search_templates("CHURN")
        assert search_templates("zzz-no-match") == []


class TestConversion:
    def test_to_term(self):
        term = TEMPLATES["active_customer"].to_term("t_active", owner="cs-team")
        assert term.owner == "cs-team"
        assert term.version == "1.0"
        assert term.governance.requires_approval is True
        assert term.description == term.business_definition

    def test_owner_defaults_to_steward(self):
        term = TEMPLATES["active_customer"].to_term("t_active")
        assert term.owner == "Customer Success Team"

    def test_to_rule_uses_kind_mappings(self):
        rule = TEMPLATES["active_customer"].to_rule("r1", "t_active", "pg", SourceKind.SQL, "customers")
        assert rule.field_mappings["id"] == "customer_id"
        assert rule.fields == list(rule.field_mappings)
        assert rule.missing_field_mappings() == []

    def test_to_rule_unknown_kind_is_empty(self):
        rule = TEMPLATES["active_customer"].to_rule("r1", "t_active", "api", SourceKind.REST, "/customers")
        assert rule.field_mappings == {}
