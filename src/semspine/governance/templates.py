"""
Pre-built business term templates.

A starting catalogue of common enterprise terms with definitions, examples,
counter-examples, typical field mappings per source kind and governance
defaults, so a new contract does not begin from a blank page.

Example:
    >>> template = template_by_name("Active Customer")
    >>> term = template.to_term("t_active_customer", owner="cs-team")
    >>> term.is_well_defined
    True
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import Field

from semspine.core.models import MappingRule, SemspineModel, SourceKind, Term, TermGovernance


class TemplateGovernance(SemspineModel):
    review_cycle: Literal["monthly", "quarterly", "biannual", "annual"]
    data_steward: str
    requires_approval: bool


class TermTemplate(SemspineModel):
    category: str
    name: str
    business_definition: str
    examples: list[str] = Field(default_factory=list)
    counter_examples: list[str] = Field(default_factory=list)
    common_mappings: dict[SourceKind, dict[str, str]] = Field(default_factory=dict)
    governance: TemplateGovernance

    def to_term(self, term_id: str, *, owner: str | None = None, version: str = "1.0") -> Term:
        return Term(
            id=term_id,
            name=self.name,
            description=self.business_definition,
            owner=owner or self.governance.data_steward,
            examples=list(self.examples),
            counter_examples=list(self.counter_examples),
            business_definition=self.business_definition,
            version=version,
            governance=TermGovernance(
                requires_approval=self.governance.requires_approval,
                data_steward=self.governance.data_steward,
                review_cycle=self.governance.review_cycle,
            ),
        )

    def to_rule(self, rule_id: str, term_id: str, source_id: str, kind: SourceKind, object: str) -> MappingRule:
        """Mapping rule seeded with this template's mappings for ``kind``."""
        mappings = dict(self.common_mappings.get(kind, {}))
        return MappingRule(
            id=rule_id,
            term_id=term_id,
            source_id=source_id,
            object=object,
            fields=list(mappings),
            field_mappings=mappings,
        )


def _template(**data) -> TermTemplate:
    return TermTemplate.model_validate(data)


TEMPLATES: dict[str, TermTemplate] = {
    # Customer
    "active_customer": _template(
        category="Customer",
        name="Active Customer",
        business_definition=(
            "A customer who has an active paid subscription and has not initiated churn within the last 90 days"
        ),
        examples=[
            "Customer with subscription renewed in last 30 days",
            "Customer who upgraded their plan this quarter",
            "Customer with active auto-renewal enabled",
        ],
        counter_examples=[
            "Trial user who hasn't converted to paid",
            "Customer who cancelled subscription last month",
            "Free tier user without paid features",
            "Customer in grace period before churn",
        ],
        common_mappings={
            "salesforce": {
                "id": "Id",
                "name": "Name",
                "is_active": "Active__c = true AND Churn_Date__c = null",
                "last_payment": "Last_Payment_Date__c",
            },
            "sql": {
                "id": "customer_id",
                "name": "customer_name",
                "is_active": (
                    "subscription_status = 'active' AND last_payment_date > DATE_SUB(NOW(), INTERVAL 90 DAY)"
                ),
                "last_payment": "last_payment_date",
            },
        },
        governance={"review_cycle": "quarterly", "data_steward": "Customer Success Team", "requires_approval": True},
    ),
    "customer_lifetime_value": _template(
        category="Customer",
        name="Customer Lifetime Value",
        business_definition="The total net profit attributed to the entire future relationship with a customer",
        examples=[
            "Total revenue minus cost of acquisition and support for a 5-year customer",
            "Projected future value based on current subscription and growth rate",
        ],
        counter_examples=["One-time purchase value", "Current quarter revenue only"],
        common_mappings={
            "sql": {
                "customer_id": "customer_id",
                "lifetime_value": "SUM(revenue - cac - support_cost) OVER (PARTITION BY customer_id ORDER BY date)",
                "acquisition_date": "first_purchase_date",
            },
        },
        governance={"review_cycle": "quarterly", "data_steward": "Finance Team", "requires_approval": True},
    ),
    # Revenue
    "recurring_revenue": _template(
        category="Revenue",
        name="Recurring Revenue",
        business_definition=(
            "Revenue from subscriptions and contracts that renew automatically or on a regular basis"
        ),
        examples=["Monthly subscription payments", "Annual contract renewals", "Auto-renewing service agreements"],
        counter_examples=["One-time consulting fees", "One-off product sales", "Professional services revenue"],
        common_mappings={
            "salesforce": {
                "id": "Id",
                "amount": "Amount",
                "is_recurring": "Recurring__c = true",
                "renewal_date": "Renewal_Date__c",
            },
            "sql": {
                "id": "revenue_id",
                "amount": "amount",
                "is_recurring": "revenue_type IN ('subscription', 'contract')",
                "frequency": "billing_frequency",
            },
        },
        governance={"review_cycle": "monthly", "data_steward": "Finance Team", "requires_approval": True},
    ),
    # Product
    "product_usage": _template(
        category="Product",
        name="Product Usage",
        business_definition="Measured engagement with product features and services over a defined time period",
        examples=[
            "Daily active users with feature X enabled",
            "API calls per month above baseline",
            "Feature adoption rate within first 30 days",
        ],
        counter_examples=["Total registered users", "One-time feature visits", "Support ticket volume"],
        common_mappings={
            "sql": {
                "user_id": "user_id",
                "feature": "feature_name",
                "usage_count": "COUNT(*) FILTER (WHERE event_type = 'usage')",
                "last_used": "MAX(event_timestamp)",
            },
        },
        governance={"review_cycle": "monthly", "data_steward": "Product Team", "requires_approval": True},
    ),
    # Support
    "customer_satisfaction": _template(
        category="Support",
        name="Customer Satisfaction",
        business_definition="Measure of how well the product or service meets customer expectations",
        examples=[
            "NPS score of 8 or higher",
            'CSAT survey response of "Very Satisfied"',
            "Support ticket resolution with positive feedback",
        ],
        counter_examples=["Raw ticket volume", "Response time metrics only", "Feature usage statistics"],
        common_mappings={
            "sql": {
                "customer_id": "customer_id",
                "satisfaction_score": "nps_score",
                "survey_response": "csat_response",
                "feedback_date": "survey_date",
            },
        },
        governance={"review_cycle": "monthly", "data_steward": "Customer Success Team", "requires_approval": True},
    ),
    # Operations
    "system_uptime": _template(
        category="Operations",
        name="System Uptime",
        business_definition="Percentage of time the system is available and functioning as expected",
        examples=[
            "99.9% availability excluding planned maintenance",
            "Zero downtime incidents in the last quarter",
            "All critical services operational during business hours",
        ],
        counter_examples=[
            "Total uptime including maintenance windows",
            "Individual service uptime without business impact",
            "Development environment availability",
        ],
        common_mappings={
            "sql": {
                "service": "service_name",
                "uptime_percentage": "(total_time - downtime_minutes) / total_time * 100",
                "incidents": "COUNT(*) FILTER (WHERE severity = 'critical')",
                "last_incident": "MAX(incident_date)",
            },
        },
        governance={"review_cycle": "monthly", "data_steward": "DevOps Team", "requires_approval": True},
    ),
}


def templates_by_category(category: str) -> list[TermTemplate]:
    wanted = category.lower()
    return [t for t in TEMPLATES.values() if t.category.lower() == wanted]


def all_categories() -> list[str]:
    return list(dict.fromkeys(t.category for t in TEMPLATES.values()))


def search_templates(query: str) -> list[TermTemplate]:
    """Templates whose name, category or definition contains ``query``."""
    q = query.lower()
    return [
        t
        for t in TEMPLATES.values()
        if q in t.name.lower() or q in t.category.lower() or q in t.business_definition.lower()
    ]


def template_by_name(name: str) -> TermTemplate | None:
    """Look up by display name or key: ``"Active Customer"`` -> ``active_customer``."""
    return TEMPLATES.get(re.sub(r"\s+", "_", name.lower()))


__all__ = [
    "TEMPLATES",
    "TemplateGovernance",
    "TermTemplate",
    "templates_by_category",
    "all_categories",
    "search_templates",
    "template_by_name",
]
