"""
Context bundle for language-model prompts.

Summarises a contract (and optionally a discovery result) into a plain dict
that can be serialised into a system prompt, so a model knows the business
vocabulary, the mapped objects and the safety rules of the translation layer.
"""

from __future__ import annotations

from typing import Any

from semspine.core.models import DiscoverySummary, SemanticContract

BUNDLE_OPERATORS = ["=", "IN", "LIKE", ">", "<", ">=", "<="]


def build_context(contract: SemanticContract, discovery: DiscoverySummary | None = None) -> dict[str, Any]:
    objects = []
    if discovery is not None:
        objects = [
            {"name": obj.name, "fields": [{"name": f.name, "type": f.type} for f in obj.fields]}
            for obj in discovery.objects
        ]
    return {
        "purpose": "Translation layer guidance",
        "terms": [{"name": t.name, "description": t.description or ""} for t in contract.terms],
        "objects": objects,
        "rules": [
            {"termId": r.term_id, "object": r.object, "fields": list(r.fields), "expression": r.expression}
            for r in contract.rules
        ],
        "safety": {
            "readOnly": True,
            "allowedOperators": list(BUNDLE_OPERATORS),
            "lineageRequired": True,
        },
    }


__all__ = ["build_context", "BUNDLE_OPERATORS"]
