"""
Governance analyses: drift detection, semantic debt scoring, term templates.
"""

from .assessment import DebtAssessor, SemanticDebtAssessment, UsageSignals
from .calculator import AssessmentInput, AssessmentResult, DebtCalculator
from .drift import DriftDetector
from .templates import (
    TEMPLATES,
    TermTemplate,
    all_categories,
    search_templates,
    template_by_name,
    templates_by_category,
)

__all__ = [
    "DebtAssessor",
    "SemanticDebtAssessment",
    "UsageSignals",
    "AssessmentInput",
    "AssessmentResult",
    "DebtCalculator",
    "DriftDetector",
    "TEMPLATES",
    "TermTemplate",
    "all_categories",
    "search_templates",
    "template_by_name",
    "templates_by_category",
]
