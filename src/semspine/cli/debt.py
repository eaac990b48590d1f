"""
CLI: ``semspine debt`` -- semantic debt assessment and calculation.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError
from rich.markup import escape

from semspine.cli.utils import console, fail_on, load_contract, load_json, print_dict, print_json, print_table
from semspine.core.models import ResponseEnvelope
from semspine.governance.assessment import DebtAssessor, UsageSignals
from semspine.governance.calculator import AssessmentInput, DebtCalculator

app = typer.Typer(no_args_is_help=True)


@app.command("assess")
def assess(
    contract_path: str = typer.Argument(..., metavar="CONTRACT", help="Semantic contract JSON"),
    history: str | None = typer.Option(None, "--history", help="JSON list of past response envelopes"),
    organization: str = typer.Option("default", "--org"),
    assessed_by: str = typer.Option("semspine", "--by"),
    median_minutes: float = typer.Option(45, "--median-minutes", help="Median minutes to a trusted answer"),
    monthly_tickets: int = typer.Option(12, "--monthly-tickets", help="Definition-related tickets per month"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Assess the semantic debt of a contract (and its query history)."""
    contract = load_contract(contract_path)
    envelopes = []
    if history:
        try:
            envelopes = [ResponseEnvelope.model_validate(item) for item in load_json(history)]
        except ValidationError as e:
            fail_on(e)

    usage = UsageSignals(median_minutes=median_minutes, monthly_tickets=monthly_tickets)
    assessment = DebtAssessor(contract, envelopes, usage=usage).assess(organization, assessed_by)

    if json_out:
        print_json(assessment)
        return

    m = assessment.metrics
    print_dict(
        {
            "overall_score": assessment.overall_score,
            "term_coverage": m.term_coverage.score,
            "lineage_completeness": m.lineage_completeness.score,
            "wrangling_efficiency": m.wrangling_efficiency.score,
            "rework_frequency": m.rework_frequency.score,
        },
        title=f"Semantic debt: {assessment.organization}",
    )
    if m.term_coverage.top_ambiguous_terms:
        console.print(f"  [cyan]ambiguous terms[/cyan]: {escape(', '.join(m.term_coverage.top_ambiguous_terms))}")
    print_table(
        [r.model_dump() for r in assessment.recommendations],
        title="Recommendations",
        columns=["priority", "category", "action", "effort"],
    )


@app.command("calculate")
def calculate(
    input_path: str = typer.Argument(..., metavar="INPUT", help="Assessment input JSON"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Score questionnaire-style assessment input."""
    try:
        data = AssessmentInput.model_validate(load_json(input_path))
    except ValidationError as e:
        fail_on(e)
    result = DebtCalculator().calculate(data)

    if json_out:
        print_json(result)
        return

    print_dict(
        {
            "overall_score": result.overall_score,
            "level": result.semantic_debt_level,
            **result.metrics.model_dump(),
            **result.estimated_costs.model_dump(),
        },
        title="Semantic debt",
    )
    print_table(
        [r.model_dump() for r in result.recommendations],
        title="Recommendations",
        columns=["priority", "category", "action", "expected_savings", "timeframe"],
    )
    console.print("[bold]Next steps[/bold]")
    for i, step in enumerate(result.next_steps, 1):
        console.print(f"  {i}. {step}")
