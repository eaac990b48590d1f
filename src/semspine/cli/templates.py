"""
CLI: ``semspine templates`` -- browse the business term templates.
"""

from __future__ import annotations

import typer

from semspine.cli.utils import console, fail, print_dict, print_json, print_table
from semspine.governance.templates import (
    TEMPLATES,
    TermTemplate,
    search_templates,
    template_by_name,
    templates_by_category,
)

app = typer.Typer(no_args_is_help=True)


def _rows(templates: list[TermTemplate]) -> list[dict]:
    return [
        {"name": t.name, "category": t.category, "steward": t.governance.data_steward, "review": t.governance.review_cycle}
        for t in templates
    ]


@app.command("list")
def list_templates(
    category: str | None = typer.Option(None, "--category", "-c"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List templates, optionally for one category."""
    templates = templates_by_category(category) if category else list(TEMPLATES.values())
    if json_out:
        print_json(templates)
        return
    print_table(_rows(templates), title="Term templates")


@app.command("show")
def show_template(
    name: str = typer.Argument(..., help='Template name or key, e.g. "Active Customer"'),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one template in full."""
    template = template_by_name(name)
    if template is None:
        fail(f"No template named {name!r}")
    if json_out:
        print_json(template)
        return

    print_dict(
        {
            "category": template.category,
            "definition": template.business_definition,
            "steward": template.governance.data_steward,
            "review_cycle": template.governance.review_cycle,
        },
        title=template.name,
    )
    console.print("[bold]Examples[/bold]")
    for example in template.examples:
        console.print(f"  + {example}", markup=False)
    console.print("[bold]Counter-examples[/bold]")
    for example in template.counter_examples:
        console.print(f"  - {example}", markup=False)
    for kind, mappings in template.common_mappings.items():
        print_table(
            [{"field": k, "expression": v} for k, v in mappings.items()],
            title=f"{kind.value} mappings",
        )


@app.command("search")
def search(
    query: str = typer.Argument(...),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Search template names, categories and definitions."""
    templates = search_templates(query)
    if json_out:
        print_json(templates)
        return
    print_table(_rows(templates), title=f"Templates matching {query!r}")
