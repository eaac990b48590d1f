"""
Root Typer application for the semspine CLI.

Contracts, source lists and queries are read as JSON files (``-`` for stdin);
queries may also be given inline as JSON or as a supported phrase.
"""

from __future__ import annotations

import asyncio

import typer
from rich.markup import escape
from typer import Typer

from semspine.cli.utils import (
    close_all,
    console,
    fail_on,
    load_contract,
    load_json,
    load_query,
    load_sources,
    print_dict,
    print_json,
    print_table,
)
from semspine.connectors.registry import build_connectors
from semspine.core.errors import SemspineError
from semspine.core.logging import configure_logging
from semspine.core.models import ResponseEnvelope, Severity
from semspine.core.result import Err, Ok
from semspine.core.settings import get_settings
from semspine.discovery import discover_all, profile_fields
from semspine.governance.drift import DriftDetector
from semspine.translation.compiler import Compiler
from semspine.translation.context import EngineContext
from semspine.translation.engine import Engine

app = Typer(
    name="semspine",
    help="semspine: semantic query translation, drift detection and semantic debt scoring.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from semspine import __version__

        typer.echo(f"semspine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override SEMSPINE_LOG_LEVEL."),
) -> None:
    """semspine CLI: compile and run canonical queries, check drift, score semantic debt."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_format == "json",
    )


# ── Translation ──────────────────────────────────────────────────────────


@app.command("compile")
def compile_query(
    contract_path: str = typer.Argument(..., metavar="CONTRACT", help="Semantic contract JSON"),
    query: str = typer.Argument(..., help="Query file, inline JSON, or phrase"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Compile a canonical query into per-source plans."""
    contract = load_contract(contract_path)
    canonical = load_query(query)
    try:
        results = Compiler(contract).compile_rules(canonical)
    except SemspineError as e:
        fail_on(e)

    if not any(isinstance(r, Ok) for r in results):
        fail_on(next(r.error for r in results if isinstance(r, Err)))

    if json_out:
        print_json([r.to_dict() for r in results])
        return

    rows = []
    for result in results:
        match result:
            case Ok(plan):
                nq = plan.native_query
                rows.append(
                    {
                        "rule": plan.rule_id,
                        "source": plan.source_id,
                        "object": nq.object,
                        "select": nq.select,
                        "where": [w.to_dict() for w in nq.where],
                        "limit": nq.limit,
                    }
                )
            case Err(error):
                console.print(f"[yellow]skipped[/yellow] {escape(str(error))}")
    print_table(rows, title="Plans")


@app.command("run")
def run_query(
    contract_path: str = typer.Argument(..., metavar="CONTRACT", help="Semantic contract JSON"),
    sources_path: str = typer.Argument(..., metavar="SOURCES", help="Data sources JSON"),
    query: str = typer.Argument(..., help="Query file, inline JSON, or phrase"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Compile and execute a query across all mapped sources."""
    contract = load_contract(contract_path)
    sources = load_sources(sources_path)
    canonical = load_query(query)

    async def _run() -> ResponseEnvelope:
        connectors = build_connectors(sources, http_timeout=get_settings().http_timeout_seconds)
        try:
            ctx = EngineContext.build(contract, connectors, sources)
            return await Engine().run(canonical, ctx)
        finally:
            await close_all(connectors)

    try:
        envelope = asyncio.run(_run())
    except SemspineError as e:
        fail_on(e)

    if json_out:
        print_json(envelope)
        return

    print_table(envelope.data, title=f"Results ({len(envelope.data)} rows)")
    print_dict(
        {
            "run_id": envelope.lineage.run_id,
            "timestamp": envelope.lineage.timestamp,
            "steps": len(envelope.lineage.steps),
        },
        title="Lineage",
    )
    for note in envelope.notes:
        console.print(f"[yellow]note[/yellow] {escape(note)}")


# ── Discovery and governance ─────────────────────────────────────────────


@app.command("discover")
def discover_sources(
    sources_path: str = typer.Argument(..., metavar="SOURCES", help="Data sources JSON"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Describe or sample every source and list its objects."""
    sources = load_sources(sources_path)
    settings = get_settings()

    async def _discover():
        connectors = build_connectors(sources, http_timeout=settings.http_timeout_seconds)
        try:
            return await discover_all(connectors, sample_size=settings.sample_size)
        finally:
            await close_all(connectors)

    try:
        results = asyncio.run(_discover())
    except SemspineError as e:
        fail_on(e)

    if json_out:
        print_json({source_id: r.to_dict() for source_id, r in results.items()})
        return

    rows = []
    for source_id, result in results.items():
        match result:
            case Ok(summary):
                rows.extend(
                    {"source": source_id, "object": obj.name, "fields": len(obj.fields)} for obj in summary.objects
                )
            case Err(error):
                console.print(f"[yellow]failed[/yellow] {escape(source_id)}: {escape(str(error))}")
    print_table(rows, title="Discovered objects")


@app.command("drift")
def detect_drift(
    contract_path: str = typer.Argument(..., metavar="CONTRACT", help="Semantic contract JSON"),
    sources_path: str = typer.Argument(..., metavar="SOURCES", help="Data sources JSON"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Compare the contract's mappings with live source schemas."""
    contract = load_contract(contract_path)
    sources = load_sources(sources_path)

    async def _detect():
        connectors = build_connectors(sources, http_timeout=get_settings().http_timeout_seconds)
        try:
            return await DriftDetector(contract, connectors, {s.id: s for s in sources}).detect()
        finally:
            await close_all(connectors)

    try:
        drifts = asyncio.run(_detect())
    except SemspineError as e:
        fail_on(e)

    if json_out:
        print_json(drifts)
    else:
        console.print(DriftDetector.report(drifts), markup=False)
    if any(d.severity == Severity.CRITICAL for d in drifts):
        raise typer.Exit(code=2)


@app.command("profile")
def profile(
    rows_path: str = typer.Argument(..., metavar="ROWS", help="JSON list of sampled rows"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Profile sampled rows: null ratio, distinct values, type guess."""
    rows = load_json(rows_path)
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        fail_on(ValueError("ROWS must be a JSON list of objects"))
    profiles = profile_fields(rows)

    if json_out:
        print_json(profiles)
        return
    print_table(
        [
            {
                "field": p.name,
                "null_ratio": f"{p.null_ratio:.2f}",
                "distinct": p.distinct_count,
                "type_guess": p.type_guess,
                "top": ", ".join(f"{t.value} ({t.count})" for t in (p.top_values or [])[:3]),
            }
            for p in profiles
        ],
        title="Field profiles",
    )


# ── Sub-command registration ─────────────────────────────────────────────

from semspine.cli.debt import app as debt_app  # noqa: E402
from semspine.cli.templates import app as templates_app  # noqa: E402

app.add_typer(debt_app, name="debt", help="Semantic debt scoring.")
app.add_typer(templates_app, name="templates", help="Business term templates.")
