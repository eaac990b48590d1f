"""
CLI utility helpers -- input loading, output formatting, error exits.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, NoReturn

import typer
from pydantic import BaseModel, ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from semspine.connectors.base import Closeable, Connector
from semspine.core.errors import SemspineError
from semspine.core.models import CanonicalQuery, DataSourceRef, SemanticContract
from semspine.translation.intent import parse_intent

console = Console()
err_console = Console(stderr=True)


# ── Errors ───────────────────────────────────────────────────────────────


def fail(message: str, *, code: str | None = None) -> NoReturn:
    """Print a red error line and exit 1."""
    prefix = f"[bold red]Error[/bold red] ({code})" if code else "[bold red]Error[/bold red]"
    err_console.print(f"{prefix}: {escape(message)}")
    raise typer.Exit(code=1)


def fail_on(error: Exception) -> NoReturn:
    if isinstance(error, SemspineError):
        fail(error.message, code=error.category.value)
    if isinstance(error, ValidationError):
        fail(f"{error.error_count()} validation error(s): {error.errors()[0]['msg']}", code="VALIDATION")
    fail(str(error))


# ── Input loading ────────────────────────────────────────────────────────


def load_json(path: str) -> Any:
    """Read JSON from a file path, or from stdin when ``path`` is ``-``."""
    try:
        text = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    except OSError as e:
        fail(f"Cannot read {path}: {e.strerror or e}")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON in {path}: {e}")


def load_contract(path: str) -> SemanticContract:
    try:
        return SemanticContract.model_validate(load_json(path))
    except ValidationError as e:
        fail_on(e)


def load_sources(path: str) -> list[DataSourceRef]:
    """Sources file: a JSON list of sources, or ``{"sources": [...]}``."""
    payload = load_json(path)
    if isinstance(payload, dict):
        payload = payload.get("sources", [])
    try:
        return [DataSourceRef.model_validate(item) for item in payload]
    except ValidationError as e:
        fail_on(e)


def load_query(value: str) -> CanonicalQuery:
    """A query file, inline JSON, or a supported free-text phrase."""
    if value != "-" and not _is_file(value):
        try:
            return parse_intent(value)
        except SemspineError as e:
            fail_on(e)
    payload = load_json(value)
    try:
        return CanonicalQuery.model_validate(payload)
    except ValidationError as e:
        fail_on(e)


def _is_file(value: str) -> bool:
    try:
        return Path(value).is_file()
    except OSError:
        # inline JSON longer than the platform's path limit
        return False


async def close_all(connectors: Mapping[str, Connector]) -> None:
    for connector in connectors.values():
        if isinstance(connector, Closeable):
            await connector.aclose()


# ── Output helpers ───────────────────────────────────────────────────────


def to_plain(obj: Any) -> Any:
    """Convert models (and lists of them) to JSON-ready structures."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(obj, (list, tuple)):
        return [to_plain(item) for item in obj]
    if isinstance(obj, dict):
        return {k: to_plain(v) for k, v in obj.items()}
    return obj


def print_json(obj: Any) -> None:
    console.print_json(json.dumps(to_plain(obj), default=str))


def print_table(rows: list[dict[str, Any]], *, title: str = "", columns: list[str] | None = None) -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    columns = columns or list(dict.fromkeys(key for row in rows for key in row))
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(_cell(row.get(col)) for col in columns))
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {_cell(v)}")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return escape(json.dumps(value, default=str))
    return escape(str(value))
