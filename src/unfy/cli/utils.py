"""
CLI utility helpers — context construction and output formatting.
"""

from __future__ import annotations

import json
from typing import Any

try:
    import typer
    from rich.console import Console
    from rich.table import Table
except ImportError as e:  # pragma: no cover
    raise SystemExit("Missing CLI deps.  Install with:  pip install unfy-data") from e

from unfy.core.config import DatabaseSettings, get_settings
from unfy.core.context import DataContext
from unfy.core.errors import UnfyError
from unfy.core.serialize import json_default

console = Console()
err_console = Console(stderr=True)


# ── Context helper ───────────────────────────────────────────────────────


def make_context(database: str | None = None) -> DataContext:
    """Build a DataContext from settings.

    ``database`` overrides the configured backend with a SQLite file.
    """
    settings = get_settings()
    if database:
        settings = settings.model_copy(
            update={"database": DatabaseSettings(type="sqlite", path=database)}
        )
    return DataContext(settings)


def parse_where(option: str) -> tuple[str, str]:
    """Split ``[comparator]KEY=VALUE`` at the first ``=`` after the key.

    >>> parse_where(">=qty=2")
    ('>=qty', '2')
    """
    stripped = option.lstrip("<>=!")
    prefix = option[: len(option) - len(stripped)]
    key, sep, value = stripped.partition("=")
    if not sep or not key:
        raise typer.BadParameter(f"expected KEY=VALUE, got {option!r}", param_hint="--where")
    return prefix + key, value


def parse_sort(option: str) -> tuple[str, str]:
    """``COLUMN`` or ``COLUMN:desc``."""
    column, _, direction = option.partition(":")
    return column, direction or "ASC"


# ── Output helpers ───────────────────────────────────────────────────────


def fail(error: UnfyError | str) -> None:
    """Print an error in red and exit with code 1."""
    if isinstance(error, UnfyError):
        err_console.print(
            f"[bold red]Error[/bold red] ({error.category.value}): {error.message}"
        )
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=1)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=json_default))


def print_rows(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    columns = list(rows[0])
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
    console.print(table)


def print_mapping(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
