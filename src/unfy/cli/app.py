"""
Root Typer application for the unfy CLI.

Every command reads the configured database (``UNFY_DATABASE__*``) unless
``--database`` points it at a SQLite file.
"""

from __future__ import annotations

import typer
from typer import Typer

from unfy.cli.utils import (
    console,
    fail,
    make_context,
    parse_sort,
    parse_where,
    print_json,
    print_mapping,
    print_rows,
)
from unfy.core.config import get_settings
from unfy.core.errors import UnfyError
from unfy.core.logging import configure_logging

app = Typer(
    name="unfy",
    help="unfy — inspect tables, schemas and records through the data layer.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_LOG_FORMATS = {"json": True, "console": False, "auto": None}


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from unfy import __version__

        typer.echo(f"unfy {__version__}")
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
    log_level: str | None = typer.Option(  # noqa: UP007
        None, "--log-level", help="Log level for core events (default: UNFY_LOG_LEVEL)."
    ),
) -> None:
    """unfy CLI — schema catalog and record engine diagnostics."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=_LOG_FORMATS[settings.log_format],
        service="unfy-cli",
    )


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def tables(
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite file path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List every table in the database."""
    with make_context(database) as ctx:
        try:
            names = ctx.provider.tables()
        except UnfyError as e:
            fail(e)
    if json_out:
        print_json(names)
        return
    print_rows([{"table": name} for name in names], title="Tables")


@app.command()
def describe(
    table: str = typer.Argument(..., help="Table name"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the logical schema of TABLE."""
    with make_context(database) as ctx:
        try:
            schema = ctx.schema(table)
        except UnfyError as e:
            fail(e)
    if json_out:
        print_json(schema.to_dict())
        return
    print_rows([column.to_dict() for column in schema], title=f"Schema: {schema.name}")


@app.command()
def show(
    table: str = typer.Argument(..., help="Table name"),
    record_id: int = typer.Argument(..., metavar="ID", help="Record id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one hydrated record."""
    with make_context(database) as ctx:
        try:
            record = ctx.record(table, record_id)
            if record is None:
                fail(f"Unknown table: {table}")
            data = record.to_dict()
        except UnfyError as e:
            fail(e)
    if len(data) <= 1:
        fail(f"No {table} row with id {record_id}")
    if json_out:
        print_json(data)
        return
    print_mapping(data, title=f"{table} #{record_id}")


@app.command()
def query(
    table: str = typer.Argument(..., help="Table name"),
    where: list[str] = typer.Option(
        [], "--where", "-w", help="Filter [op]KEY=VALUE, e.g. '>qty=2' or 'owner.region=west'"
    ),
    where_null: list[str] = typer.Option([], "--where-null", help="[op]KEY IS NULL filter"),
    sort: list[str] = typer.Option([], "--sort", "-s", help="COLUMN or COLUMN:desc"),
    limit: int = typer.Option(20, "--limit", "-n", min=0, help="Maximum rows to print"),
    dedupe: bool = typer.Option(False, "--dedupe", help="Collapse fan-out rows from joins"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run a filtered, sorted record set over TABLE."""
    filters: dict[str, str | None] = dict(parse_where(option) for option in where)
    filters.update({key: None for key in where_null})
    sorts = [parse_sort(option) for option in sort]

    with make_context(database) as ctx:
        try:
            records = ctx.records(table, filters, sorts, dedupe=dedupe)
            if records is None:
                fail(f"Unknown table: {table}")
            total = records.count()
            rows = [records.at(i).to_dict() for i in range(min(limit, total))]
        except (UnfyError, ValueError) as e:
            fail(e if isinstance(e, UnfyError) else str(e))

    if json_out:
        print_json({"table": table, "filters": filters, "count": total, "rows": rows})
        return
    print_rows(rows, title=f"{table}")
    console.print(f"\n[dim]Showing {len(rows)} of {total}[/dim]")
