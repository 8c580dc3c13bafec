"""
CLI layer for unfy.

A Typer application for inspecting a configured database through the
record engine: list tables, describe a table's logical schema, show one
record, run a filtered record set.

Entry point::

    unfy --help
"""

from unfy.cli.app import app

__all__ = ["app"]
