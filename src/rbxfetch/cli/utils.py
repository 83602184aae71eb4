"""
CLI utility helpers — client construction, error reporting and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rbxfetch.client import Client
from rbxfetch.core.errors import RbxFetchError, categorize_error
from rbxfetch.core.settings import RbxFetchSettings

console = Console()
err_console = Console(stderr=True)

CHUNK_SIZE = 64 * 1024


# ── Client helper ────────────────────────────────────────────────────────


def get_settings(ctx: typer.Context) -> RbxFetchSettings:
    """Settings resolved by the root callback (environment if none)."""
    settings = ctx.find_root().obj
    if isinstance(settings, RbxFetchSettings):
        return settings
    return RbxFetchSettings()


def make_client(ctx: typer.Context) -> Client:
    """Create a ``Client`` from the CLI settings.  Close it when done."""
    return Client.from_settings(get_settings(ctx))


# ── Error reporting ──────────────────────────────────────────────────────


def fail(message: str, code: str = "ERROR") -> None:
    """Print an error to stderr and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({code}): {escape(message)}")
    raise typer.Exit(code=1)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn library failures into a one-line stderr message and exit 1."""
    try:
        yield
    except RbxFetchError as e:
        fail(str(e), e.category.value)
    except (ValidationError, OSError) as e:
        fail(str(e), categorize_error(e).value)


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


def copy_stream(src: Any, dst: IO[bytes]) -> int:
    """Copy *src* to *dst* in chunks; return the number of bytes copied."""
    total = 0
    while True:
        chunk = src.read(CHUNK_SIZE)
        if not chunk:
            return total
        dst.write(chunk)
        total += len(chunk)
