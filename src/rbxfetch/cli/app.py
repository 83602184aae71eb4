"""
Root Typer application for the rbxfetch CLI.

Global options override the ``RBXFETCH_*`` environment and are stored on the
root context as an :class:`~rbxfetch.core.settings.RbxFetchSettings`.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from rbxfetch.cli.utils import cli_errors, copy_stream, fail, make_client, print_json, print_table
from rbxfetch.core.logging import configure_logging
from rbxfetch.core.settings import CacheMode, RbxFetchSettings

app = typer.Typer(
    name="rbxfetch",
    help="rbxfetch — fetch Roblox build information.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        try:
            v = pkg_version("rbxfetch")
        except PackageNotFoundError:
            from rbxfetch import __version__ as v
        typer.echo(f"rbxfetch {v}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    cache_mode: CacheMode | None = typer.Option(
        None, "--cache-mode", help="Cache mode for per-build content."
    ),
    cache_dir: Path | None = typer.Option(
        None, "--cache-dir", help="Cache directory (implies --cache-mode custom)."
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="YAML or JSON file replacing the default methods and chains."
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="DEBUG, INFO, WARNING, ERROR"),
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """rbxfetch CLI — latest and live builds, deploy history, per-build content."""
    overrides: dict[str, Any] = {}
    if cache_dir is not None:
        overrides["cache_location"] = cache_dir
        overrides["cache_mode"] = cache_mode or CacheMode.CUSTOM
    elif cache_mode is not None:
        overrides["cache_mode"] = cache_mode
    if config is not None:
        overrides["config_file"] = config
    if log_level is not None:
        overrides["log_level"] = log_level

    try:
        settings = RbxFetchSettings(**overrides)
    except ValidationError as e:
        fail(str(e), "CONFIG")
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    ctx.obj = settings


# ── Build endpoints ──────────────────────────────────────────────────────


@app.command("latest")
def latest(ctx: typer.Context) -> None:
    """Print the GUID of the latest build."""
    with cli_errors(), make_client(ctx) as client:
        guid = client.latest()
    typer.echo(guid.strip())


@app.command("live")
def live(ctx: typer.Context) -> None:
    """Print the GUIDs of the live builds, one per line."""
    with cli_errors(), make_client(ctx) as client:
        guids = client.live()
    for guid in guids:
        typer.echo(guid)


@app.command("builds")
def builds(
    ctx: typer.Context,
    limit: int | None = typer.Option(None, "--limit", "-n", min=1, help="Only the most recent N builds"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List builds from the deploy history."""
    with cli_errors(), make_client(ctx) as client:
        result = client.builds()
    if limit is not None:
        result = result[-limit:]
    rows = [b.to_dict() for b in result]
    if json_out:
        print_json(rows)
        return
    print_table(rows, title="Builds")


# ── Per-build content ────────────────────────────────────────────────────


@app.command("fetch")
def fetch(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="Method name, e.g. APIDump, ReflectionMetadata, ClassImages"),
    guid: str = typer.Argument(..., help="Build GUID, e.g. version-1a2b3c4d5e6f7a8b"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to FILE instead of stdout"),
) -> None:
    """Stream a method's content for one build."""
    with cli_errors(), make_client(ctx) as client:
        handle = client.method(method, guid)
        if handle is None:
            fail(f"method {method!r} is not configured", "CONFIG")
        with handle:
            if output is None:
                copy_stream(handle, typer.get_binary_stream("stdout"))
            else:
                with open(output, "wb") as out:
                    copy_stream(handle, out)


# ── Sub-command registration ─────────────────────────────────────────────

from rbxfetch.cli.config import app as config_app  # noqa: E402

app.add_typer(config_app, name="config", help="Configuration inspection.")
