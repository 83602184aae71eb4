"""
CLI: ``rbxfetch config`` — inspect the effective client configuration.
"""

from __future__ import annotations

import typer

from rbxfetch.cli.utils import cli_errors, console, fail, get_settings, print_table
from rbxfetch.client import Client, ClientConfig

app = typer.Typer(no_args_is_help=True)


def _load(ctx: typer.Context) -> ClientConfig:
    settings = get_settings(ctx)
    config = None
    if settings.config_file is not None:
        config = ClientConfig.from_yaml_file(settings.config_file)
    return Client(config).config()


@app.command("dump")
def dump_config(
    ctx: typer.Context,
    format: str = typer.Option("yaml", "--format", "-f", help="Output format: yaml, json"),
) -> None:
    """Print the effective methods and chains."""
    if format not in ("yaml", "json"):
        fail(f"unknown format {format!r} (expected yaml or json)", "CONFIG")
    with cli_errors():
        config = _load(ctx)
    if format == "json":
        typer.echo(config.model_dump_json(indent=2))
    else:
        typer.echo(config.to_yaml(), nl=False)


@app.command("methods")
def list_methods(ctx: typer.Context) -> None:
    """List each method and the chains it tries, in order."""
    with cli_errors():
        config = _load(ctx)
    print_table(
        [{"method": name, "chains": ", ".join(chains)} for name, chains in sorted(config.methods.items())],
        title="Methods",
    )


@app.command("show")
def show_settings(ctx: typer.Context) -> None:
    """Show the settings in effect (flags over RBXFETCH_* environment)."""
    settings = get_settings(ctx)
    for key, value in settings.model_dump(mode="json").items():
        console.print(f"  [cyan]{key}[/cyan]: {value}")
