"""
CLI layer for rbxfetch.

Provides a Typer application whose commands delegate to
:class:`rbxfetch.client.Client`. This package handles only terminal
transport: argument parsing, coloured output, and table formatting.

Entry point::

    rbxfetch --help
"""

from rbxfetch.cli.app import app

__all__ = ["app"]
