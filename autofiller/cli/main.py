#!/usr/bin/env python3
"""Main CLI entry point for the autofiller engine."""
from __future__ import annotations

import sys
from typing import Optional

import click
from rich.console import Console

from autofiller import __version__
from autofiller.config import get_settings
from autofiller.logging_setup import configure_logging

from .commands import fill, fill_html, rules, selectors

console = Console()


@click.group()
@click.option("--log-level", default=None, help="Log level (defaults to AUTOFILLER_LOG_LEVEL)")
@click.option("--debug", is_flag=True, help="Shortcut for --log-level DEBUG")
@click.version_option(version=__version__, prog_name="autofiller")
def cli(log_level: Optional[str], debug: bool):
    """
    Autofiller - detect, score and fill web form fields from a stored profile.

    The profile is a JSON document holding universalFormData, socialLinks,
    fillPassword, selectedCategory, selectedLocation, radioButtonSelections
    and settings.
    """
    configure_logging("DEBUG" if debug else (log_level or get_settings().log_level))


# Register all commands
cli.add_command(fill.fill_command)
cli.add_command(fill_html.fill_html_command)
cli.add_command(selectors.selectors_command)
cli.add_command(rules.rules_command)


def main():
    """Entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
