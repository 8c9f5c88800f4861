"""Inspect the selector registry."""
from __future__ import annotations

from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from autofiller.selectors import DEFAULT_SELECTORS

console = Console()


@click.command(name="selectors")
@click.argument("field_type", required=False)
def selectors_command(field_type: Optional[str]):
    """
    Show selector patterns, for every field type or just FIELD_TYPE.
    """
    if field_type and not DEFAULT_SELECTORS.selectors_for(field_type):
        raise click.BadParameter(
            f"Unknown field type {field_type!r}. Known: {', '.join(DEFAULT_SELECTORS.field_types)}",
            param_hint="FIELD_TYPE",
        )
    field_types = [field_type.upper()] if field_type else list(DEFAULT_SELECTORS.field_types)

    table = Table(title="Selector Registry", show_header=True, header_style="bold cyan", border_style="cyan")
    table.add_column("Field", style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Selector", style="yellow")
    for name in field_types:
        for index, selector in enumerate(DEFAULT_SELECTORS[name], start=1):
            table.add_row(name if index == 1 else "", str(index), selector)
    console.print(table)
