"""Rich rendering shared by the fill commands."""
from __future__ import annotations

from rich.console import Console
from rich.table import Table

from autofiller.orchestrator import FillOrchestrator


def render_summary(console: Console, orchestrator: FillOrchestrator, title: str = "Autofill Summary") -> None:
    """Print per-pass counts and the controls that were written."""

    table = Table(title=title, show_header=True, header_style="bold cyan", border_style="cyan")
    table.add_column("Pass", style="cyan")
    table.add_column("Fields", justify="right", style="yellow")
    for name in ("fill", "category", "location", "radio"):
        table.add_row(name, str(orchestrator.results.get(name, 0)))
    table.add_row("failures", str(orchestrator.filler.failures), style="red" if orchestrator.filler.failures else None)
    console.print(table)

    if orchestrator.filler.filled:
        controls = Table(title="Controls Written", border_style="green")
        controls.add_column("Tag", style="cyan")
        controls.add_column("Name", style="yellow")
        controls.add_column("Id", style="yellow")
        for tag, name, element_id in sorted(orchestrator.filler.filled):
            controls.add_row(tag, name or "-", element_id or "-")
        console.print(controls)
    else:
        console.print("[yellow]No controls were filled.[/yellow]")
