"""Fill a saved HTML form offline."""
from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from autofiller.config import get_settings
from autofiller.orchestrator import FillOrchestrator
from autofiller.page.soup_document import SoupDocument
from autofiller.storage import JsonFileStorage

from .summary import render_summary

console = Console()


@click.command(name="fill-html")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--profile", "profile_path", type=click.Path(dir_okay=False), help="JSON profile (defaults to AUTOFILLER_STORAGE_PATH)")
@click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False), help="Write the filled HTML here instead of stdout")
@click.option("--url", default="about:blank", help="Page URL to assume, used for origin-specific radio rules")
def fill_html_command(input_path: str, profile_path: Optional[str], output_path: Optional[str], url: str):
    """
    Fill INPUT_PATH, a saved HTML page, from the profile.

    Values, selections and checked radios are written into the markup.
    """
    settings = get_settings()
    html = Path(input_path).read_text(encoding="utf-8")
    document = SoupDocument(html, url=url)
    # No browser to pace or highlight for, so skip the delays.
    timing = dataclasses.replace(settings.timing(), fill_delay=0.0, highlight_duration=0.0, signal_delay=0.0)
    orchestrator = FillOrchestrator(document, JsonFileStorage(profile_path or settings.storage_path), timing=timing)

    async def run() -> None:
        await orchestrator.start()
        await orchestrator.wait_idle()
        await orchestrator.stop()

    asyncio.run(run())

    if output_path:
        Path(output_path).write_text(document.to_html(), encoding="utf-8")
        render_summary(console, orchestrator)
        console.print(f"[green]✓[/green] Wrote {output_path}")
    else:
        click.echo(document.to_html())
