"""Fill a live page with Playwright."""
from __future__ import annotations

import asyncio
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from autofiller.config import Settings, get_settings
from autofiller.orchestrator import FillOrchestrator
from autofiller.storage import JsonFileStorage

from .summary import render_summary

console = Console()


@click.command(name="fill")
@click.argument("url")
@click.option("--profile", "profile_path", type=click.Path(dir_okay=False), help="JSON profile (defaults to AUTOFILLER_STORAGE_PATH)")
@click.option("--headless/--headed", default=None, help="Run browser in headless mode")
@click.option("--watch-seconds", type=float, default=0.0, help="Keep watching for inserted forms this long")
def fill_command(url: str, profile_path: Optional[str], headless: Optional[bool], watch_seconds: float):
    """
    Open URL in a browser and autofill it from the profile.

    Examples:

      autofiller fill https://example.com/submit.php --profile profile.json

      autofiller fill https://example.com/signup --headed --watch-seconds 30
    """
    settings = get_settings()
    asyncio.run(
        _fill(
            url,
            profile_path or settings.storage_path,
            settings.headless if headless is None else headless,
            watch_seconds,
            settings,
        )
    )


async def _fill(url: str, profile_path: str, headless: bool, watch_seconds: float, settings: Settings):
    """Drive one page through the orchestrator."""
    from playwright.async_api import async_playwright

    from autofiller.page.playwright_document import PlaywrightDocument

    console.print(Panel(
        f"[bold cyan]Autofill[/bold cyan]\n\n"
        f"URL: [yellow]{url}[/yellow]\n"
        f"Profile: [yellow]{profile_path}[/yellow]\n"
        f"Headless: [yellow]{headless}[/yellow]",
        border_style="cyan"
    ))

    storage = JsonFileStorage(profile_path)
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        page = await browser.new_page()
        await page.goto(url)
        console.print(f"[green]✓[/green] Navigated to {url}")

        orchestrator = FillOrchestrator(
            PlaywrightDocument(page),
            storage,
            timing=settings.timing(),
            highlight_style=settings.highlight_style,
        )
        try:
            with console.status("[bold blue]Filling fields..."):
                await orchestrator.start()
                if watch_seconds > 0:
                    await asyncio.sleep(watch_seconds)
                await orchestrator.wait_idle()
        finally:
            await orchestrator.stop()
            await browser.close()

    console.print()
    render_summary(console, orchestrator)
