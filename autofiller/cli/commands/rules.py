"""Manage persisted radio-button rules."""
from __future__ import annotations

import asyncio
from typing import Optional

import click
import soupsieve
from rich.console import Console
from rich.table import Table

from autofiller.config import get_settings
from autofiller.radio import ORIGIN_RULES, RadioRuleStore
from autofiller.storage import JsonFileStorage

console = Console()


def _store(profile_path: Optional[str]) -> RadioRuleStore:
    return RadioRuleStore(JsonFileStorage(profile_path or get_settings().storage_path))


@click.group(name="rules")
@click.option("--profile", "profile_path", type=click.Path(dir_okay=False), help="JSON profile (defaults to AUTOFILLER_STORAGE_PATH)")
@click.pass_context
def rules_command(ctx, profile_path: Optional[str]):
    """
    Manage radio-button selection rules stored in the profile.
    """
    ctx.ensure_object(dict)
    ctx.obj["store"] = _store(profile_path)


@rules_command.command(name="list")
@click.option("--builtin", is_flag=True, help="Also show origin-specific built-in rules")
@click.pass_context
def list_rules(ctx, builtin: bool):
    """List stored rules."""
    rules = asyncio.run(ctx.obj["store"].load())

    table = Table(title="Radio Rules", show_header=True, header_style="bold cyan", border_style="cyan")
    table.add_column("Selector", style="yellow")
    table.add_column("Applies", justify="center")
    table.add_column("Scope", style="cyan")
    for pattern, rule in rules.items():
        table.add_row(pattern, "✓" if rule.should_apply else "✗", "profile")
    if builtin:
        for origin, patterns in ORIGIN_RULES.items():
            for pattern, should_apply in patterns.items():
                table.add_row(pattern, "✓" if should_apply else "✗", origin)
    console.print(table)


@rules_command.command(name="add")
@click.argument("pattern")
@click.option("--disabled", is_flag=True, help="Store the rule without applying it")
@click.pass_context
def add_rule(ctx, pattern: str, disabled: bool):
    """Add or update the rule for PATTERN."""
    try:
        soupsieve.compile(pattern)
    except soupsieve.SelectorSyntaxError as exc:
        raise click.BadParameter(str(exc), param_hint="PATTERN") from exc
    asyncio.run(ctx.obj["store"].add(pattern, should_apply=not disabled))
    console.print(f"[green]✓[/green] Stored rule {pattern}")


@rules_command.command(name="remove")
@click.argument("pattern")
@click.pass_context
def remove_rule(ctx, pattern: str):
    """Remove the rule for PATTERN."""
    if asyncio.run(ctx.obj["store"].remove(pattern)):
        console.print(f"[green]✓[/green] Removed rule {pattern}")
    else:
        console.print(f"[yellow]No rule for {pattern}[/yellow]")
