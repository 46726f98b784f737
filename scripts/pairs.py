#!/usr/bin/env python3
"""
Trading pair bias CLI.

Track weekly/daily bias per pair. A pair goes stale at local midnight
until its bias is refreshed.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from biasdesk.core.config import Config
from biasdesk.core.models import Bias, Timeframe
from biasdesk.core.store import SqlKeyValueStore
from biasdesk.core.utils import format_age_human, utc_now
from biasdesk.pairs import PairManager, PairField

app = typer.Typer(help="Trading pair bias tracking")
console = Console()


def _manager() -> PairManager:
    load_dotenv()
    config = Config.from_env()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    return PairManager(SqlKeyValueStore(config), config)


def _bias_cell(bias: Bias) -> str:
    if bias == Bias.BULLISH:
        return "[green]▲ bullish[/green]"
    return "[red]▼ bearish[/red]"


def _print_pairs(manager: PairManager) -> None:
    now = utc_now()

    table = Table(title="Trading Pairs")
    table.add_column("ID")
    table.add_column("Pair", style="bold")
    table.add_column("Weekly")
    table.add_column("Daily")
    table.add_column("Updated")
    table.add_column("Status")

    for pair in manager.list():
        updated = "-"
        if pair.last_updated:
            updated = format_age_human((now - pair.last_updated).total_seconds()) + " ago"

        reason = manager.validity_reason(pair, now)
        status = "[green]valid[/green]" if reason is None else f"[red]{reason}[/red]"

        table.add_row(
            str(pair.id),
            pair.name or "[dim]Unnamed Pair[/dim]",
            _bias_cell(pair.weekly_bias),
            _bias_cell(pair.daily_bias),
            updated,
            status,
        )

    console.print(table)


def _require(manager: PairManager, pair_id: int):
    pair = manager.get(pair_id)
    if pair is None:
        console.print(f"[red]Pair {pair_id} not found.[/red]")
        raise typer.Exit(1)
    return pair


@app.command("list")
def list_pairs():
    """Show all pairs with validity."""
    _print_pairs(_manager())


@app.command()
def add(
    name: str = typer.Option(None, "--name", "-n", help="Pair name (e.g., EURUSD)"),
):
    """
    Add a pair. Prompts for the name when not given.
    """
    manager = _manager()

    if not name:
        name = Prompt.ask("Pair name", console=console, default="")

    if not name.strip():
        console.print("[yellow]A pair needs a name. Nothing added.[/yellow]")
        raise typer.Exit(1)

    pair = manager.create()
    manager.commit_name(pair.id, name)

    console.print(f"[green]Pair {name.strip()} added.[/green]")
    _print_pairs(manager)


@app.command()
def rename(
    pair_id: int = typer.Argument(..., help="Pair ID"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a pair."""
    manager = _manager()
    _require(manager, pair_id)

    if not name.strip():
        console.print("[red]Name cannot be blank.[/red]")
        raise typer.Exit(1)

    manager.commit_name(pair_id, name)
    _print_pairs(manager)


@app.command()
def bias(
    pair_id: int = typer.Argument(..., help="Pair ID"),
    timeframe: Timeframe = typer.Argument(..., help="weekly or daily"),
    value: Bias = typer.Argument(..., help="bullish or bearish"),
):
    """
    Set weekly or daily bias.

    Daily changes are archived in history and clear manual deactivation.
    """
    manager = _manager()
    _require(manager, pair_id)

    manager.set_bias(pair_id, timeframe, value)
    _print_pairs(manager)


@app.command()
def toggle(pair_id: int = typer.Argument(..., help="Pair ID")):
    """Manually deactivate or reactivate a pair."""
    manager = _manager()
    _require(manager, pair_id)

    manager.toggle_invalidation(pair_id)
    _print_pairs(manager)


@app.command()
def note(
    pair_id: int = typer.Argument(..., help="Pair ID"),
    text: str = typer.Argument("", help="Note text"),
):
    """Attach a free-text note to a pair."""
    manager = _manager()
    _require(manager, pair_id)

    manager.update(pair_id, PairField.NOTES, text)
    console.print(f"[green]Note saved for pair {pair_id}.[/green]")


@app.command()
def history(pair_id: int = typer.Argument(..., help="Pair ID")):
    """Show archived daily/weekly bias for a pair."""
    manager = _manager()
    pair = _require(manager, pair_id)

    if not pair.history:
        console.print("[dim]No history yet.[/dim]")
        return

    table = Table(title=f"{pair.name or 'Unnamed Pair'} History")
    table.add_column("Date")
    table.add_column("Daily")
    table.add_column("Weekly")

    tz = manager.tz
    for entry in pair.history:
        when = entry.date.astimezone(tz).strftime("%Y-%m-%d") if entry.date else "-"
        table.add_row(when, _bias_cell(entry.daily_bias), _bias_cell(entry.weekly_bias))

    console.print(table)


@app.command()
def delete(
    pair_id: int = typer.Argument(..., help="Pair ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a pair. This cannot be undone."""
    manager = _manager()
    pair = _require(manager, pair_id)

    prompt = f"Delete {pair.name or 'this trading pair'}? This action cannot be undone."
    if not yes and not Confirm.ask(prompt, console=console):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    manager.delete(pair_id)
    console.print(f"[green]Pair {pair_id} deleted.[/green]")


if __name__ == "__main__":
    app()
