#!/usr/bin/env python3
"""
Weekly trading calendar.

Shows this week's trading days and which ones to trade.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from datetime import datetime

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from biasdesk.core.config import Config
from biasdesk.review.weekly import build_week, week_title

app = typer.Typer(help="Weekly trading calendar")
console = Console()


@app.command()
def main():
    """
    Show Monday to Friday of the current week.
    """
    load_dotenv()
    config = Config.from_env()

    today = datetime.now(config.get_tzinfo()).date()

    console.print(f"\n[bold]{week_title(today)}[/bold]\n")

    for day in build_week(today):
        style = "white" if day.highlighted else "dim"
        border = "green" if day.is_today and day.highlighted else ("white" if day.highlighted else "bright_black")

        body = f"[{style}]{day.name}  {day.date.day}[/{style}]"
        if day.warning:
            body += f"\n[yellow]! {day.warning}[/yellow]"

        console.print(Panel(body, border_style=border, expand=False))


@app.command()
def settings():
    """Show current settings."""
    load_dotenv()
    config = Config.from_env()

    typer.echo(config.get_summary())


if __name__ == "__main__":
    app()
