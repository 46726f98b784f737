#!/usr/bin/env python3
"""
Risk account CLI.

List accounts, add new ones, edit inputs and see derived risk.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from biasdesk.accounts import AccountField, AccountManager
from biasdesk.accounts.book import parse_field
from biasdesk.core.config import Config
from biasdesk.core.models import ACCOUNT_SIZES, CalculationMode, coerce_enum
from biasdesk.core.store import SqlKeyValueStore
from biasdesk.core.utils import parse_numeric

app = typer.Typer(help="Risk account management")
console = Console()


def _manager() -> AccountManager:
    load_dotenv()
    config = Config.from_env()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    return AccountManager(SqlKeyValueStore(config), config)


def _size_label(size: int) -> str:
    return "Disabled" if size == 0 else f"${size:,}"


def _print_accounts(manager: AccountManager) -> None:
    table = Table(title="Accounts")
    table.add_column("#", justify="right")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Size")
    table.add_column("Balance", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Mode")
    table.add_column("Risk %", justify="right")
    table.add_column("Risk $", justify="right", style="cyan")
    table.add_column("Trades Left", justify="right")

    for index, account in enumerate(manager.list(), start=1):
        actual = f"${account.actual_balance:,.2f}" if account.is_enabled else "-"
        table.add_row(
            str(index),
            str(account.id),
            account.name or f"Account {index}",
            _size_label(account.account_size),
            account.balance or "-",
            actual,
            account.calculation_mode.value,
            f"{account.risk_percentage}%",
            f"${account.risk_amount:,.2f}",
            str(account.remaining_trades),
        )

    console.print(table)


@app.command("list")
def list_accounts():
    """Show all accounts with derived risk."""
    _print_accounts(_manager())


@app.command()
def add():
    """Add a new (disabled) account."""
    manager = _manager()
    account = manager.create()
    console.print(f"[green]Account {account.id} added.[/green]")
    _print_accounts(manager)


@app.command("set")
def set_field(
    account_id: int = typer.Argument(..., help="Account ID"),
    field: str = typer.Argument(..., help=f"Field: {', '.join(f.value for f in AccountField)}"),
    value: str = typer.Argument("", help="New value"),
):
    """
    Set one account input and re-derive risk.
    """
    resolved = parse_field(field)
    if resolved is None:
        console.print(f"[red]Unknown field: {field}[/red]")
        raise typer.Exit(1)

    if resolved == AccountField.ACCOUNT_SIZE and parse_numeric(value) not in ACCOUNT_SIZES:
        console.print(f"[red]Account size must be one of {', '.join(map(str, ACCOUNT_SIZES))}[/red]")
        raise typer.Exit(1)

    if resolved == AccountField.CALCULATION_MODE and coerce_enum(CalculationMode, value, None) is None:
        console.print(f"[red]Mode must be one of {', '.join(m.value for m in CalculationMode)}[/red]")
        raise typer.Exit(1)

    manager = _manager()
    if manager.get(account_id) is None:
        console.print(f"[red]Account {account_id} not found.[/red]")
        raise typer.Exit(1)

    manager.update(account_id, resolved, value)
    _print_accounts(manager)


@app.command()
def delete(
    account_id: int = typer.Argument(..., help="Account ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete an account."""
    manager = _manager()
    if manager.get(account_id) is None:
        console.print(f"[red]Account {account_id} not found.[/red]")
        raise typer.Exit(1)

    if not yes and not Confirm.ask(f"Delete account {account_id}?", console=console):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    manager.delete(account_id)
    console.print(f"[green]Account {account_id} deleted.[/green]")


if __name__ == "__main__":
    app()
