"""CLI for SplitLedger using Typer."""

import logging
import sys
from contextlib import contextmanager
from decimal import Decimal

import typer
from rich.console import Console
from rich.table import Table

from .balances import split_share
from .config import Settings, load_settings
from .db import Database
from .exceptions import InvalidParticipantError, SplitLedgerError
from .models import Expense, Transfer
from .service import LedgerService
from .store import LedgerStore
from .ui import select_participant_interactive, select_participants_interactive

app = typer.Typer(
    name="split-ledger",
    help="Track shared expenses and settle up with as few payments as possible",
)
participant_app = typer.Typer(help="Manage participants")
expense_app = typer.Typer(help="Manage expenses")

app.add_typer(participant_app, name="participant")
app.add_typer(expense_app, name="expense")

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def ledger_session(verbose: bool = False):
    """
    Open the configured ledger for one command.

    Yields (settings, store, service). Library errors are printed and turn
    into exit code 1; with --verbose unexpected errors are re-raised.
    """
    setup_logging(verbose)

    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        store = LedgerStore(db)
        service = LedgerService(store, tolerance=settings.settlement_tolerance)

        yield settings, store, service

    except SplitLedgerError as e:
        console.print(f"\n[bold yellow]⚠️  {e}[/bold yellow]\n")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def resolve_participant(store: LedgerStore, ref: str) -> str:
    """Find a participant by id or (case-insensitive) name."""
    if store.get_participant(ref):
        return ref

    matches = [p for p in store.participants if p.name.lower() == ref.lower()]
    if len(matches) == 1:
        return matches[0].id
    if not matches:
        raise InvalidParticipantError(f"No participant named or with id '{ref}'")
    raise InvalidParticipantError(
        f"'{ref}' matches {len(matches)} participants, use an id instead"
    )


def resolve_expense(store: LedgerStore, ref: str) -> str | None:
    """Find an expense by full id or unique id prefix (as shown in history)."""
    if store.get_expense(ref):
        return ref

    matches = [e.id for e in store.expenses if e.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def format_money(amount: Decimal, symbol: str = "$", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    The spaces ensure decimal points align in tables.
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            formatted = f"({symbol}[red]{abs_amount:,.2f}[/red])"
        else:
            formatted = f"({symbol}{abs_amount:,.2f})"
    else:
        if use_color:
            formatted = f" [green]{symbol}{abs_amount:,.2f}[/green] "
        else:
            formatted = f" {symbol}{abs_amount:,.2f} "
    return formatted


def display_transfers(
    transfers: list[Transfer], store: LedgerStore, settings: Settings
):
    """Display settlement transfers in a table."""
    table = Table(title="Payments", show_header=True, header_style="bold magenta")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Amount", justify="right", width=12)

    for transfer in transfers:
        table.add_row(
            store.participant_name(transfer.from_participant),
            store.participant_name(transfer.to_participant),
            format_money(transfer.amount, settings.currency_symbol, use_color=False),
        )

    console.print(table)


def describe_status(expense: Expense) -> str:
    if expense.is_settlement:
        return "[magenta]Settlement[/magenta]"
    if expense.is_settled:
        return f"[dim]Settled ({(expense.settlement_id or '')[:6]})[/dim]"
    return "[green]Active[/green]"


# ============================================================================
# Participants
# ============================================================================


@participant_app.command("add")
def participant_add(
    name: str = typer.Argument(..., help="Participant name"),
    email: str | None = typer.Option(None, "--email", "-e", help="Optional email"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a participant."""
    with ledger_session(verbose) as (_settings, store, _service):
        participant = store.add_participant(name, email=email)
        console.print(
            f"[green]✓ Added {participant.name}[/green] [dim]({participant.id})[/dim]"
        )


@participant_app.command("remove")
def participant_remove(
    participant: str = typer.Argument(..., help="Participant id or name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Remove a participant.

    Expenses they paid for are deleted, and they are dropped from the
    split of every other expense.
    """
    with ledger_session(verbose) as (_settings, store, _service):
        participant_id = resolve_participant(store, participant)
        name = store.participant_name(participant_id)
        before = len(store.expenses)
        store.remove_participant(participant_id)
        removed = before - len(store.expenses)

        console.print(f"[green]✓ Removed {name}[/green]")
        if removed:
            console.print(f"[yellow]{removed} dependent expense(s) deleted[/yellow]")


@participant_app.command("list")
def participant_list(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List participants."""
    with ledger_session(verbose) as (_settings, store, _service):
        if not store.participants:
            console.print("[yellow]No participants yet.[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Email")

        for participant in store.participants:
            table.add_row(participant.id, participant.name, participant.email or "")

        console.print(table)


# ============================================================================
# Expenses
# ============================================================================


@expense_app.command("add")
def expense_add(
    description: str = typer.Argument(..., help="What the money was spent on"),
    amount: str = typer.Argument(..., help="Amount paid, e.g. 12.50"),
    paid_by: str | None = typer.Option(
        None, "--paid-by", "-p", help="Payer id or name (prompts if omitted)"
    ),
    split: list[str] | None = typer.Option(
        None, "--split", "-s", help="Participant id or name to split with (repeatable)"
    ),
    split_all: bool = typer.Option(
        False, "--all", "-a", help="Split among all participants"
    ),
    category: str | None = typer.Option(None, "--category", "-c", help="Category"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add an expense split equally among participants."""
    with ledger_session(verbose) as (settings, store, _service):
        participants = store.participants
        if not participants:
            console.print("[yellow]Add participants first.[/yellow]")
            return

        if paid_by:
            payer_id = resolve_participant(store, paid_by)
        else:
            console.print(f"\n💸 Who paid for: {description}")
            payer_id = select_participant_interactive(participants)
            if payer_id is None:
                console.print("[yellow]Cancelled.[/yellow]")
                return

        if split_all:
            split_ids = [p.id for p in participants]
        elif split:
            split_ids = [resolve_participant(store, ref) for ref in split]
        else:
            console.print(f"\n👥 Who shares: {description}")
            split_ids = select_participants_interactive(participants)
            if not split_ids:
                console.print("[yellow]Cancelled.[/yellow]")
                return

        expense = store.add_expense(
            description, amount, payer_id, split_ids, category=category
        )

        symbol = settings.currency_symbol
        console.print(
            f"[green]✓ Added '{expense.description}'[/green] "
            f"{symbol}{expense.amount:,.2f} paid by "
            f"{store.participant_name(expense.paid_by)}, "
            f"{symbol}{split_share(expense):,.2f} each [dim]({expense.id})[/dim]"
        )


@expense_app.command("remove")
def expense_remove(
    expense_id: str = typer.Argument(..., help="Expense id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Remove an expense."""
    with ledger_session(verbose) as (_settings, store, _service):
        resolved = resolve_expense(store, expense_id)
        if resolved is None:
            console.print(f"[yellow]No expense with id {expense_id}.[/yellow]")
            return

        store.remove_expense(resolved)
        console.print("[green]✓ Expense removed[/green]")


@expense_app.command("edit")
def expense_edit(
    expense_id: str = typer.Argument(..., help="Expense id"),
    description: str | None = typer.Option(None, "--description", "-d"),
    amount: str | None = typer.Option(None, "--amount", "-m"),
    category: str | None = typer.Option(None, "--category", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Edit the description, amount or category of an expense."""
    with ledger_session(verbose) as (_settings, store, _service):
        updates = {
            key: value
            for key, value in {
                "description": description,
                "amount": amount,
                "category": category,
            }.items()
            if value is not None
        }
        if not updates:
            console.print("[yellow]Nothing to change.[/yellow]")
            return

        resolved = resolve_expense(store, expense_id)
        if resolved is None or store.update_expense(resolved, **updates) is None:
            console.print(f"[yellow]No expense with id {expense_id}.[/yellow]")
            return

        console.print("[green]✓ Expense updated[/green]")


@expense_app.command("list")
def expense_list(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List expenses and settlements, newest first."""
    with ledger_session(verbose) as (settings, store, _service):
        show_history(store, settings)


@app.command()
def history(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show expense and settlement history, newest first."""
    with ledger_session(verbose) as (settings, store, _service):
        show_history(store, settings)


def show_history(store: LedgerStore, settings: Settings):
    """Display the expense history table."""
    expenses = store.history()
    if not expenses:
        console.print("[yellow]No expenses yet.[/yellow]")
        return

    table = Table(title="History", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=8)
    table.add_column("Date")
    table.add_column("Description", style="cyan", width=30)
    table.add_column("Amount", justify="right", width=12)
    table.add_column("Paid by")
    table.add_column("Split")
    table.add_column("Status")

    for expense in expenses:
        if expense.is_settlement:
            details = ", ".join(
                f"{store.participant_name(t.from_participant)} → "
                f"{store.participant_name(t.to_participant)} "
                f"{settings.currency_symbol}{t.amount:,.2f}"
                for t in expense.settlement_details or []
            )
            row = [
                expense.id[:8],
                f"{expense.date:%b %d, %Y %H:%M}",
                expense.description,
                "",
                "",
                details,
                describe_status(expense),
            ]
        else:
            row = [
                expense.id[:8],
                f"{expense.date:%b %d, %Y %H:%M}",
                expense.description,
                format_money(expense.amount, settings.currency_symbol, use_color=False),
                store.participant_name(expense.paid_by),
                ", ".join(store.participant_name(pid) for pid in expense.split_among),
                describe_status(expense),
            ]
        table.add_row(*row)

    console.print(table)
    console.print(
        f"\n[bold]Total expenses:[/bold] "
        f"{format_money(store.total_expenses(), settings.currency_symbol)}"
    )


# ============================================================================
# Balances and settling up
# ============================================================================


@app.command()
def balances(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show what each participant paid, owes and their net balance."""
    with ledger_session(verbose) as (settings, _store, service):
        rows = service.balances()
        if not rows:
            console.print("[yellow]No participants yet.[/yellow]")
            return

        symbol = settings.currency_symbol
        table = Table(title="Balances", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Paid", justify="right", width=12)
        table.add_column("Owed", justify="right", width=12)
        table.add_column("Balance", justify="right", width=14)

        for participant in rows:
            table.add_row(
                participant.name,
                format_money(participant.total_paid, symbol, use_color=False),
                format_money(participant.total_owed, symbol, use_color=False),
                format_money(participant.balance, symbol),
            )

        console.print(table)


@app.command()
def plan(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the payments that would settle all balances (dry run)."""
    with ledger_session(verbose) as (settings, store, service):
        transfers = service.propose_settlement()
        if not transfers:
            console.print("[green]Nothing to settle! Everyone is already even.[/green]")
            return

        display_transfers(transfers, store, settings)
        console.print(
            "\n[bold]To record these payments, run:[/bold]\n"
            "  [cyan]split-ledger settle[/cyan]\n"
        )


@app.command()
def settle(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Settle up.

    Marks every active expense as settled and records the payments in
    history. Balances are zero afterwards.
    """
    with ledger_session(verbose) as (settings, store, service):
        transfers = service.propose_settlement()
        if not transfers:
            console.print("[green]Nothing to settle! Everyone is already even.[/green]")
            return

        display_transfers(transfers, store, settings)

        if not yes:
            console.print("\n[bold yellow]⚠️  Ready to settle up[/bold yellow]")
            confirm = input("Continue? [y/N] ").strip().lower()
            if confirm not in ("y", "yes"):
                console.print("[yellow]Cancelled.[/yellow]")
                return

        record = service.settle_up()
        if record:
            console.print("\n[bold green]✓ Successfully settled up![/bold green]")
            console.print(f"[green]Settlement ID: {record.id}[/green]\n")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete all participants and expenses."""
    with ledger_session(verbose) as (_settings, store, _service):
        if not yes:
            confirm = input("Delete ALL ledger data? [y/N] ").strip().lower()
            if confirm not in ("y", "yes"):
                console.print("[yellow]Cancelled.[/yellow]")
                return

        store.clear()
        console.print("[green]✓ All data cleared[/green]")


if __name__ == "__main__":
    app()
