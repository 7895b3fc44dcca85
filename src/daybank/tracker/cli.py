"""Command-line interface for daybank.

Built with Typer for commands and Rich for output.
"""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from .audit import DatabaseAuditSink
from .auth import StaticIdentityProvider
from .challenges import Challenge, ChallengeResponse
from .config import get_config
from .db import get_db
from .days import CHALLENGE_DAYS, date_for_day, to_local_date
from .deposits import DepositResponse
from .errors import DaybankError
from .logger import configure_logging
from .progress import ProgressSnapshot
from .service import SavingsService

# Create the main app
app = typer.Typer(
    name="daybank",
    help="Track a 200-day savings challenge: on day N, save N.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()

# Options shared by all commands, set in the callback
_state: dict = {"user": None}


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def get_service() -> SavingsService:
    """Build the service for the current invocation."""
    return SavingsService(
        db=get_db(),
        identity=StaticIdentityProvider(_state["user"]),
    )


def require_challenge(service: SavingsService) -> Challenge:
    """Current challenge of the caller, or exit with an error."""
    challenge = service.current_challenge()
    if challenge is None:
        print_error("No challenge yet. Start one with: daybank start")
        raise typer.Exit(1)
    return challenge


def format_progress_panel(progress: ProgressSnapshot) -> Panel:
    """Create a rich panel summarizing progress."""
    status = "active" if progress.is_active else "ended"
    if progress.is_completed:
        status += ", completed"

    lines = [
        f"[bold]Day {progress.current_day}[/bold] of {CHALLENGE_DAYS} ({status})",
        f"Window: {progress.start_date.date().isoformat()} to {progress.end_date.isoformat()}",
        "",
        f"Saved:     [green]{progress.total_deposited:,}[/green] of {progress.final_expected_total:,}"
        f" ({progress.amount_progress_percent:.2f}%)",
        f"Days done: [cyan]{progress.days_completed}[/cyan]"
        f" ({progress.progress_percent:.2f}%), {progress.days_remaining} remaining",
        f"Expected by today: {progress.expected_total:,}",
    ]
    if progress.behind_by:
        lines.append(f"[yellow]Behind by {progress.behind_by:,}[/yellow]")
    return Panel("\n".join(lines), title="Challenge Progress", border_style="blue")


# ============================================================================
# Commands
# ============================================================================


@app.callback()
def main(
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="Act as this user (default: DAYBANK_USER)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show info-level logs"),
) -> None:
    """Track a 200-day savings challenge."""
    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    _state["user"] = user or config.user
    configure_logging("INFO" if verbose else config.log_level, rich=True)


@app.command()
def version() -> None:
    """Show the daybank version."""
    console.print(f"daybank version {__version__}")


@app.command()
def start(
    start_date: Optional[str] = typer.Option(
        None, "--date", "-d", help="Start date (YYYY-MM-DD, default: today)"
    ),
) -> None:
    """Start a new 200-day challenge."""
    service = get_service()
    try:
        if start_date is None:
            start_date = to_local_date(service.clock(), service.tz).isoformat()
        challenge = service.start_challenge(start_date)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    print_success(
        f"Challenge {challenge.id} started on {challenge.start_date}, ends {challenge.end_date}"
    )


@app.command()
def show(
    as_json: bool = typer.Option(False, "--json", help="Print the wire representation"),
) -> None:
    """Show the current challenge."""
    service = get_service()
    try:
        challenge = require_challenge(service)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(ChallengeResponse.from_model(challenge).to_wire()))
        return

    table = Table(title="Challenge", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("ID", str(challenge.id))
    table.add_row("User", challenge.user_id)
    table.add_row("Start", challenge.start_date)
    table.add_row("End", challenge.end_date)
    table.add_row("Created", challenge.created_at)
    console.print(table)


@app.command("move-start")
def move_start(
    new_start: str = typer.Argument(..., help="New start date (YYYY-MM-DD)"),
) -> None:
    """Move the current challenge to a new start date.

    Recorded deposits keep their day numbers.
    """
    service = get_service()
    try:
        challenge = require_challenge(service)
        had_deposits = bool(service.list_deposits(challenge.id))
        updated = service.edit_start_date(challenge.id, new_start)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    print_success(f"Challenge now runs {updated.start_date} to {updated.end_date}")
    if had_deposits:
        print_warning("Existing deposits keep their day numbers, not their dates.")


@app.command()
def deposit(
    day: int = typer.Argument(..., help="Day number (1-200)"),
    at: Optional[str] = typer.Option(None, "--at", help="Deposit time (ISO 8601, default: now)"),
) -> None:
    """Record the deposit for a day (amount = day number)."""
    service = get_service()
    try:
        challenge = require_challenge(service)
        outcome = service.record_deposit(challenge.id, day, at)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    verb = "Recorded" if outcome.created else "Updated"
    print_success(f"{verb} day {day}: {outcome.deposit.amount}")
    console.print(format_progress_panel(outcome.progress))


@app.command()
def remove(
    day: int = typer.Argument(..., help="Day number (1-200)"),
) -> None:
    """Remove the deposit for a day."""
    service = get_service()
    try:
        challenge = require_challenge(service)
        existing = service.deposits.find_by_day(challenge.id, day)
        if existing is None:
            print_error(f"No deposit for day {day}")
            raise typer.Exit(1)
        progress = service.remove_deposit(existing.id)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    print_success(f"Removed day {day}")
    console.print(format_progress_panel(progress))


@app.command()
def toggle(
    day: int = typer.Argument(..., help="Day number (1-200)"),
) -> None:
    """Record a day if unfunded, remove it otherwise."""
    service = get_service()
    try:
        challenge = require_challenge(service)
        progress = service.toggle_day(challenge.id, day)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    state = "funded" if day in progress.deposited_days else "unfunded"
    print_success(f"Day {day} is now {state}")
    console.print(format_progress_panel(progress))


@app.command()
def deposits(
    as_json: bool = typer.Option(False, "--json", help="Print the wire representation"),
) -> None:
    """List recorded deposits."""
    service = get_service()
    try:
        challenge = require_challenge(service)
        rows = service.list_deposits(challenge.id)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps([DepositResponse.from_model(d).to_wire() for d in rows]))
        return

    if not rows:
        console.print("[dim]No deposits yet.[/dim]")
        return

    table = Table(title="Deposits", show_header=True, header_style="bold magenta")
    table.add_column("Day", justify="right", style="cyan")
    table.add_column("Date")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Deposited at", style="dim")
    for d in rows:
        table.add_row(
            str(d.day_number),
            date_for_day(challenge.start_date, d.day_number).isoformat(),
            str(d.amount),
            d.deposited_at,
        )
    console.print(table)
    console.print(f"[dim]{len(rows)} deposits, total {sum(d.amount for d in rows):,}[/dim]")


@app.command()
def progress(
    as_json: bool = typer.Option(False, "--json", help="Print the wire representation"),
) -> None:
    """Show challenge progress."""
    service = get_service()
    try:
        challenge = require_challenge(service)
        snapshot = service.get_progress(challenge.id)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(snapshot.to_wire()))
    else:
        console.print(format_progress_panel(snapshot))


@app.command()
def calendar(
    per_row: int = typer.Option(10, "--per-row", min=1, max=20, help="Days per row"),
) -> None:
    """Show all 200 days; funded days are marked."""
    service = get_service()
    try:
        challenge = require_challenge(service)
        cells = service.day_grid(challenge.id)
    except DaybankError as e:
        print_error(e.message)
        raise typer.Exit(1)

    table = Table(show_header=False, box=None, padding=(0, 1))
    for _ in range(per_row):
        table.add_column(justify="right")

    row = []
    for cell in cells:
        if cell.is_deposited:
            text = f"[green]{cell.day_number:>3}[/green]"
        else:
            text = f"[dim]{cell.day_number:>3}[/dim]"
        if cell.is_today:
            text = f"[reverse]{text}[/reverse]"
        row.append(text)
        if len(row) == per_row:
            table.add_row(*row)
            row = []
    if row:
        table.add_row(*row)

    console.print(Panel(table, title=f"{challenge.start_date} to {challenge.end_date}"))
    funded = sum(1 for c in cells if c.is_deposited)
    console.print(f"[dim]{funded} of {CHALLENGE_DAYS} days funded[/dim]")


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-l", help="Max entries to show"),
) -> None:
    """Show the audit trail (requires DAYBANK_AUDIT=db)."""
    config = get_config()
    if config.audit_mode != "db":
        print_warning(
            f"Auditing is set to '{config.audit_mode}'; new changes are not stored. "
            "Showing entries recorded with DAYBANK_AUDIT=db."
        )

    user = _state["user"]
    if not user:
        print_error("Not authenticated")
        raise typer.Exit(1)

    entries = DatabaseAuditSink(get_db()).history(user, limit=limit)
    if not entries:
        console.print("[dim]No audit entries.[/dim]")
        return

    table = Table(title="History", show_header=True, header_style="bold magenta")
    table.add_column("When", style="dim")
    table.add_column("Event")
    table.add_column("ID", justify="right")
    table.add_column("Amount", justify="right", style="green")
    for entry in entries:
        table.add_row(
            entry.created_at[:19].replace("T", " "),
            f"{entry.entity_type}_{entry.action}",
            str(entry.entity_id),
            str(entry.amount) if entry.amount is not None else "-",
        )
    console.print(table)


if __name__ == "__main__":
    app()
