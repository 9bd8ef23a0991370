# ABOUTME: The `bookclub failures` command for listing titles the book provider could not find.
# ABOUTME: Reads one month of the failure log so missing books can be added by hand.

from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from bookclub.cli.options import load_settings
from bookclub.core.failure_log import FailureLog

console = Console()


@click.command("failures")
@click.option(
    "--month",
    type=click.DateTime(formats=["%Y-%m"]),
    default=None,
    help="Month to show as YYYY-MM (default: current month).",
)
def failures(month: datetime | None) -> None:
    """List provider misses recorded in the failure log."""
    settings = load_settings()
    when = month or datetime.now(timezone.utc)
    entries = FailureLog(settings.failure_log_dir).read(when)

    if not entries:
        console.print(f"[yellow]No failed lookups in {when:%Y-%m}.[/yellow]")
        return

    table = Table(title=f"Failed lookups {when:%Y-%m}")
    table.add_column("When", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    for entry in entries:
        table.add_row(
            entry.get("timestamp") or "",
            entry.get("title") or "",
            entry.get("author") or "—",
        )
    console.print(table)
    console.print(f"\n[dim]{len(entries)} failure(s)[/dim]")
