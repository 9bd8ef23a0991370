# ABOUTME: Console transport for confirmation sessions: renders events and prompts for input.
# ABOUTME: Displays candidates in a Rich table and feeds the user's choices back into the flow.

import click
from rich.console import Console
from rich.table import Table

from bookclub.core.confirmation import ConfirmationFlow
from bookclub.core.events import (
    AuthorPrompted,
    ErrorReported,
    Event,
    IsbnPrompted,
    OptionsPresented,
    ReviewFinalized,
    SessionCancelled,
    TitlePrompted,
)
from bookclub.core.sessions import SessionState
from bookclub.metadata.candidate import BookCandidate


def candidate_table(candidates: list[BookCandidate], title: str = "Candidates") -> Table:
    table = Table(title=title)
    table.add_column("#", style="bold", width=3)
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("ISBN")
    table.add_column("Match", justify="right")
    table.add_column("Source", style="dim")

    for i, candidate in enumerate(candidates, start=1):
        match = f"{candidate.similarity.combined:.0%}" if candidate.similarity else "—"
        table.add_row(
            str(i),
            candidate.title,
            candidate.author or "—",
            candidate.isbn or "—",
            match,
            candidate.source.value,
        )
    return table


class ConsolePresenter:
    """Renders flow events on a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    async def emit(self, event: Event) -> None:
        console = self._console
        if isinstance(event, OptionsPresented):
            if event.extraction and event.extraction.title:
                author = event.extraction.author or "unknown author"
                console.print(f"\n[bold]Extracted:[/bold] {event.extraction.title} — {author}")
            console.print(candidate_table(event.candidates))
        elif isinstance(event, IsbnPrompted):
            console.print("Send the book's ISBN (10 or 13 digits).")
        elif isinstance(event, TitlePrompted):
            console.print("Couldn't pin down the book. Enter its title.")
        elif isinstance(event, AuthorPrompted):
            console.print(f"Title: [bold]{event.title}[/bold]. Now enter the author.")
        elif isinstance(event, ErrorReported):
            console.print(f"[red]{event.message}[/red]")
        elif isinstance(event, ReviewFinalized):
            entry = event.entry
            note = " [yellow](saved without catalog lookup)[/yellow]" if event.degraded else ""
            console.print(
                f"[green]Review saved[/green] for [bold]{entry.title}[/bold]"
                f" by {entry.author or 'unknown author'}"
                f" ({event.review_count} review(s)){note}"
            )
        elif isinstance(event, SessionCancelled):
            console.print("[yellow]Cancelled.[/yellow]")


class ConsoleConfirmation:
    """Interactive prompt loop that drives one user's session to completion.

    Runs until the session is finalized, cancelled, or expires.
    """

    def __init__(self, flow: ConfirmationFlow, user_id: str) -> None:
        self._flow = flow
        self._user_id = user_id

    async def run(self) -> None:
        while True:
            session = self._flow.store.get(self._user_id)
            if session is None:
                return

            if session.state is not SessionState.SHOWING_OPTIONS:
                text = click.prompt(">", type=str, default="", show_default=False)
                await self._flow.handle_text(self._user_id, text)
                continue

            n = len(session.candidates)
            choice = click.prompt(
                f"[1-{n}] Select  [i] Enter ISBN  [m] Enter manually  [c] Cancel",
                type=str,
                default="c",
            ).strip().lower()

            if choice == "c":
                await self._flow.cancel(self._user_id)
            elif choice == "i":
                await self._flow.request_isbn(self._user_id)
            elif choice == "m":
                await self._flow.request_manual(self._user_id)
            else:
                try:
                    index = int(choice) - 1
                except ValueError:
                    continue
                await self._flow.select(self._user_id, index)
