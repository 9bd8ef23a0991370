# ABOUTME: The `bookclub info` command for displaying one catalog book and its reviews.
# ABOUTME: Shows the stored metadata followed by every review attached to the book.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookclub.cli.options import db_option
from bookclub.db.catalog import BookCatalog
from bookclub.db.connection import DEFAULT_DB_PATH, open_catalog

console = Console()

_EXCERPT_LEN = 60


def _excerpt(text: str) -> str:
    text = " ".join(text.split())
    return text if len(text) <= _EXCERPT_LEN else text[: _EXCERPT_LEN - 1] + "…"


@click.command("info")
@click.argument("book_id", type=int)
@db_option
def info(book_id: int, db_path: Path | None) -> None:
    """Show a catalog book by ID with its reviews."""
    conn = open_catalog(db_path or DEFAULT_DB_PATH)
    try:
        catalog = BookCatalog(conn)
        entry = catalog.get_by_id(book_id)
        if entry is None:
            console.print(f"[red]Book {book_id} not found.[/red]")
            raise SystemExit(1)

        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("Field", style="bold", width=14)
        table.add_column("Value")
        table.add_row("ID", str(entry.id))
        table.add_row("Title", entry.title)
        table.add_row("Author", entry.author or "unknown")
        if entry.isbn:
            table.add_row("ISBN", entry.isbn)
        if entry.publication_year:
            table.add_row("Year", str(entry.publication_year))
        if entry.genres:
            table.add_row("Genres", ", ".join(entry.genres))
        if entry.external_id:
            table.add_row("Volume ID", entry.external_id)
        table.add_row("Added", entry.date_added)
        console.print(table)

        records = catalog.list_reviews(book_id)
        if not records:
            console.print("\n[dim]No reviews yet.[/dim]")
            return

        reviews = Table(title=f"Reviews ({len(records)})")
        reviews.add_column("Reviewer")
        reviews.add_column("Date", width=10)
        reviews.add_column("Review")
        for record in records:
            review = record.review
            reviews.add_row(
                review.display_name or review.username or review.user_id,
                f"{review.reviewed_at:%Y-%m-%d}",
                _excerpt(review.review_text),
            )
        console.print(reviews)
    finally:
        conn.close()
