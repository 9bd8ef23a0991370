# ABOUTME: The `bookclub search` command for full-text search of the local catalog.
# ABOUTME: Searches title, author, and description using SQLite FTS5.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookclub.cli.options import db_option
from bookclub.db.catalog import BookCatalog
from bookclub.db.connection import DEFAULT_DB_PATH, open_catalog

console = Console()


@click.command("search")
@click.argument("query")
@db_option
def search(query: str, db_path: Path | None) -> None:
    """Search the catalog by title, author, or description."""
    conn = open_catalog(db_path or DEFAULT_DB_PATH)
    catalog = BookCatalog(conn)

    results = catalog.search(query)

    if not results:
        console.print("[yellow]No results found.[/yellow]")
        conn.close()
        return

    table = Table()
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Year", width=5)
    table.add_column("Reviews", justify="right")

    for entry in results:
        table.add_row(
            str(entry.id),
            entry.title,
            entry.author or "[dim]unknown[/dim]",
            str(entry.publication_year or "?"),
            str(catalog.count_reviews(entry.id)),
        )

    console.print(table)
    console.print(f"\n[dim]{len(results)} result(s)[/dim]")
    conn.close()
