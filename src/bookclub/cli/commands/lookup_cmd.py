# ABOUTME: The `bookclub lookup` and `bookclub isbn` commands for querying the book provider.
# ABOUTME: Runs the fallback search cascade or an ISBN lookup and prints what was found.

import asyncio

import click
from rich.console import Console
from rich.table import Table

from bookclub.cli.options import load_settings, verbose_option
from bookclub.config import Settings
from bookclub.metadata.cascade import SearchCascade
from bookclub.metadata.googlebooks import GoogleBooksProvider
from bookclub.metadata.http import RateLimitedFetcher, RateLimitExceeded
from bookclub.metadata.isbn import InvalidIsbnError, parse_isbn
from bookclub.metadata.types import BookMetadata
from bookclub.metadata.variants import author_variants, title_variants

console = Console()


def _create_fetcher(settings: Settings) -> RateLimitedFetcher:
    return RateLimitedFetcher(
        delay_ms=settings.delay_ms,
        max_retries=settings.max_retries,
        initial_backoff_ms=settings.initial_backoff_ms,
    )


def _show(metadata: BookMetadata) -> None:
    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Title", metadata.title)
    table.add_row("Author", metadata.author or "—")
    table.add_row("ISBN", metadata.isbn or "—")
    table.add_row("Year", str(metadata.publication_year or "—"))
    table.add_row("Genres", ", ".join(metadata.genres) or "—")
    table.add_row("Pages", str(metadata.page_count or "—"))
    table.add_row("Volume ID", metadata.external_id or "—")
    table.add_row("Cover", metadata.cover_url or "—")
    console.print(table)


async def _lookup(settings: Settings, title: str, author: str | None) -> BookMetadata | None:
    async with _create_fetcher(settings) as fetcher:
        provider = GoogleBooksProvider(fetcher, api_key=settings.google_books_api_key)
        cascade = SearchCascade(provider)
        return await cascade.search(title, author, title_variants(title), author_variants(author))


async def _lookup_isbn(settings: Settings, isbn: str) -> BookMetadata | None:
    async with _create_fetcher(settings) as fetcher:
        provider = GoogleBooksProvider(fetcher, api_key=settings.google_books_api_key)
        return await provider.search_by_isbn(isbn)


def _report(result: BookMetadata | None) -> None:
    if result is None:
        console.print("[yellow]No book found.[/yellow]")
        raise SystemExit(1)
    _show(result)


@click.command()
@click.argument("title")
@click.option("--author", default=None, help="Author name to narrow the search.")
@verbose_option
def lookup(title: str, author: str | None, verbose: bool) -> None:
    """Search the book provider for TITLE using the fallback cascade."""
    settings = load_settings(verbose=verbose)
    try:
        result = asyncio.run(_lookup(settings, title, author))
    except RateLimitExceeded as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(2) from exc
    _report(result)


@click.command()
@click.argument("isbn")
@verbose_option
def isbn(isbn: str, verbose: bool) -> None:
    """Validate ISBN and look it up with the book provider."""
    try:
        clean = parse_isbn(isbn)
    except InvalidIsbnError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(2) from exc

    settings = load_settings(verbose=verbose)
    try:
        result = asyncio.run(_lookup_isbn(settings, clean))
    except RateLimitExceeded as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(2) from exc
    _report(result)
