# ABOUTME: The `bookclub resolve` command: attach a review to a book from the terminal.
# ABOUTME: Runs the resolver and, when it is unsure, walks the user through confirmation.

import asyncio
import uuid
from pathlib import Path

import click
from rich.console import Console

from bookclub.app import build_application
from bookclub.cli.options import db_option, load_settings, verbose_option
from bookclub.cli.review import ConsoleConfirmation, ConsolePresenter
from bookclub.core.resolver import Failed, NeedsConfirmation
from bookclub.db.mapping import PendingReview

console = Console()


async def _resolve(
    text: str,
    user: str,
    message_id: str,
    hint: str | None,
    db_path: Path | None,
    offline: bool,
    verbose: bool,
) -> int:
    settings = load_settings(db_path, verbose)
    app = build_application(settings, ConsolePresenter(console), offline=offline)
    app.start()
    try:
        review = PendingReview(user_id=user, review_text=text, message_id=message_id)
        outcome = await app.resolver.resolve(review, command_hint=hint)
        if isinstance(outcome, NeedsConfirmation):
            await ConsoleConfirmation(app.flow, user).run()
        return 1 if isinstance(outcome, Failed) else 0
    finally:
        await app.aclose()


@click.command()
@click.argument("text")
@click.option("--user", default="console", show_default=True, help="Reviewer id.")
@click.option("--message-id", default=None, help="Review message id (default: random).")
@click.option("--hint", default=None, help='Command hint, e.g. "Dune — Frank Herbert".')
@click.option(
    "--offline",
    is_flag=True,
    default=False,
    help="Use rule-based extraction instead of the language model.",
)
@db_option
@verbose_option
def resolve(
    text: str,
    user: str,
    message_id: str | None,
    hint: str | None,
    db_path: Path | None,
    offline: bool,
    verbose: bool,
) -> None:
    """Resolve a review TEXT to a catalog book and save it."""
    exit_code = asyncio.run(
        _resolve(text, user, message_id or uuid.uuid4().hex, hint, db_path, offline, verbose)
    )
    if exit_code:
        raise SystemExit(exit_code)
