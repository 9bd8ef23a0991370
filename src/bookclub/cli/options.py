# ABOUTME: Shared Click options and settings loading for bookclub CLI commands.
# ABOUTME: Provides reusable decorators for common flags like --db and --verbose.

from pathlib import Path

import click

from bookclub.config import Settings, get_settings
from bookclub.db.connection import DEFAULT_DB_PATH
from bookclub.logging_setup import setup_logging

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to catalog database (default: {DEFAULT_DB_PATH})",
)

verbose_option = click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Show debug logging.",
)


def load_settings(db_path: Path | None = None, verbose: bool = False) -> Settings:
    """Environment settings with command-line overrides applied, logging configured."""
    settings = get_settings()
    if db_path is not None:
        settings = settings.model_copy(update={"db_path": db_path})
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)
    return settings
