# ABOUTME: CLI package for bookclub, built on Click.
# ABOUTME: Defines the root command group and registers subcommands.

import click

from bookclub.cli.commands import failures_cmd, info_cmd, lookup_cmd, resolve_cmd, search_cmd


@click.group()
@click.version_option(package_name="bookclub", prog_name="bookclub")
def cli() -> None:
    """bookclub - resolve chat book reviews to catalog books."""


cli.add_command(resolve_cmd.resolve)
cli.add_command(lookup_cmd.lookup)
cli.add_command(lookup_cmd.isbn)
cli.add_command(search_cmd.search)
cli.add_command(info_cmd.info)
cli.add_command(failures_cmd.failures)
