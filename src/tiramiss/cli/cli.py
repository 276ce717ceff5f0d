import logging
import os

import click

from tiramiss.cli.commands.config import config_group
from tiramiss.cli.commands.run import run_cmd
from tiramiss.cli.commands.topics import topics_cmd
from tiramiss.cli.error_boundary import cli_error_boundary
from tiramiss.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

DEBUG_FORMAT = "[DEBUG %(name)s:%(lineno)d] %(message)s"


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="tiramiss")
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging (same as setting TIRAMISS_DEBUG).",
)
@click.pass_context
@cli_error_boundary
def cli(ctx: click.Context, debug: bool) -> None:
    """Rebuild an integration branch from an upstream base plus ordered topics."""
    # Enable debug logging if requested or TIRAMISS_DEBUG environment variable is set
    if debug or os.getenv("TIRAMISS_DEBUG"):
        logging.basicConfig(level=logging.DEBUG, format=DEBUG_FORMAT)

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(dry_run=False)


cli.add_command(run_cmd)
cli.add_command(topics_cmd)
cli.add_command(config_group)


def main() -> None:
    """CLI entry point used by the `tiramiss` console script."""
    cli()
