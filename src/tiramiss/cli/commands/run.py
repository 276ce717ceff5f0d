import dataclasses
import logging

import click

from tiramiss.cli.error_boundary import cli_error_boundary
from tiramiss.cli.output import print_topic_summary, user_output
from tiramiss.core.config import Mode
from tiramiss.core.context import TiramissContext
from tiramiss.core.git.dry_run import DryRunGit
from tiramiss.core.pipeline import run_pipeline

logger = logging.getLogger(__name__)


@click.command("run")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in Mode]),
    default=None,
    help="How to combine topics (overrides MODE and [tool.tiramiss] mode).",
)
@click.option(
    "--base",
    "base_ref",
    default=None,
    help="Base reference the working branch is reset to (overrides BASE_REF).",
)
@click.option(
    "--no-push",
    is_flag=True,
    help="Do not push the working or integration branch.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Print the git commands that would mutate the repository instead of running them.",
)
@click.pass_obj
@cli_error_boundary
def run_cmd(
    ctx: TiramissContext,
    mode: str | None,
    base_ref: str | None,
    no_push: bool,
    dry_run: bool,
) -> None:
    """Rebuild the integration branch from the base and the topic list.

    Steps:
    1. Require a clean working tree
    2. Fetch all remotes
    3. Reset the working branch to the base reference
    4. Vendor the tool repository into its subdirectory (if configured)
    5. Push the working branch when it changed
    6. Reset the integration branch to the working branch tip
    7. Apply every topic in order (merge, pick or squash)
    8. Push the integration branch

    On a conflict the repository is left mid-operation. Resolve it with git,
    finish the operation, and run again.
    """
    config = ctx.config
    if mode is not None:
        config = dataclasses.replace(config, mode=Mode.parse(mode))
    if base_ref is not None:
        config = dataclasses.replace(config, base_ref=base_ref)
    if no_push:
        config = dataclasses.replace(config, push=False)

    git = ctx.git
    if dry_run and not ctx.dry_run:
        git = DryRunGit(git)

    ctx = dataclasses.replace(ctx, git=git, config=config, dry_run=ctx.dry_run or dry_run)
    logger.debug("Command invoked: run(config=%s, dry_run=%s)", config, ctx.dry_run)

    if ctx.dry_run:
        user_output(click.style("[DRY RUN] No branch will be modified", fg="yellow"))

    result = run_pipeline(ctx)
    print_topic_summary(list(result.results))
