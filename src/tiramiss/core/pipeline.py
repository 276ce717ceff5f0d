"""Pipeline coordinator: rebuild the working and integration branches.

Fixed step order:
1. Require a clean working tree
2. Fetch all remotes
3. Reset (or create) the working branch at the base reference
4. Vendor the auxiliary tool repository (optional)
5. Push the working branch when it changed or has no remote counterpart yet
6. Reset (or create) the integration branch at the working branch tip
7. Apply topics from the topic list in order
8. Push the integration branch

Any failure propagates unchanged and halts the run; nothing is rolled back.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from tiramiss.cli.output import user_output
from tiramiss.core.config import TiramissConfig
from tiramiss.core.context import TiramissContext
from tiramiss.core.errors import PreconditionError
from tiramiss.core.git.abc import Git
from tiramiss.core.integration import IntegrationEngine, TopicResult
from tiramiss.core.topics import read_topics
from tiramiss.core.vendor import vendor_tool_repo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Summary of a successful run."""

    base_commit: str
    vendored: bool
    working_pushed: bool
    integration_pushed: bool
    topic_file: Path | None
    results: tuple[TopicResult, ...]


def ensure_clean(git: Git, repo_root: Path) -> None:
    """Fail before any mutation when there are uncommitted changes."""
    if not git.is_working_tree_clean(repo_root):
        raise PreconditionError(
            "Working tree is not clean. Commit or stash your changes before running."
        )


def reset_branch(git: Git, repo_root: Path, branch: str, commit: str) -> None:
    """Check out branch pointing at commit, creating it if needed."""
    if git.local_branch_exists(repo_root, branch):
        git.switch_branch(repo_root, branch)
        git.reset_hard(repo_root, commit)
    else:
        git.create_branch_at(repo_root, branch, commit)


def push_working_branch(git: Git, repo_root: Path, config: TiramissConfig, *, changed: bool) -> bool:
    """Push the working branch if vendoring changed it or it was never pushed.

    Returns:
        True if a push happened
    """
    if not config.push:
        return False
    remote_ref = f"{config.remote}/{config.working_branch}"
    if changed or not git.remote_branch_exists(repo_root, remote_ref):
        user_output(f"▶ push {config.working_branch}")
        git.push(repo_root, config.remote, config.working_branch, set_upstream=True)
        return True
    return False


def push_integration_branch(git: Git, repo_root: Path, config: TiramissConfig) -> bool:
    """Push the integration branch, setting upstream the first time.

    Returns:
        True if a push happened
    """
    if not config.push:
        return False
    remote_ref = f"{config.remote}/{config.integration_branch}"
    first_push = not git.remote_branch_exists(repo_root, remote_ref)
    user_output(f"▶ push {config.integration_branch}")
    git.push(repo_root, config.remote, config.integration_branch, set_upstream=first_push)
    return True


def run_pipeline(ctx: TiramissContext) -> PipelineResult:
    """Run the full integration pipeline.

    Args:
        ctx: Context carrying git, configuration and repository root

    Returns:
        PipelineResult describing what changed

    Raises:
        PreconditionError: Dirty tree, missing repository or missing base reference
        TransportError: Fetch, clone or push failed
        TopicNotFoundError: A topic resolved to nothing
        ConflictError: A topic did not apply cleanly
        GitCommandError: Any other mandatory git command failed
    """
    git = ctx.git
    config = ctx.config
    repo_root = ctx.require_repo_root()
    logger.debug("run_pipeline: repo_root=%s, config=%s", repo_root, config)

    # Step 1: Precondition
    ensure_clean(git, repo_root)

    # Step 2: Fetch
    user_output("▶ fetch --all --prune")
    git.fetch_all(repo_root)

    # Step 3: Working branch at base
    if not git.ref_exists(repo_root, config.base_ref):
        raise PreconditionError(f"Base reference not found: {config.base_ref}")
    base = git.resolve(repo_root, config.base_ref)
    user_output(f"BASE: {config.base_ref} @ {base}")
    reset_branch(git, repo_root, config.working_branch, base)

    # Step 4: Vendoring
    user_output(f"▶ vendor tool repo into ./{config.tool_dir}")
    vendored = vendor_tool_repo(git, repo_root, config)

    # Step 5: Push working branch
    working_pushed = push_working_branch(git, repo_root, config, changed=vendored)

    # Step 6: Integration branch at working tip
    working_head = git.resolve(repo_root, "HEAD")
    reset_branch(git, repo_root, config.integration_branch, working_head)

    # Step 7: Topics
    topic_list = read_topics(config.topic_file_candidates(repo_root))
    results: list[TopicResult] = []
    if topic_list.path is None:
        user_output("ℹ topics.txt not found; integration branch carries the base only")
    else:
        engine = IntegrationEngine(git, repo_root, config.mode, config.base_ref)
        user_output(
            f"▶ apply topics ({engine.mode.value}) from {topic_list.path}: "
            f"{len(topic_list.topics)} entries"
        )
        results = engine.apply_all(topic_list.topics, config.fallback_remotes)

    # Step 8: Push integration branch
    integration_pushed = push_integration_branch(git, repo_root, config)

    user_output("✔ pipeline done")
    return PipelineResult(
        base_commit=base,
        vendored=vendored,
        working_pushed=working_pushed,
        integration_pushed=integration_pushed,
        topic_file=topic_list.path,
        results=tuple(results),
    )
