"""Vendoring of an auxiliary tool repository into a subdirectory.

The tool tree is copied in as ordinary content: its nested .git is removed so
the outer repository tracks the files directly.
"""

import logging
from pathlib import Path

from tiramiss.cli.output import user_output
from tiramiss.core.config import TiramissConfig
from tiramiss.core.git.abc import Git

logger = logging.getLogger(__name__)


def vendor_commit_message(config: TiramissConfig) -> str:
    return f"ops: vendor {config.tool_dir} from {config.tool_repo}@{config.tool_ref}"


def vendor_tool_repo(git: Git, repo_root: Path, config: TiramissConfig) -> bool:
    """Replace <tool_dir> with a fresh copy of the tool repository and commit it.

    Steps:
    1. Remove any existing <tool_dir> and stage the deletion
    2. Shallow-clone the tool repository into <tool_dir>
    3. Fetch tool_ref and check out FETCH_HEAD (a failed fetch keeps the clone's default branch)
    4. Remove the nested .git
    5. Stage <tool_dir> and commit only if something changed

    Args:
        git: Git implementation
        repo_root: Repository root (current branch receives the commit)
        config: Run configuration; tool_repo empty disables vendoring

    Returns:
        True if a vendoring commit was created, False otherwise

    Raises:
        TransportError: If the clone fails
        GitCommandError: If staging, checkout or commit fails
    """
    if not config.vendoring_enabled:
        user_output(f"ℹ No tool repository configured; leaving ./{config.tool_dir} untouched")
        return False

    target = config.tool_dir
    target_path = repo_root / target

    if git.path_exists(target_path):
        user_output(f"  • remove existing ./{target}")
        git.remove_tree(target_path)
        git.add_path(repo_root, target)

    user_output(f"  • clone {config.tool_repo}@{config.tool_ref} -> ./{target}")
    git.clone_shallow(repo_root, config.tool_repo, target)

    if git.fetch_ref_shallow(target_path, "origin", config.tool_ref):
        git.checkout(target_path, "FETCH_HEAD")
    else:
        logger.debug("fetch of %s failed; keeping the clone's default branch", config.tool_ref)

    user_output("  • remove nested .git (vendoring)")
    git.remove_tree(target_path / ".git")

    git.add_path(repo_root, target)
    if not git.has_staged_changes(repo_root):
        user_output("  • no changes to commit for vendored tool repo")
        return False

    git.commit(repo_root, [vendor_commit_message(config)])
    return True
