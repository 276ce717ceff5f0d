"""No-op Git wrapper for dry-run mode.

This module provides a Git wrapper that prevents execution of destructive
operations while delegating read-only operations to the wrapped implementation.
"""

from pathlib import Path

from tiramiss.cli.output import user_output
from tiramiss.core.git.abc import Git

# ============================================================================
# No-op Wrapper
# ============================================================================


class DryRunGit(Git):
    """No-op wrapper that prevents execution of destructive operations.

    Read-only operations are delegated to the wrapped implementation, so skip
    decisions are made against the real repository state. Mutations print what
    would have run instead.

    Two pieces of state are simulated so later steps of a preview see the
    effect of earlier printed commands:

    - HEAD: after a printed branch switch or reset, reads of "HEAD" resolve to
      the commit the branch would point at
    - the index: after a printed squash-merge or add, staged changes are
      reported until the next printed commit or reset

    Usage:
        real_ops = RealGit()
        dry_run_ops = DryRunGit(real_ops)

        # Prints message instead of merging
        dry_run_ops.merge_no_ff(repo_root, "origin/feature-x")
    """

    def __init__(self, wrapped: Git) -> None:
        """Create a dry-run wrapper around a Git implementation.

        Args:
            wrapped: The Git implementation to wrap (usually RealGit or FakeGit)
        """
        self._wrapped = wrapped
        self._head: str | None = None
        self._staged = False

    def _ref(self, ref: str) -> str:
        if ref == "HEAD" and self._head is not None:
            return self._head
        return ref

    def _move_head(self, repo_root: Path, ref: str) -> None:
        self._head = self._wrapped.resolve(repo_root, self._ref(ref))
        self._staged = False

    # Read-only operations: delegate to wrapped implementation

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get repository root (read-only, delegates to wrapped)."""
        return self._wrapped.get_repository_root(cwd)

    def resolve(self, repo_root: Path, ref: str) -> str:
        """Resolve ref (read-only, delegates to wrapped)."""
        return self._wrapped.resolve(repo_root, self._ref(ref))

    def ref_exists(self, repo_root: Path, ref: str) -> bool:
        """Probe ref (read-only, delegates to wrapped)."""
        return self._wrapped.ref_exists(repo_root, self._ref(ref))

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check ancestry (read-only, delegates to wrapped)."""
        return self._wrapped.is_ancestor(repo_root, self._ref(ancestor), self._ref(descendant))

    def local_branch_exists(self, repo_root: Path, branch: str) -> bool:
        """Check local branch (read-only, delegates to wrapped)."""
        return self._wrapped.local_branch_exists(repo_root, branch)

    def remote_branch_exists(self, repo_root: Path, remote_branch: str) -> bool:
        """Check remote branch (read-only, delegates to wrapped)."""
        return self._wrapped.remote_branch_exists(repo_root, remote_branch)

    def merge_base(self, repo_root: Path, a: str, b: str) -> str:
        """Get merge base (read-only, delegates to wrapped)."""
        return self._wrapped.merge_base(repo_root, self._ref(a), self._ref(b))

    def list_commits(self, repo_root: Path, base: str, head: str) -> list[str]:
        """List commits (read-only, delegates to wrapped)."""
        return self._wrapped.list_commits(repo_root, self._ref(base), self._ref(head))

    def is_working_tree_clean(self, repo_root: Path) -> bool:
        """Check working tree (read-only, delegates to wrapped)."""
        return self._wrapped.is_working_tree_clean(repo_root)

    def has_diff(self, repo_root: Path, base: str, head: str) -> bool:
        """Check diff (read-only, delegates to wrapped)."""
        return self._wrapped.has_diff(repo_root, self._ref(base), self._ref(head))

    def has_staged_changes(self, repo_root: Path) -> bool:
        """Report simulated staging, falling back to the wrapped index."""
        if self._staged:
            return True
        return self._wrapped.has_staged_changes(repo_root)

    def get_commit_subject(self, repo_root: Path, ref: str) -> str:
        """Get commit subject (read-only, delegates to wrapped)."""
        return self._wrapped.get_commit_subject(repo_root, self._ref(ref))

    def path_exists(self, path: Path) -> bool:
        """Check if path exists (read-only, delegates to wrapped)."""
        return self._wrapped.path_exists(path)

    # Destructive operations: print dry-run message instead of executing

    def fetch_all(self, repo_root: Path) -> None:
        """Print dry-run message instead of fetching."""
        user_output("[DRY RUN] Would run: git fetch --all --prune")

    def switch_branch(self, repo_root: Path, branch: str) -> None:
        """Print dry-run message instead of switching branch."""
        user_output(f"[DRY RUN] Would run: git switch {branch}")
        self._move_head(repo_root, branch)

    def reset_hard(self, repo_root: Path, ref: str) -> None:
        """Print dry-run message instead of resetting."""
        user_output(f"[DRY RUN] Would run: git reset --hard {ref}")
        self._move_head(repo_root, ref)

    def create_branch_at(self, repo_root: Path, branch: str, ref: str) -> None:
        """Print dry-run message instead of creating branch."""
        user_output(f"[DRY RUN] Would run: git switch -C {branch} {ref}")
        self._move_head(repo_root, ref)

    def merge_no_ff(self, repo_root: Path, ref: str) -> None:
        """Print dry-run message instead of merging."""
        user_output(f"[DRY RUN] Would run: git merge --no-ff --no-edit {ref}")

    def cherry_pick(self, repo_root: Path, commit: str) -> None:
        """Print dry-run message instead of cherry-picking."""
        user_output(f"[DRY RUN] Would run: git cherry-pick -x {commit}")

    def merge_squash(self, repo_root: Path, ref: str) -> None:
        """Print dry-run message instead of squash-merging."""
        user_output(f"[DRY RUN] Would run: git merge --squash --no-commit {ref}")
        self._staged = True

    def commit(self, repo_root: Path, messages: list[str]) -> None:
        """Print dry-run message instead of committing."""
        display_msg = messages[0] if messages else ""
        user_output(f'[DRY RUN] Would run: git commit -m "{display_msg}"')
        self._staged = False

    def add_path(self, repo_root: Path, path: str) -> None:
        """Print dry-run message instead of staging."""
        user_output(f"[DRY RUN] Would run: git add -A {path}")
        self._staged = True

    def push(self, repo_root: Path, remote: str, branch: str, *, set_upstream: bool) -> None:
        """Print dry-run message instead of pushing."""
        upstream_flag = "-u " if set_upstream else ""
        user_output(
            f"[DRY RUN] Would run: git push --force-with-lease {upstream_flag}{remote} {branch}"
        )

    def clone_shallow(self, repo_root: Path, url: str, target: str) -> None:
        """Print dry-run message instead of cloning."""
        user_output(f"[DRY RUN] Would run: git clone --depth=1 {url} {target}")

    def fetch_ref_shallow(self, cwd: Path, remote: str, ref: str) -> bool:
        """Print dry-run message instead of fetching; report the fetch as failed."""
        user_output(f"[DRY RUN] Would run: git -C {cwd} fetch --depth=1 {remote} {ref}")
        return False

    def checkout(self, cwd: Path, ref: str) -> None:
        """Print dry-run message instead of checking out."""
        user_output(f"[DRY RUN] Would run: git -C {cwd} checkout {ref}")

    def remove_tree(self, path: Path) -> None:
        """Print dry-run message instead of deleting."""
        user_output(f"[DRY RUN] Would run: rm -rf {path}")
