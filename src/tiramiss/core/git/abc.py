"""High-level git operations interface.

This module provides a clean abstraction over git subprocess calls, making the
integration engine testable against an in-memory fake.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using the process executor
- DryRunGit: Wrapper that delegates reads and prints mutations instead of running them

Two call shapes exist behind this interface. Assertive operations raise
GitCommandError (or TransportError) when git exits non-zero. Probe operations
return a bool and never raise for a non-zero exit; they are used where failure
is an expected, non-exceptional answer (ancestry, existence, emptiness).
"""

from abc import ABC, abstractmethod
from pathlib import Path

# ============================================================================
# Abstract Interface
# ============================================================================


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real, dry-run and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    # ------------------------------------------------------------------
    # Read / probe operations
    # ------------------------------------------------------------------

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the repository containing cwd.

        Returns:
            Repository root, or None if cwd is not inside a git repository
        """
        ...

    @abstractmethod
    def resolve(self, repo_root: Path, ref: str) -> str:
        """Resolve a reference to exactly one commit hash.

        Args:
            repo_root: Path to the repository root
            ref: Branch, remote-qualified branch, tag or raw commit id

        Returns:
            Full commit hash

        Raises:
            GitCommandError: If ref does not name a commit
        """
        ...

    @abstractmethod
    def ref_exists(self, repo_root: Path, ref: str) -> bool:
        """Probe form of resolve(): True iff ref names a commit."""
        ...

    @abstractmethod
    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check whether ancestor is reachable from (or equal to) descendant."""
        ...

    @abstractmethod
    def local_branch_exists(self, repo_root: Path, branch: str) -> bool:
        """Check whether refs/heads/<branch> exists."""
        ...

    @abstractmethod
    def remote_branch_exists(self, repo_root: Path, remote_branch: str) -> bool:
        """Check whether a remote-tracking branch exists.

        Args:
            repo_root: Path to the repository root
            remote_branch: Remote-qualified name such as 'origin/tiramiss'
        """
        ...

    @abstractmethod
    def merge_base(self, repo_root: Path, a: str, b: str) -> str:
        """Get the best common ancestor of two commits.

        Raises:
            GitCommandError: If the commits share no history
        """
        ...

    @abstractmethod
    def list_commits(self, repo_root: Path, base: str, head: str) -> list[str]:
        """List commits after base up to and including head, oldest first.

        Only commits on the ancestry path between base and head are returned.
        """
        ...

    @abstractmethod
    def is_working_tree_clean(self, repo_root: Path) -> bool:
        """Check that there are no staged, unstaged or untracked changes."""
        ...

    @abstractmethod
    def has_diff(self, repo_root: Path, base: str, head: str) -> bool:
        """Check whether the trees of base and head differ."""
        ...

    @abstractmethod
    def has_staged_changes(self, repo_root: Path) -> bool:
        """Check whether the index differs from HEAD."""
        ...

    @abstractmethod
    def get_commit_subject(self, repo_root: Path, ref: str) -> str:
        """Get the summary line of the commit ref points at."""
        ...

    @abstractmethod
    def path_exists(self, path: Path) -> bool:
        """Check if a path exists on the filesystem.

        In production (RealGit) this delegates to Path.exists(). In tests
        (FakeGit) it checks the in-memory working tree to avoid filesystem I/O.
        """
        ...

    # ------------------------------------------------------------------
    # Mutating operations (all assertive)
    # ------------------------------------------------------------------

    @abstractmethod
    def fetch_all(self, repo_root: Path) -> None:
        """Fetch every remote and prune deleted tracking branches.

        Raises:
            TransportError: If the fetch fails
        """
        ...

    @abstractmethod
    def switch_branch(self, repo_root: Path, branch: str) -> None:
        """Switch to an existing local branch."""
        ...

    @abstractmethod
    def reset_hard(self, repo_root: Path, ref: str) -> None:
        """Point the current branch at ref, discarding index and working tree changes."""
        ...

    @abstractmethod
    def create_branch_at(self, repo_root: Path, branch: str, ref: str) -> None:
        """Create (or force-reset) branch at ref and switch to it."""
        ...

    @abstractmethod
    def merge_no_ff(self, repo_root: Path, ref: str) -> None:
        """Merge ref into the current branch, always producing a merge commit.

        On conflict the merge is left in progress for manual resolution.
        """
        ...

    @abstractmethod
    def cherry_pick(self, repo_root: Path, commit: str) -> None:
        """Replay one commit onto the current branch with a '(cherry picked from ...)' trailer.

        On conflict the cherry-pick is left in progress for manual resolution.
        """
        ...

    @abstractmethod
    def merge_squash(self, repo_root: Path, ref: str) -> None:
        """Stage the cumulative changes of ref without committing."""
        ...

    @abstractmethod
    def commit(self, repo_root: Path, messages: list[str]) -> None:
        """Commit the index; each entry in messages becomes one paragraph."""
        ...

    @abstractmethod
    def add_path(self, repo_root: Path, path: str) -> None:
        """Stage every change (including deletions) under path."""
        ...

    @abstractmethod
    def push(self, repo_root: Path, remote: str, branch: str, *, set_upstream: bool) -> None:
        """Push branch to remote, replacing its previous history.

        The branch is rebuilt on every run, so the push is forced with a lease
        on the remote-tracking ref fetched at the start of the run.

        Raises:
            TransportError: If the push fails
        """
        ...

    @abstractmethod
    def clone_shallow(self, repo_root: Path, url: str, target: str) -> None:
        """Clone url with depth 1 into target (relative to repo_root).

        Raises:
            TransportError: If the clone fails
        """
        ...

    @abstractmethod
    def fetch_ref_shallow(self, cwd: Path, remote: str, ref: str) -> bool:
        """Fetch a single ref with depth 1 into FETCH_HEAD.

        This is a probe: a failed fetch returns False instead of raising.
        """
        ...

    @abstractmethod
    def checkout(self, cwd: Path, ref: str) -> None:
        """Check out ref (detached when ref is not a branch)."""
        ...

    @abstractmethod
    def remove_tree(self, path: Path) -> None:
        """Recursively delete path if it exists."""
        ...
