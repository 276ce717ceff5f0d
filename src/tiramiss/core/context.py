"""Application context with dependency injection."""

import os
from dataclasses import dataclass
from pathlib import Path

from tiramiss.core.config import TiramissConfig, load_config
from tiramiss.core.errors import PreconditionError
from tiramiss.core.git.abc import Git
from tiramiss.core.git.dry_run import DryRunGit
from tiramiss.core.git.real import RealGit


@dataclass(frozen=True)
class TiramissContext:
    """Immutable context holding all dependencies for a tiramiss invocation.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime; commands derive
    adjusted copies with dataclasses.replace().

    Note: repo_root is None when the CLI was invoked outside a git repository.
    Commands that need a repository call require_repo_root().
    """

    git: Git
    config: TiramissConfig
    cwd: Path  # Current working directory at CLI invocation
    repo_root: Path | None
    dry_run: bool

    def require_repo_root(self) -> Path:
        """Return the repository root or fail with a precondition error."""
        if self.repo_root is None:
            raise PreconditionError(f"Not inside a git repository: {self.cwd}")
        return self.repo_root

    @staticmethod
    def for_test(
        git: Git,
        repo_root: Path | None = None,
        config: TiramissConfig | None = None,
        cwd: Path | None = None,
        dry_run: bool = False,
    ) -> "TiramissContext":
        """Create test context with sensible defaults for anything unspecified.

        Args:
            git: Git implementation (usually FakeGit with test configuration)
            repo_root: Repository root. If None, uses Path("/test/repo").
            config: Run configuration. If None, uses TiramissConfig() defaults.
            cwd: Current working directory. If None, uses repo_root.
            dry_run: Whether to wrap git in DryRunGit

        Returns:
            Frozen TiramissContext for use in tests
        """
        root = repo_root if repo_root is not None else Path("/test/repo")
        return TiramissContext(
            git=DryRunGit(git) if dry_run else git,
            config=config if config is not None else TiramissConfig(),
            cwd=cwd if cwd is not None else root,
            repo_root=root,
            dry_run=dry_run,
        )


def create_context(*, dry_run: bool, cwd: Path | None = None) -> TiramissContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire command
    execution. Configuration is read here, once, from pyproject.toml and the
    process environment.

    Args:
        dry_run: If True, wrap git with DryRunGit so mutations are only printed
        cwd: Working directory to discover the repository from (defaults to Path.cwd())

    Returns:
        TiramissContext with real implementations
    """
    # 1. Capture cwd and environment (no deps)
    cwd = cwd if cwd is not None else Path.cwd()
    environ = dict(os.environ)

    # 2. Discover repository
    git: Git = RealGit()
    repo_root = git.get_repository_root(cwd)

    # 3. Load configuration (pyproject.toml needs the repo root)
    config = load_config(repo_root, environ)

    # 4. Apply dry-run wrapper if needed
    if dry_run:
        git = DryRunGit(git)

    return TiramissContext(
        git=git,
        config=config,
        cwd=cwd,
        repo_root=repo_root,
        dry_run=dry_run,
    )
