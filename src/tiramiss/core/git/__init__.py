"""Git operations subpackage.

This subpackage provides abstractions over git operations with support for
testing via fakes and dry-run via wrappers.
"""

from tiramiss.core.git.abc import Git
from tiramiss.core.git.dry_run import DryRunGit
from tiramiss.core.git.real import RealGit

__all__ = [
    "Git",
    "RealGit",
    "DryRunGit",
]
