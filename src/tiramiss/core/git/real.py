"""Production Git implementation using the process executor.

This module provides the real Git implementation that executes actual git
commands.
"""

import shutil
from pathlib import Path

from tiramiss.core.errors import GitCommandError, TransportError
from tiramiss.core.git.abc import Git
from tiramiss.core.subprocess import run_process

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation running the git binary.

    Read-only queries run quietly. Mutations stream git's own output so the
    operator sees exactly what git reports.
    """

    def _run(
        self,
        cwd: Path,
        args: list[str],
        *,
        quiet: bool = False,
        error_type: type[GitCommandError] = GitCommandError,
    ) -> str:
        """Assertive call: return trimmed stdout or raise with stderr attached."""
        result = run_process(["git", *args], cwd=cwd, quiet=quiet)
        if not result.ok:
            raise error_type(args, result.exit_code, result.stderr, stdout=result.stdout)
        return result.stdout.strip()

    def _probe(self, cwd: Path, args: list[str]) -> bool:
        """Probe call: True iff git exits 0; output is discarded."""
        return run_process(["git", *args], cwd=cwd, quiet=True).ok

    # Read / probe operations

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the repository containing cwd."""
        result = run_process(["git", "rev-parse", "--show-toplevel"], cwd=cwd, quiet=True)
        if not result.ok:
            return None
        return Path(result.stdout.strip())

    def resolve(self, repo_root: Path, ref: str) -> str:
        """Resolve a reference to exactly one commit hash."""
        return self._run(repo_root, ["rev-parse", "--verify", f"{ref}^{{commit}}"], quiet=True)

    def ref_exists(self, repo_root: Path, ref: str) -> bool:
        """Probe whether ref names a commit."""
        return self._probe(repo_root, ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check ancestry with merge-base --is-ancestor."""
        return self._probe(repo_root, ["merge-base", "--is-ancestor", ancestor, descendant])

    def local_branch_exists(self, repo_root: Path, branch: str) -> bool:
        """Check refs/heads/<branch>."""
        return self._probe(repo_root, ["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"])

    def remote_branch_exists(self, repo_root: Path, remote_branch: str) -> bool:
        """Check refs/remotes/<remote>/<branch>."""
        return self._probe(
            repo_root, ["show-ref", "--verify", "--quiet", f"refs/remotes/{remote_branch}"]
        )

    def merge_base(self, repo_root: Path, a: str, b: str) -> str:
        """Get the best common ancestor of two commits."""
        return self._run(repo_root, ["merge-base", a, b], quiet=True)

    def list_commits(self, repo_root: Path, base: str, head: str) -> list[str]:
        """List base..head on the ancestry path, oldest first."""
        output = self._run(
            repo_root,
            ["rev-list", "--reverse", "--ancestry-path", f"{base}..{head}"],
            quiet=True,
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def is_working_tree_clean(self, repo_root: Path) -> bool:
        """Check git status --porcelain is empty."""
        porcelain = self._run(repo_root, ["status", "--porcelain"], quiet=True)
        return not porcelain.strip()

    def has_diff(self, repo_root: Path, base: str, head: str) -> bool:
        """Check whether base..head changes any file."""
        return not self._probe(repo_root, ["diff", "--quiet", f"{base}..{head}", "--"])

    def has_staged_changes(self, repo_root: Path) -> bool:
        """Check whether the index differs from HEAD."""
        return not self._probe(repo_root, ["diff", "--cached", "--quiet"])

    def get_commit_subject(self, repo_root: Path, ref: str) -> str:
        """Get the summary line of ref's commit."""
        return self._run(repo_root, ["log", "-1", "--pretty=%s", ref], quiet=True)

    def path_exists(self, path: Path) -> bool:
        """Check if path exists on the real filesystem."""
        return path.exists()

    # Mutating operations

    def fetch_all(self, repo_root: Path) -> None:
        """Fetch every remote and prune deleted tracking branches."""
        self._run(repo_root, ["fetch", "--all", "--prune"], error_type=TransportError)

    def switch_branch(self, repo_root: Path, branch: str) -> None:
        """Switch to an existing local branch."""
        self._run(repo_root, ["switch", branch])

    def reset_hard(self, repo_root: Path, ref: str) -> None:
        """Hard-reset the current branch to ref."""
        self._run(repo_root, ["reset", "--hard", ref])

    def create_branch_at(self, repo_root: Path, branch: str, ref: str) -> None:
        """Create or force-reset branch at ref and switch to it."""
        self._run(repo_root, ["switch", "-C", branch, ref])

    def merge_no_ff(self, repo_root: Path, ref: str) -> None:
        """Merge ref with a merge commit; leaves the merge in progress on conflict."""
        self._run(repo_root, ["merge", "--no-ff", "--no-edit", ref])

    def cherry_pick(self, repo_root: Path, commit: str) -> None:
        """Cherry-pick commit with the -x trailer."""
        self._run(repo_root, ["cherry-pick", "-x", commit])

    def merge_squash(self, repo_root: Path, ref: str) -> None:
        """Stage ref's cumulative changes without committing."""
        self._run(repo_root, ["merge", "--squash", "--no-commit", ref])

    def commit(self, repo_root: Path, messages: list[str]) -> None:
        """Commit the index with one -m per paragraph."""
        args = ["commit"]
        for message in messages:
            args.extend(["-m", message])
        self._run(repo_root, args)

    def add_path(self, repo_root: Path, path: str) -> None:
        """Stage all changes under path, deletions included."""
        self._run(repo_root, ["add", "-A", path], quiet=True)

    def push(self, repo_root: Path, remote: str, branch: str, *, set_upstream: bool) -> None:
        """Push a rebuilt branch to remote, optionally setting upstream."""
        args = ["push", "--force-with-lease"]
        if set_upstream:
            args.append("-u")
        args.extend([remote, branch])
        self._run(repo_root, args, error_type=TransportError)

    def clone_shallow(self, repo_root: Path, url: str, target: str) -> None:
        """Clone url with depth 1 into target."""
        self._run(
            repo_root, ["clone", "--depth=1", url, target], quiet=True, error_type=TransportError
        )

    def fetch_ref_shallow(self, cwd: Path, remote: str, ref: str) -> bool:
        """Fetch ref into FETCH_HEAD; False when the remote does not serve it."""
        return self._probe(cwd, ["fetch", "--depth=1", remote, ref])

    def checkout(self, cwd: Path, ref: str) -> None:
        """Check out ref."""
        self._run(cwd, ["checkout", ref], quiet=True)

    def remove_tree(self, path: Path) -> None:
        """Recursively delete path if present."""
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
