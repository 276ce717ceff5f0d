"""Fake implementation of Git for testing.

The fake keeps a small commit graph in memory: every commit is a full snapshot
of file contents, branches and remote-tracking branches point at commit ids,
and merge, cherry-pick and squash are computed with a per-file three-way merge.
That is enough to exercise skip detection, ordering and conflicts without
spawning git.
"""

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from tiramiss.core.errors import GitCommandError, TransportError
from tiramiss.core.git.abc import Git

Tree = dict[str, str]


@dataclass(frozen=True)
class FakeCommit:
    parents: tuple[str, ...]
    tree: Mapping[str, str]
    message: str

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0]


@dataclass
class FakeRemoteRepo:
    """A repository that can be shallow-cloned by URL (the vendored tool)."""

    default_tree: Tree
    refs: dict[str, Tree] = field(default_factory=dict)


class MergeConflict(Exception):
    def __init__(self, paths: list[str]) -> None:
        self.paths = paths
        super().__init__(", ".join(paths))


def three_way_merge(base: Mapping[str, str], ours: Mapping[str, str], theirs: Mapping[str, str]) -> Tree:
    """Merge two snapshots against their common base, file by file.

    Raises:
        MergeConflict: If both sides changed the same file differently
    """
    merged: Tree = {}
    conflicts: list[str] = []
    for path in sorted(set(base) | set(ours) | set(theirs)):
        b, o, t = base.get(path), ours.get(path), theirs.get(path)
        if o == t:
            result = o
        elif o == b:
            result = t
        elif t == b:
            result = o
        else:
            conflicts.append(path)
            continue
        if result is not None:
            merged[path] = result
    if conflicts:
        raise MergeConflict(conflicts)
    return merged


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    Setup:
    - Build history with add_commit(), then point branches at it with
      set_branch() / set_remote_branch() and select one with checkout_branch()
    - Register cloneable tool repositories via the remote_repos constructor arg

    When to Use:
    - Testing the integration engine, vendoring and the pipeline
    - Simulating conflicts, missing refs and transport failures

    Examples:
        >>> git = FakeGit()
        >>> root = git.add_commit([], {"a.txt": "1"}, "init")
        >>> git.set_remote_branch("origin/main", root)
        >>> git.is_ancestor(Path("/test/repo"), "origin/main", "origin/main")
        True
    """

    def __init__(
        self,
        *,
        repo_root: Path | None = Path("/test/repo"),
        remote_repos: Mapping[str, FakeRemoteRepo] | None = None,
        dirty: bool = False,
        fetch_error: str | None = None,
        push_error: str | None = None,
    ) -> None:
        """Initialize an empty repository.

        Args:
            repo_root: Root returned by get_repository_root(), None for "not a repo"
            remote_repos: URL -> repository available to clone_shallow()
            dirty: Report uncommitted changes from is_working_tree_clean()
            fetch_error: If set, fetch_all() raises TransportError with this stderr
            push_error: If set, push() raises TransportError with this stderr
        """
        self._repo_root = repo_root
        self._remote_repos = dict(remote_repos or {})
        self._dirty = dirty
        self._fetch_error = fetch_error
        self._push_error = push_error

        self._commits: dict[str, FakeCommit] = {}
        self._order: list[str] = []
        self._branches: dict[str, str] = {}
        self._remote_branches: dict[str, str] = {}
        self._current_branch: str | None = None
        self._index: Tree = {}
        self._worktree: Tree = {}
        self._in_progress: str | None = None

        # target dir -> (clone url, fetched tree)
        self._clones: dict[str, tuple[str, Tree | None]] = {}

        self._fetch_count = 0
        self._pushes: list[tuple[str, str, bool]] = []
        self._cherry_picked: list[str] = []

    # ------------------------------------------------------------------
    # Test setup
    # ------------------------------------------------------------------

    def add_commit(self, parents: list[str], changes: Mapping[str, str | None], subject: str) -> str:
        """Create a commit on top of parents[0]'s tree; None in changes deletes a file."""
        tree: Tree = dict(self._commits[parents[0]].tree) if parents else {}
        for path, content in changes.items():
            if content is None:
                tree.pop(path, None)
            else:
                tree[path] = content
        return self._store(tuple(parents), tree, subject)

    def set_branch(self, name: str, commit: str) -> None:
        self._branches[name] = commit

    def set_remote_branch(self, name: str, commit: str) -> None:
        """Set a remote-tracking branch, e.g. set_remote_branch('origin/x', c)."""
        self._remote_branches[name] = commit

    def checkout_branch(self, name: str) -> None:
        self._current_branch = name
        self._sync_to_head()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def current_branch(self) -> str | None:
        return self._current_branch

    @property
    def in_progress(self) -> str | None:
        """'merge', 'cherry-pick' or 'squash' while a conflicted operation is pending."""
        return self._in_progress

    @property
    def fetch_count(self) -> int:
        return self._fetch_count

    @property
    def pushes(self) -> list[tuple[str, str, bool]]:
        """(remote, branch, set_upstream) for every push, in order."""
        return list(self._pushes)

    @property
    def cherry_picked(self) -> list[str]:
        return list(self._cherry_picked)

    def head(self) -> str:
        assert self._current_branch is not None
        return self._branches[self._current_branch]

    def tree(self, ref: str) -> Tree:
        return dict(self._commits[self._lookup(ref)].tree)

    def message(self, ref: str) -> str:
        return self._commits[self._lookup(ref)].message

    def parents(self, ref: str) -> tuple[str, ...]:
        return self._commits[self._lookup(ref)].parents

    def first_parent_subjects(self, ref: str) -> list[str]:
        """Subjects along the first-parent chain, oldest first."""
        subjects: list[str] = []
        current: str | None = self._lookup(ref)
        while current is not None:
            commit = self._commits[current]
            subjects.append(commit.subject)
            current = commit.parents[0] if commit.parents else None
        return list(reversed(subjects))

    def worktree_files(self) -> Tree:
        return dict(self._worktree)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _store(self, parents: tuple[str, ...], tree: Tree, message: str) -> str:
        payload = repr((parents, sorted(tree.items()), message)).encode("utf-8")
        commit_id = hashlib.sha1(payload).hexdigest()
        if commit_id not in self._commits:
            self._commits[commit_id] = FakeCommit(parents, dict(tree), message)
            self._order.append(commit_id)
        return commit_id

    def _lookup(self, ref: str) -> str:
        if ref == "HEAD":
            return self.head()
        if ref in self._branches:
            return self._branches[ref]
        if ref in self._remote_branches:
            return self._remote_branches[ref]
        if ref in self._commits:
            return ref
        raise GitCommandError(
            ["rev-parse", "--verify", f"{ref}^{{commit}}"], 128, "fatal: Needed a single revision"
        )

    def _ancestors(self, commit_id: str) -> set[str]:
        seen: set[str] = set()
        stack = [commit_id]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._commits[current].parents)
        return seen

    def _head_tree(self) -> Tree:
        return dict(self._commits[self.head()].tree)

    def _sync_to_head(self) -> None:
        self._index = self._head_tree()
        self._worktree = self._head_tree()
        self._in_progress = None

    def _advance(self, commit_id: str) -> None:
        assert self._current_branch is not None
        self._branches[self._current_branch] = commit_id
        self._sync_to_head()

    def _relative(self, path: Path) -> str:
        assert self._repo_root is not None
        return path.relative_to(self._repo_root).as_posix()

    @staticmethod
    def _under(key: str, prefix: str) -> bool:
        return key == prefix or key.startswith(prefix + "/")

    def _conflict(self, args: list[str], state: str, paths: list[str]) -> GitCommandError:
        self._in_progress = state
        lines = [f"CONFLICT (content): Merge conflict in {p}" for p in paths]
        lines.append("Automatic merge failed; fix conflicts and then commit the result.")
        return GitCommandError(args, 1, "", stdout="\n".join(lines))

    # ------------------------------------------------------------------
    # Read / probe operations
    # ------------------------------------------------------------------

    def get_repository_root(self, cwd: Path) -> Path | None:
        return self._repo_root

    def resolve(self, repo_root: Path, ref: str) -> str:
        return self._lookup(ref)

    def ref_exists(self, repo_root: Path, ref: str) -> bool:
        try:
            self._lookup(ref)
        except GitCommandError:
            return False
        return True

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        if not (self.ref_exists(repo_root, ancestor) and self.ref_exists(repo_root, descendant)):
            return False
        return self._lookup(ancestor) in self._ancestors(self._lookup(descendant))

    def local_branch_exists(self, repo_root: Path, branch: str) -> bool:
        return branch in self._branches

    def remote_branch_exists(self, repo_root: Path, remote_branch: str) -> bool:
        return remote_branch in self._remote_branches

    def merge_base(self, repo_root: Path, a: str, b: str) -> str:
        common = self._ancestors(self._lookup(a)) & self._ancestors(self._lookup(b))
        if not common:
            raise GitCommandError(["merge-base", a, b], 1, "")
        # Best common ancestor: the one that is not an ancestor of another candidate
        best = [c for c in common if not any(c in self._ancestors(o) for o in common if o != c)]
        return max(best, key=self._order.index)

    def list_commits(self, repo_root: Path, base: str, head: str) -> list[str]:
        base_id = self._lookup(base)
        excluded = self._ancestors(base_id)
        selected = [
            c
            for c in self._ancestors(self._lookup(head))
            if c not in excluded and base_id in self._ancestors(c)
        ]
        return sorted(selected, key=self._order.index)

    def is_working_tree_clean(self, repo_root: Path) -> bool:
        if self._dirty or self._in_progress is not None:
            return False
        head_tree = self._head_tree()
        return self._index == head_tree and self._worktree == head_tree

    def has_diff(self, repo_root: Path, base: str, head: str) -> bool:
        return self.tree(base) != self.tree(head)

    def has_staged_changes(self, repo_root: Path) -> bool:
        return self._index != self._head_tree()

    def get_commit_subject(self, repo_root: Path, ref: str) -> str:
        return self._commits[self._lookup(ref)].subject

    def path_exists(self, path: Path) -> bool:
        rel = self._relative(path)
        return any(self._under(key, rel) for key in self._worktree)

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def fetch_all(self, repo_root: Path) -> None:
        self._fetch_count += 1
        if self._fetch_error is not None:
            raise TransportError(["fetch", "--all", "--prune"], 1, self._fetch_error)

    def switch_branch(self, repo_root: Path, branch: str) -> None:
        if branch not in self._branches:
            raise GitCommandError(["switch", branch], 128, f"fatal: invalid reference: {branch}")
        self.checkout_branch(branch)

    def reset_hard(self, repo_root: Path, ref: str) -> None:
        self._advance(self._lookup(ref))

    def create_branch_at(self, repo_root: Path, branch: str, ref: str) -> None:
        self._branches[branch] = self._lookup(ref)
        self.checkout_branch(branch)

    def merge_no_ff(self, repo_root: Path, ref: str) -> None:
        args = ["merge", "--no-ff", "--no-edit", ref]
        theirs = self._lookup(ref)
        ours = self.head()
        if theirs in self._ancestors(ours):
            return  # Already up to date
        if not self._ancestors(ours) & self._ancestors(theirs):
            raise GitCommandError(args, 128, "fatal: refusing to merge unrelated histories")
        base = self.merge_base(repo_root, "HEAD", ref)
        try:
            tree = three_way_merge(self.tree(base), self.tree(ours), self.tree(theirs))
        except MergeConflict as e:
            raise self._conflict(args, "merge", e.paths) from None
        self._advance(self._store((ours, theirs), tree, f"Merge branch '{ref}'"))

    def cherry_pick(self, repo_root: Path, commit: str) -> None:
        args = ["cherry-pick", "-x", commit]
        picked = self._commits[self._lookup(commit)]
        base_tree = self.tree(picked.parents[0]) if picked.parents else {}
        try:
            tree = three_way_merge(base_tree, self._head_tree(), picked.tree)
        except MergeConflict as e:
            raise self._conflict(args, "cherry-pick", e.paths) from None
        if tree == self._head_tree():
            self._in_progress = "cherry-pick"
            raise GitCommandError(args, 1, "The previous cherry-pick is now empty")
        message = f"{picked.message}\n\n(cherry picked from commit {self._lookup(commit)})"
        self._cherry_picked.append(self._lookup(commit))
        self._advance(self._store((self.head(),), tree, message))

    def merge_squash(self, repo_root: Path, ref: str) -> None:
        args = ["merge", "--squash", "--no-commit", ref]
        base = self.merge_base(repo_root, "HEAD", ref)
        try:
            tree = three_way_merge(self.tree(base), self._head_tree(), self.tree(ref))
        except MergeConflict as e:
            raise self._conflict(args, "squash", e.paths) from None
        self._index = dict(tree)
        self._worktree = dict(tree)

    def commit(self, repo_root: Path, messages: list[str]) -> None:
        if self._index == self._head_tree():
            raise GitCommandError(["commit"], 1, "", stdout="nothing to commit, working tree clean")
        self._advance(self._store((self.head(),), self._index, "\n\n".join(messages)))

    def add_path(self, repo_root: Path, path: str) -> None:
        for key in [k for k in self._index if self._under(k, path)]:
            del self._index[key]
        for key, content in self._worktree.items():
            if self._under(key, path) and "/.git/" not in f"/{key}/":
                self._index[key] = content

    def push(self, repo_root: Path, remote: str, branch: str, *, set_upstream: bool) -> None:
        if self._push_error is not None:
            raise TransportError(["push", remote, branch], 1, self._push_error)
        self._pushes.append((remote, branch, set_upstream))
        self._remote_branches[f"{remote}/{branch}"] = self._branches[branch]

    def clone_shallow(self, repo_root: Path, url: str, target: str) -> None:
        if url not in self._remote_repos:
            raise TransportError(
                ["clone", "--depth=1", url, target],
                128,
                f"fatal: repository '{url}' does not exist",
            )
        self._clones[target] = (url, None)
        self._place(target, self._remote_repos[url].default_tree)
        self._worktree[f"{target}/.git/HEAD"] = url

    def fetch_ref_shallow(self, cwd: Path, remote: str, ref: str) -> bool:
        target = self._relative(cwd)
        url, _ = self._clones[target]
        fetched = self._remote_repos[url].refs.get(ref)
        if fetched is None:
            return False
        self._clones[target] = (url, fetched)
        return True

    def checkout(self, cwd: Path, ref: str) -> None:
        target = self._relative(cwd)
        url, fetched = self._clones[target]
        if ref != "FETCH_HEAD" or fetched is None:
            raise GitCommandError(["checkout", ref], 1, f"error: pathspec '{ref}' did not match")
        git_marker = self._worktree.get(f"{target}/.git/HEAD", url)
        self._place(target, fetched)
        self._worktree[f"{target}/.git/HEAD"] = git_marker

    def remove_tree(self, path: Path) -> None:
        rel = self._relative(path)
        for key in [k for k in self._worktree if self._under(k, rel)]:
            del self._worktree[key]

    def _place(self, target: str, files: Mapping[str, str]) -> None:
        for key in [k for k in self._worktree if self._under(k, target)]:
            del self._worktree[key]
        for name, content in files.items():
            self._worktree[f"{target}/{name}"] = content
