"""Integration engine: apply topics onto the current branch tip in order.

Each topic moves through PENDING -> SKIPPED | APPLIED, or fails. A failure is
raised as an exception and halts the run; topics applied before it stay
committed and nothing is rolled back. Conflicts leave the repository in git's
native intermediate state (mid-merge, mid-cherry-pick, or staged squash) so the
operator can finish with ordinary git commands and re-run.

"Already integrated" is always checked before touching the tree, so re-running
after a partial success never applies a topic twice.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import click

from tiramiss.cli.output import user_output
from tiramiss.core.config import Mode
from tiramiss.core.errors import ConflictError, GitCommandError
from tiramiss.core.git.abc import Git
from tiramiss.core.topics import resolve_topic_ref

logger = logging.getLogger(__name__)


class TopicOutcome(Enum):
    SKIPPED = "skipped"
    APPLIED = "applied"


@dataclass(frozen=True)
class TopicResult:
    """What happened to one topic."""

    topic: str
    ref: str
    outcome: TopicOutcome
    detail: str
    commits_created: int


def short_topic_name(ref: str) -> str:
    """Final '/'-separated segment of a reference name (origin/feature-x -> feature-x)."""
    return ref.rsplit("/", 1)[-1] or ref


def squash_commit_messages(ref: str, subject: str) -> list[str]:
    """Paragraphs of the single commit created for a squashed topic."""
    return [
        f"squash({short_topic_name(ref)}): {subject}",
        f"Squashed from '{ref}'",
    ]


MERGE_RESUME_HINT = (
    "Resolve the conflicts, run 'git add -A && git commit', then re-run. "
    "To give up instead, run 'git merge --abort'."
)
SQUASH_RESUME_HINT = (
    "Resolve the conflicts, run 'git add -A && git commit', then re-run. "
    "To give up instead, run 'git reset --merge'."
)


# Output markers of a failed merge or cherry-pick that stopped for the operator.
# Any other failure leaves no operation to continue and is re-raised unchanged.
CONFLICT_MARKERS = ("CONFLICT", "cherry-pick is now empty")


def is_conflict(error: GitCommandError) -> bool:
    """Whether git stopped mid-operation waiting for the operator to resolve it."""
    return any(marker in error.output for marker in CONFLICT_MARKERS)


def pick_resume_hint(commit: str, position: int, total: int) -> str:
    return (
        f"cherry-pick of {commit} ({position}/{total}) stopped. "
        "Resolve the conflicts, run 'git add -A && git cherry-pick --continue', then re-run. "
        "To give up instead, run 'git cherry-pick --abort'."
    )


class IntegrationEngine:
    """Applies topics onto the checked-out branch using one fixed Mode.

    The mode is chosen at construction and never changes for the lifetime of
    the engine, so every topic in a run is combined the same way.
    """

    def __init__(self, git: Git, repo_root: Path, mode: Mode, base_ref: str) -> None:
        """Create an engine.

        Args:
            git: Git implementation
            repo_root: Repository whose current branch is mutated
            mode: Combination mode for every topic
            base_ref: Upstream base; pick mode replays only commits beyond its merge base
        """
        self._git = git
        self._repo_root = repo_root
        self._mode = mode
        self._base_ref = base_ref

    @property
    def mode(self) -> Mode:
        """Combination mode applied to every topic."""
        return self._mode

    def apply_all(self, topics: Sequence[str], remotes: Sequence[str]) -> list[TopicResult]:
        """Resolve and apply each topic strictly in order.

        Resolution happens immediately before each topic is applied, so an
        unknown topic stops the run after every earlier topic has landed.

        Raises:
            TopicNotFoundError: If a topic does not resolve
            ConflictError: If a topic does not apply cleanly
            GitCommandError: If any other mandatory git command fails
        """
        results: list[TopicResult] = []
        for topic in topics:
            ref = resolve_topic_ref(self._git, self._repo_root, topic, remotes)
            results.append(self.apply(topic, ref))
        return results

    def apply(self, topic: str, ref: str) -> TopicResult:
        """Apply one resolved topic according to the engine's mode."""
        user_output(f"  • {ref}")
        logger.debug("apply: topic=%s, ref=%s, mode=%s", topic, ref, self._mode.value)
        if self._mode is Mode.MERGE:
            result = self._apply_merge(topic, ref)
        elif self._mode is Mode.PICK:
            result = self._apply_pick(topic, ref)
        else:
            result = self._apply_squash(topic, ref)

        if result.outcome is TopicOutcome.SKIPPED:
            user_output(click.style(f"    skip ({result.detail}): {ref}", dim=True))
        logger.debug("apply: %s -> %s (%s)", ref, result.outcome.value, result.detail)
        return result

    def _is_integrated(self, ref: str) -> bool:
        return self._git.is_ancestor(self._repo_root, ref, "HEAD")

    def _apply_merge(self, topic: str, ref: str) -> TopicResult:
        if self._is_integrated(ref):
            return TopicResult(topic, ref, TopicOutcome.SKIPPED, "already merged", 0)

        try:
            self._git.merge_no_ff(self._repo_root, ref)
        except GitCommandError as e:
            if not is_conflict(e):
                raise
            raise ConflictError(ref, Mode.MERGE.value, MERGE_RESUME_HINT, e.output) from e
        return TopicResult(topic, ref, TopicOutcome.APPLIED, "merged", 1)

    def _apply_pick(self, topic: str, ref: str) -> TopicResult:
        if self._is_integrated(ref):
            return TopicResult(topic, ref, TopicOutcome.SKIPPED, "already picked", 0)

        base = self._git.merge_base(self._repo_root, ref, self._base_ref)
        commits = self._git.list_commits(self._repo_root, base, ref)
        logger.debug("pick: base=%s, commits=%d", base, len(commits))
        if not commits:
            return TopicResult(topic, ref, TopicOutcome.SKIPPED, "no commits to pick", 0)

        total = len(commits)
        for position, commit in enumerate(commits, start=1):
            try:
                self._git.cherry_pick(self._repo_root, commit)
            except GitCommandError as e:
                if not is_conflict(e):
                    raise
                hint = pick_resume_hint(commit, position, total)
                raise ConflictError(ref, Mode.PICK.value, hint, e.output) from e
        noun = "commit" if total == 1 else "commits"
        return TopicResult(topic, ref, TopicOutcome.APPLIED, f"picked {total} {noun}", total)

    def _apply_squash(self, topic: str, ref: str) -> TopicResult:
        common = self._git.merge_base(self._repo_root, "HEAD", ref)
        if not self._git.has_diff(self._repo_root, common, ref):
            return TopicResult(topic, ref, TopicOutcome.SKIPPED, "no diff", 0)

        try:
            self._git.merge_squash(self._repo_root, ref)
        except GitCommandError as e:
            if not is_conflict(e):
                raise
            raise ConflictError(ref, Mode.SQUASH.value, SQUASH_RESUME_HINT, e.output) from e

        # Identical changes already on HEAD stage nothing
        if not self._git.has_staged_changes(self._repo_root):
            return TopicResult(topic, ref, TopicOutcome.SKIPPED, "nothing staged", 0)

        subject = self._git.get_commit_subject(self._repo_root, ref)
        self._git.commit(self._repo_root, squash_commit_messages(ref, subject))
        return TopicResult(topic, ref, TopicOutcome.APPLIED, "squashed", 1)
