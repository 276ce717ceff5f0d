"""Exception taxonomy for integration runs.

Every failure that should stop a run derives from TiramissError. Intermediate
layers never catch these; the CLI boundary turns them into a single error line
and a non-zero exit code. Nothing is rolled back: the repository stays exactly
where the last successful step left it.
"""

from collections.abc import Sequence


class TiramissError(Exception):
    """Base class for all run-terminating failures."""


class PreconditionError(TiramissError):
    """Raised before any mutation when the repository or configuration is unusable."""


class TopicNotFoundError(TiramissError):
    """Raised when a topic name resolves to no reference under any candidate name."""

    def __init__(self, topic: str, candidates: Sequence[str]) -> None:
        self.topic = topic
        self.candidates = tuple(candidates)
        tried = ", ".join(self.candidates)
        super().__init__(f"Topic not found: {topic} (tried: {tried})")


class GitCommandError(TiramissError):
    """Raised when a git command whose success is mandatory exits non-zero.

    The message embeds the full command line and the captured stderr verbatim
    so the underlying tool's diagnosis reaches the operator unchanged.
    """

    def __init__(
        self, args: Sequence[str], exit_code: int, stderr: str, *, stdout: str = ""
    ) -> None:
        self.args_list = list(args)
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(f"{self.command_line} failed (exit code {exit_code}):\n{self.output}")

    @property
    def command_line(self) -> str:
        return " ".join(["git", *self.args_list])

    @property
    def output(self) -> str:
        """Captured stderr followed by stdout; git reports merge conflicts on stdout."""
        parts = [stream.rstrip() for stream in (self.stderr, self.stdout) if stream.strip()]
        return "\n".join(parts)


class TransportError(GitCommandError):
    """GitCommandError raised by fetch, push or clone."""


class ConflictError(TiramissError):
    """Raised when a topic cannot be applied cleanly.

    The repository is deliberately left in git's native intermediate state
    (mid-merge, mid-cherry-pick or staged-but-uncommitted). resume_hint tells
    the operator how to finish the operation before re-running.
    """

    def __init__(self, topic: str, mode: str, resume_hint: str, stderr: str = "") -> None:
        self.topic = topic
        self.mode = mode
        self.resume_hint = resume_hint
        self.stderr = stderr
        message = f"{mode} conflict while applying {topic}. {resume_hint}"
        if stderr.strip():
            message += f"\n{stderr.rstrip()}"
        super().__init__(message)
