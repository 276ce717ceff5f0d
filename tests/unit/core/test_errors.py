from tiramiss.core.errors import (
    ConflictError,
    GitCommandError,
    TiramissError,
    TopicNotFoundError,
    TransportError,
)


def test_git_command_error_embeds_command_and_stderr() -> None:
    error = GitCommandError(["switch", "nope"], 128, "fatal: invalid reference: nope\n")

    assert error.command_line == "git switch nope"
    assert "git switch nope failed (exit code 128)" in str(error)
    assert "fatal: invalid reference: nope" in str(error)


def test_git_command_error_falls_back_to_stdout() -> None:
    error = GitCommandError(
        ["merge", "--no-ff", "x"], 1, "", stdout="CONFLICT (content): Merge conflict in a.txt\n"
    )

    assert error.output == "CONFLICT (content): Merge conflict in a.txt"
    assert "Merge conflict in a.txt" in str(error)


def test_transport_error_is_a_git_command_error() -> None:
    error = TransportError(["push", "origin", "tiramiss"], 1, "rejected")

    assert isinstance(error, GitCommandError)
    assert isinstance(error, TiramissError)


def test_topic_not_found_lists_candidates() -> None:
    error = TopicNotFoundError("feature-x", ["feature-x", "origin/feature-x"])

    assert str(error) == "Topic not found: feature-x (tried: feature-x, origin/feature-x)"
    assert error.candidates == ("feature-x", "origin/feature-x")


def test_conflict_error_carries_hint_and_git_output() -> None:
    error = ConflictError("origin/feature-x", "merge", "Run 'git merge --abort'.", "CONFLICT in a")

    message = str(error)
    assert message.startswith("merge conflict while applying origin/feature-x.")
    assert "git merge --abort" in message
    assert message.endswith("CONFLICT in a")
