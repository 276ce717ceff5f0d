"""Topic list parsing and topic name resolution."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from tiramiss.core.errors import TopicNotFoundError
from tiramiss.core.git.abc import Git

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicList:
    """Topics in application order, plus the file they came from.

    path is None when no topic file exists; that is a valid, empty run.
    """

    path: Path | None
    topics: tuple[str, ...]


def parse_topics(text: str) -> list[str]:
    """Extract topic names from topic file content.

    Lines are trimmed; blank lines and lines starting with '#' are ignored.
    Order is preserved and duplicates are kept as written.
    """
    topics: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        topics.append(stripped)
    return topics


def read_topics(candidates: Sequence[Path]) -> TopicList:
    """Read the first existing topic file among candidates.

    Args:
        candidates: Paths in lookup order

    Returns:
        TopicList; path is None and topics empty when no candidate exists
    """
    for path in candidates:
        if path.is_file():
            topics = parse_topics(path.read_text(encoding="utf-8"))
            logger.debug("Read %d topic(s) from %s", len(topics), path)
            return TopicList(path=path, topics=tuple(topics))
    logger.debug("No topic file among: %s", [str(p) for p in candidates])
    return TopicList(path=None, topics=())


def topic_candidates(topic: str, remotes: Sequence[str]) -> list[str]:
    """Reference names tried for a topic, in priority order."""
    return [topic, *(f"{remote}/{topic}" for remote in remotes)]


def resolve_topic_ref(git: Git, repo_root: Path, topic: str, remotes: Sequence[str]) -> str:
    """Turn a topic name into an existing reference.

    Tries the name verbatim, then prefixed by each remote in order. The first
    candidate that names a commit wins, even when later ones would resolve too.

    Args:
        git: Git implementation
        repo_root: Repository root
        topic: Raw topic name from the topic list
        remotes: Remote names in priority order (e.g. origin, upstream)

    Returns:
        The winning reference name (not its hash)

    Raises:
        TopicNotFoundError: If no candidate resolves
    """
    candidates = topic_candidates(topic, remotes)
    for candidate in candidates:
        if git.ref_exists(repo_root, candidate):
            logger.debug("Resolved topic %s -> %s", topic, candidate)
            return candidate
    raise TopicNotFoundError(topic, candidates)
