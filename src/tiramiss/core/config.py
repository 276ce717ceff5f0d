"""Run configuration: defaults, pyproject.toml, environment, CLI overrides.

TiramissConfig is built once at the CLI entry point and threaded through the
application on TiramissContext. Nothing below the CLI reads os.environ.

Precedence, lowest to highest:
1. Built-in defaults
2. [tool.tiramiss] in the repository's pyproject.toml
3. Environment variables (BASE_REF, WORKING_BRANCH, ...)
4. Explicit overrides from command-line flags
"""

import dataclasses
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import tomlkit

from tiramiss.core.errors import PreconditionError


class Mode(str, Enum):
    """How each topic is combined onto the integration branch."""

    MERGE = "merge"
    PICK = "pick"
    SQUASH = "squash"

    @staticmethod
    def parse(value: str) -> "Mode":
        """Parse a mode name, raising PreconditionError for unknown values."""
        normalized = value.strip().lower()
        for mode in Mode:
            if mode.value == normalized:
                return mode
        choices = ", ".join(m.value for m in Mode)
        raise PreconditionError(f"Invalid mode: {value!r} (expected one of: {choices})")


@dataclass(frozen=True)
class TiramissConfig:
    """Immutable run configuration.

    All fields are read-only after construction.
    """

    base_ref: str = "origin/develop-upstream"
    working_branch: str = "develop-working"
    integration_branch: str = "tiramiss"
    tool_repo: str = ""
    tool_ref: str = "HEAD"
    tool_dir: str = "tiramiss"
    push: bool = True
    mode: Mode = Mode.SQUASH
    remote: str = "origin"
    fallback_remotes: tuple[str, ...] = ("origin", "upstream")

    @property
    def vendoring_enabled(self) -> bool:
        return bool(self.tool_repo)

    def topic_file_candidates(self, repo_root: Path) -> list[Path]:
        """Topic list locations in lookup order: inside the vendored tool dir, then the root."""
        return [repo_root / self.tool_dir / "topics.txt", repo_root / "topics.txt"]


# Environment variable -> config field
ENV_KEYS: dict[str, str] = {
    "BASE_REF": "base_ref",
    "WORKING_BRANCH": "working_branch",
    "INTEG_BRANCH": "integration_branch",
    "TOOL_REPO": "tool_repo",
    "TOOL_REF": "tool_ref",
    "TOOL_DIR": "tool_dir",
    "PUSH": "push",
    "MODE": "mode",
}

CONFIG_KEYS: tuple[str, ...] = tuple(
    field.name for field in dataclasses.fields(TiramissConfig)
)


def _coerce(key: str, value: Any, *, source: str) -> Any:
    """Convert a raw value from pyproject.toml or the environment to the field's type."""
    if key == "mode":
        return value if isinstance(value, Mode) else Mode.parse(str(value))
    if key == "push":
        if isinstance(value, bool):
            return value
        # Anything other than "true" disables pushing
        return str(value).strip().lower() == "true"
    if key == "fallback_remotes":
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        if not isinstance(value, list | tuple):
            raise PreconditionError(f"Invalid value for {key} in {source}: {value!r}")
        return tuple(str(item) for item in value)
    return str(value)


def read_pyproject_settings(repo_root: Path) -> dict[str, Any]:
    """Read the [tool.tiramiss] table from pyproject.toml.

    Args:
        repo_root: Path to the repository root directory

    Returns:
        Raw settings (possibly empty); unknown keys raise PreconditionError
    """
    pyproject_path = repo_root / "pyproject.toml"

    if not pyproject_path.exists():
        return {}

    with pyproject_path.open("rb") as f:
        data = tomllib.load(f)

    tool_section = data.get("tool")
    if tool_section is None:
        return {}

    section = tool_section.get("tiramiss")
    if section is None:
        return {}

    unknown = sorted(set(section) - set(CONFIG_KEYS))
    if unknown:
        raise PreconditionError(
            f"Unknown key(s) in [tool.tiramiss] of {pyproject_path}: {', '.join(unknown)}"
        )
    return dict(section)


def load_config(
    repo_root: Path | None,
    environ: Mapping[str, str],
    overrides: Mapping[str, Any] | None = None,
) -> TiramissConfig:
    """Build the effective configuration.

    Args:
        repo_root: Repository root whose pyproject.toml is consulted (None skips it)
        environ: Environment mapping (normally os.environ, passed in explicitly)
        overrides: Field values from command-line flags; None values are ignored

    Returns:
        Frozen TiramissConfig

    Raises:
        PreconditionError: If a value cannot be interpreted (e.g. unknown mode)
    """
    values: dict[str, Any] = {}

    if repo_root is not None:
        for key, value in read_pyproject_settings(repo_root).items():
            values[key] = _coerce(key, value, source="pyproject.toml")

    for env_key, field_name in ENV_KEYS.items():
        if env_key in environ:
            values[field_name] = _coerce(field_name, environ[env_key], source=env_key)

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                values[key] = _coerce(key, value, source="command line")

    return TiramissConfig(**values)


def write_pyproject_setting(repo_root: Path, key: str, value: str) -> None:
    """Write one setting into [tool.tiramiss] of pyproject.toml.

    Creates the file and section when missing. Preserves existing formatting
    and comments using tomlkit.

    Args:
        repo_root: Path to the repository root directory
        key: Config field name
        value: Raw value as typed by the user

    Raises:
        PreconditionError: If key is unknown or value is invalid
    """
    if key not in CONFIG_KEYS:
        raise PreconditionError(f"Unknown config key: {key} (valid keys: {', '.join(CONFIG_KEYS)})")

    coerced = _coerce(key, value, source="command line")
    toml_value: Any
    if isinstance(coerced, Mode):
        toml_value = coerced.value
    elif isinstance(coerced, tuple):
        toml_value = list(coerced)
    else:
        toml_value = coerced

    pyproject_path = repo_root / "pyproject.toml"

    # Load existing file or create new document
    if pyproject_path.exists():
        with pyproject_path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)
    else:
        doc = tomlkit.document()

    # Ensure [tool] section exists
    if "tool" not in doc:
        doc["tool"] = tomlkit.table()  # type: ignore[index]

    # Ensure [tool.tiramiss] section exists
    if "tiramiss" not in doc["tool"]:  # type: ignore[operator]
        doc["tool"]["tiramiss"] = tomlkit.table()  # type: ignore[index]

    doc["tool"]["tiramiss"][key] = toml_value  # type: ignore[index]

    with pyproject_path.open("w", encoding="utf-8") as f:
        tomlkit.dump(doc, f)
