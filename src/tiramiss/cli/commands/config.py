import click

from tiramiss.cli.error_boundary import cli_error_boundary
from tiramiss.cli.output import machine_output, user_output
from tiramiss.core.config import CONFIG_KEYS, Mode, TiramissConfig, write_pyproject_setting
from tiramiss.core.context import TiramissContext


def _format_value(value: object) -> str:
    if isinstance(value, Mode):
        return value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, tuple):
        return ",".join(str(v) for v in value)
    return str(value)


def _config_items(config: TiramissConfig) -> list[tuple[str, str]]:
    return [(key, _format_value(getattr(config, key))) for key in CONFIG_KEYS]


@click.group("config")
def config_group() -> None:
    """Show or change tiramiss configuration."""


@config_group.command("list")
@click.pass_obj
def config_list(ctx: TiramissContext) -> None:
    """Print the effective configuration (defaults, pyproject.toml, environment)."""
    for key, value in _config_items(ctx.config):
        machine_output(f"{key}={value}")


@config_group.command("get")
@click.argument("key")
@click.pass_obj
def config_get(ctx: TiramissContext, key: str) -> None:
    """Print one effective configuration value."""
    if key not in CONFIG_KEYS:
        user_output(f"Invalid key: {key}")
        raise SystemExit(1)
    machine_output(_format_value(getattr(ctx.config, key)))


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
@cli_error_boundary
def config_set(ctx: TiramissContext, key: str, value: str) -> None:
    """Persist KEY=VALUE in [tool.tiramiss] of the repository's pyproject.toml."""
    repo_root = ctx.require_repo_root()
    write_pyproject_setting(repo_root, key, value)
    user_output(f"Set {key}={value} in {repo_root / 'pyproject.toml'}")
