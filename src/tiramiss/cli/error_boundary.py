"""Error boundary handling for CLI commands.

This module provides a decorator to catch well-known exceptions at CLI entry
points and display a single clean error line without a stack trace.
"""

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import click

from tiramiss.cli.output import user_output
from tiramiss.core.errors import TiramissError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _fail(message: str) -> None:
    user_output(click.style("✖ ", fg="red") + message)


def cli_error_boundary(func: F) -> F:
    """Decorator that turns run-terminating failures into exit code 1.

    Catches:
        - TiramissError: precondition, resolution, conflict and git failures;
          the message already carries the git command and its stderr
        - FileNotFoundError: the git executable (or a config file) is missing

    All other exceptions bubble up normally with full stack traces.

    Example:
        @click.command()
        @click.pass_obj
        @cli_error_boundary
        def my_command(ctx):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except TiramissError as e:
            logger.debug("Exception caught: %s: %s", type(e).__name__, str(e))
            logger.debug("Exception details:", exc_info=True)
            _fail(str(e))
            raise SystemExit(1) from None
        except FileNotFoundError as e:
            logger.debug("Exception details:", exc_info=True)
            _fail(f"Command or file not found: {e.filename}")
            raise SystemExit(1) from None

    return wrapper  # type: ignore[return-value]
