"""Subprocess execution with captured and optionally streamed output.

run_process is the only place that spawns external commands. It never raises
on a non-zero exit: the exit code is returned as data and the caller decides
whether the failure is exceptional (see RealGit._run versus RealGit._probe).
"""

import logging
import subprocess
import sys
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, TextIO

from tiramiss.cli.output import user_output

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a finished child process."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _pump(source: IO[str], sink: list[str], echo: TextIO | None) -> None:
    """Drain one child stream line by line, optionally mirroring it live."""
    for line in iter(source.readline, ""):
        sink.append(line)
        if echo is not None:
            echo.write(line)
            echo.flush()
    source.close()


def run_process(
    cmd: Sequence[str],
    *,
    cwd: Path | None = None,
    quiet: bool = False,
) -> ProcessResult:
    """Run a command to completion, capturing stdout and stderr.

    Both streams are drained concurrently so a chatty child can never block on
    a full pipe. When quiet is False the command line is echoed first and the
    child's output is passed through to our own stdout/stderr as it arrives;
    interleaving between the two streams is best-effort.

    Args:
        cmd: Executable followed by its arguments
        cwd: Working directory for the child (None inherits ours)
        quiet: Suppress live pass-through while still capturing output

    Returns:
        ProcessResult with exit code and the full captured output

    Raises:
        FileNotFoundError: If the executable does not exist
    """
    logger.debug("run_process: cmd=%s, cwd=%s, quiet=%s", list(cmd), cwd, quiet)
    if not quiet:
        user_output(f"> {' '.join(cmd)}")

    process = subprocess.Popen(
        list(cmd),
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        bufsize=1,  # Line buffered
    )

    stdout_chunks: list[str] = []
    stderr_chunks: list[str] = []
    assert process.stdout is not None
    assert process.stderr is not None

    threads = [
        threading.Thread(
            target=_pump,
            args=(process.stdout, stdout_chunks, None if quiet else sys.stdout),
            daemon=True,
        ),
        threading.Thread(
            target=_pump,
            args=(process.stderr, stderr_chunks, None if quiet else sys.stderr),
            daemon=True,
        ),
    ]
    for thread in threads:
        thread.start()

    exit_code = process.wait()
    for thread in threads:
        thread.join()

    logger.debug("run_process: exit_code=%d", exit_code)
    return ProcessResult(
        exit_code=exit_code,
        stdout="".join(stdout_chunks),
        stderr="".join(stderr_chunks),
    )
