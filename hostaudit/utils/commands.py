"""
Subprocess execution for the external tools hostaudit drives.
"""

import logging
import shutil
import subprocess
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from hostaudit.exceptions import CommandError, OperationCancelled

if TYPE_CHECKING:
    from hostaudit.progress import CancelToken

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.2
TERMINATE_GRACE = 5


@dataclass
class CommandResult:
    """Outcome of a finished command."""

    command: list[str] = field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def _stop(proc: subprocess.Popen) -> None:
    proc.terminate()
    try:
        proc.wait(timeout=TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


def run_command(
    cmd: list[str],
    *,
    capture: bool = True,
    output_file: str | Path | None = None,
    check: bool = False,
    ok_codes: Iterable[int] = (0,),
    timeout: float | None = None,
    cancel: "CancelToken | None" = None,
) -> CommandResult:
    """
    Run an external command and wait for it.

    Args:
        cmd: Command and arguments; never passed through a shell.
        capture: Capture stdout/stderr. When False the child shares the terminal,
            which interactive tools (apt, pacman, ufw prompts) need.
        output_file: Send stdout to this file and discard stderr.
        check: Raise CommandError when the exit code is not in ``ok_codes``.
        ok_codes: Exit codes that count as success for ``check``.
        timeout: Seconds before the child is killed.
        cancel: Token polled while waiting; the child is terminated when set.

    Returns:
        CommandResult with exit code and captured output.

    Raises:
        CommandError: If the executable is missing, times out, or fails with ``check``.
        OperationCancelled: If ``cancel`` was set while the command ran.
    """
    if not command_exists(cmd[0]):
        raise CommandError(cmd)

    logger.debug("Running: %s", " ".join(cmd))
    out_handle = open(output_file, "w") if output_file else None
    try:
        if out_handle is not None:
            stdout, stderr = out_handle, subprocess.DEVNULL
        elif capture:
            stdout, stderr = subprocess.PIPE, subprocess.PIPE
        else:
            stdout = stderr = None

        proc = subprocess.Popen(cmd, stdout=stdout, stderr=stderr, text=True)
        started = time.monotonic()
        while True:
            try:
                out, err = proc.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.cancelled:
                    _stop(proc)
                    raise OperationCancelled(f"Cancelled: {' '.join(cmd)}") from None
                if timeout is not None and time.monotonic() - started > timeout:
                    _stop(proc)
                    raise CommandError(cmd, proc.returncode, f"timed out after {timeout}s") from None
    finally:
        if out_handle is not None:
            out_handle.close()

    result = CommandResult(
        command=list(cmd), returncode=proc.returncode, stdout=out or "", stderr=err or ""
    )
    logger.debug("%s exited with %d", cmd[0], result.returncode)

    if check and result.returncode not in tuple(ok_codes):
        raise CommandError(cmd, result.returncode, result.stderr)
    return result
