"""
Subprocess execution for otpkit.

Every command runs with an explicit working directory; the process-wide
current directory is never changed. Output is streamed to the log while the
command runs and the tail is kept for error reporting.
"""

import logging
import subprocess
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

# Number of trailing output lines kept for error messages
OUTPUT_TAIL_LINES = 200


@dataclass
class CommandResult:
    """Result of a finished subprocess."""

    args: List[str]
    returncode: int
    output: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.args)


def run_command(
    args: Sequence[Union[str, Path]],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
    capture: bool = False,
    merge_stderr: bool = True,
) -> CommandResult:
    """
    Run a command to completion.

    Args:
        args: Command and arguments
        cwd: Working directory for the command
        env: Environment for the command (inherits current if None)
        capture: If True, keep the full output instead of only its tail and
            log lines at debug level instead of info
        merge_stderr: If False, stderr is kept out of ``output`` and returned
            in ``stderr``; output is read once the command exits

    Returns:
        CommandResult with exit code and (tail of) the output

    Raises:
        OSError: If the executable cannot be started

    Example:
        >>> result = run_command(["make", "-j4"], cwd=Path("/tmp/otp-OTP-23.1"))
        >>> result.ok
        True
    """
    str_args = [str(arg) for arg in args]
    logger.debug(f"Running: {' '.join(str_args)} (cwd={cwd})")

    lines: deque = deque() if capture else deque(maxlen=OUTPUT_TAIL_LINES)
    log_line = logger.debug if capture else logger.info
    stderr = ""

    with subprocess.Popen(
        str_args,
        cwd=str(cwd) if cwd is not None else None,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
        text=True,
        errors="replace",
    ) as proc:
        if merge_stderr:
            assert proc.stdout is not None
            for line in proc.stdout:
                line = line.rstrip("\n")
                lines.append(line)
                log_line(line)
        else:
            stdout, stderr = proc.communicate()
            for line in stdout.splitlines():
                lines.append(line)
                log_line(line)
            for line in stderr.splitlines():
                logger.debug(f"stderr: {line}")
        returncode = proc.wait()

    logger.debug(f"Exit code {returncode}: {' '.join(str_args)}")
    return CommandResult(
        args=str_args, returncode=returncode, output="\n".join(lines), stderr=stderr
    )
