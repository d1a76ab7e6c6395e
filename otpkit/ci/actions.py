"""
GitHub Actions runner integration.

Implements the parts of the runner protocol otpkit needs: reading action
inputs from the environment, grouping log output, reporting failures and
extending the executable search path for later workflow steps.

Reference: https://docs.github.com/actions/using-workflows/workflow-commands-for-github-actions
"""

import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, TextIO, Union

logger = logging.getLogger(__name__)


def _input_env_name(name: str) -> str:
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(
    name: str, required: bool = False, env: Optional[Mapping[str, str]] = None
) -> str:
    """
    Read an action input.

    The runner exposes inputs as ``INPUT_<NAME>`` environment variables with
    spaces replaced by underscores; dashes are kept.

    Args:
        name: Input name as declared in action.yml (e.g. 'otp-version')
        required: Raise ValueError when the input is empty
        env: Environment mapping (default: os.environ)

    Returns:
        Input value with surrounding whitespace removed ('' if unset)
    """
    env = os.environ if env is None else env
    value = env.get(_input_env_name(name), "").strip()
    if required and not value:
        raise ValueError(f"Input required and not supplied: {name}")
    return value


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _issue(command: str, message: str = "", stream: Optional[TextIO] = None) -> None:
    stream = stream or sys.stdout
    stream.write(f"::{command}::{_escape_data(message)}\n")
    stream.flush()


def set_failed(message: str, stream: Optional[TextIO] = None) -> int:
    """
    Report a labelled failure to the runner.

    Returns:
        Exit code to use for the failed process (1)
    """
    _issue("error", message, stream)
    return 1


@contextmanager
def group(name: str, stream: Optional[TextIO] = None) -> Iterator[None]:
    """
    Fold all output written inside the block into a collapsible log group.

    Example:
        >>> with group("make release"):
        ...     run_command(["make", "release"], cwd=source_tree)
    """
    _issue("group", name, stream)
    try:
        yield
    finally:
        _issue("endgroup", "", stream)


def add_path(
    path: Union[str, Path], env: Optional[Dict[str, str]] = None
) -> None:
    """
    Prepend ``path`` to the executable search path.

    The current process environment is updated immediately. When running on a
    runner, the path is also appended to the ``$GITHUB_PATH`` file so later
    workflow steps see it.

    Args:
        path: Directory to expose
        env: Environment to update (default: os.environ)
    """
    env = os.environ if env is None else env
    path_str = str(path)

    github_path = env.get("GITHUB_PATH")
    if github_path:
        with open(github_path, "a", encoding="utf-8") as f:
            f.write(f"{path_str}{os.linesep}")
        logger.debug(f"Appended {path_str} to {github_path}")

    current = env.get("PATH", "")
    env["PATH"] = f"{path_str}{os.pathsep}{current}" if current else path_str
    logger.info(f"Added {path_str} to PATH")


def is_running_on_runner(env: Optional[Mapping[str, str]] = None) -> bool:
    """Check whether the process is running inside a GitHub Actions job."""
    env = os.environ if env is None else env
    return env.get("GITHUB_ACTIONS") == "true"
