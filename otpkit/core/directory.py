"""
Directory structure management for otpkit.

This module resolves the well-known directories used by otpkit. All of them
are derived from the invoking user's home directory unless configured
otherwise.

Directory Structure:
    Global Cache (~/.otpkit/):
        - tool-cache/     : Cached build artifacts (unless $RUNNER_TOOL_CACHE is set)
        - tool-cache/registry.json : Artifact cache registry
        - work/           : Scratch space for source downloads and builds

    Install Root (~/.local/otp/):
        - bin/            : Executables exposed on PATH after installation
"""

import os
from pathlib import Path

from otpkit.core.exceptions import OTPKitError


class DirectoryError(OTPKitError):
    """Base exception for directory-related errors."""

    pass


def get_home_dir() -> Path:
    """
    Get the invoking user's home directory.

    Raises:
        DirectoryError: If the home directory cannot be determined
    """
    try:
        return Path.home()
    except RuntimeError as e:
        raise DirectoryError(
            f"Cannot determine home directory: {e}. Set the HOME environment variable."
        ) from e


def get_global_cache_dir() -> Path:
    """
    Get the global otpkit directory path.

    Example:
        >>> get_global_cache_dir()
        PosixPath('/home/user/.otpkit')
    """
    return get_home_dir() / ".otpkit"


def get_tool_cache_dir() -> Path:
    """
    Get the artifact cache root.

    GitHub-hosted runners export ``RUNNER_TOOL_CACHE``; that location is
    preferred so cached artifacts live alongside the runner's other tools.
    """
    runner_cache = os.environ.get("RUNNER_TOOL_CACHE")
    if runner_cache:
        return Path(runner_cache)
    return get_global_cache_dir() / "tool-cache"


def get_work_dir() -> Path:
    """Get the scratch directory used for downloads and builds."""
    runner_temp = os.environ.get("RUNNER_TEMP")
    if runner_temp:
        return Path(runner_temp) / "otpkit"
    return get_global_cache_dir() / "work"


def get_install_root() -> Path:
    """
    Get the fixed user-local install root.

    Example:
        >>> get_install_root()
        PosixPath('/home/user/.local/otp')
    """
    return get_home_dir() / ".local" / "otp"
