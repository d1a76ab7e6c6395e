"""
CI integration for otpkit.

This module implements the GitHub Actions runner protocol used by the
install and publish commands.
"""

from .actions import add_path, get_input, group, is_running_on_runner, set_failed

__all__ = ["add_path", "get_input", "group", "is_running_on_runner", "set_failed"]
