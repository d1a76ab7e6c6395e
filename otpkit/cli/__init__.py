"""
otpkit command-line interface.
"""

from otpkit.cli.parser import CLI, main

__all__ = ["CLI", "main"]
