"""
otpkit CLI argument parser.

This module implements the command-line interface for otpkit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from otpkit import __version__
from otpkit.ci.actions import set_failed

logger = logging.getLogger(__name__)


class CLI:
    """otpkit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="otpkit",
            description="otpkit - build, cache and install Erlang/OTP releases",
            epilog='Use "otpkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"otpkit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./otpkit.yaml)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_publish_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install an OTP release",
            description=(
                "Install an Erlang/OTP release, building it from source "
                "when no cached build exists"
            ),
        )
        parser.add_argument(
            "--otp-version",
            metavar="VERSION",
            help="OTP version to install (default: the 'otp-version' action input)",
        )
        parser.add_argument(
            "--install-root",
            type=Path,
            metavar="DIR",
            help="Installation directory (default: ~/.local/otp)",
        )
        parser.add_argument(
            "--cache-dir",
            type=Path,
            metavar="DIR",
            help="Artifact cache directory",
        )
        parser.add_argument(
            "--no-path",
            action="store_true",
            help="Do not add the installed bin directory to PATH",
        )

    def _add_publish_command(self, subparsers):
        """Add 'publish' subcommand."""
        parser = subparsers.add_parser(
            "publish",
            help="Publish a precompiled OTP release asset",
            description=(
                "Build an Erlang/OTP release and upload it as a GitHub release "
                "asset unless it is already published"
            ),
        )
        parser.add_argument(
            "--otp-version",
            metavar="VERSION",
            help="OTP version to publish (default: the 'otp-version' action input)",
        )
        parser.add_argument(
            "--token",
            metavar="TOKEN",
            help="GitHub token (default: 'github-token' input or $GITHUB_TOKEN)",
        )
        parser.add_argument(
            "--repository",
            metavar="OWNER/REPO",
            help="Target repository (default: config or $GITHUB_REPOSITORY)",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return set_failed(str(e))

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            stream=sys.stdout,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "install": "otpkit.cli.commands.install",
            "publish": "otpkit.cli.commands.publish",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
