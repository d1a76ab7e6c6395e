"""
Native build of an OTP source tree.

The build itself is delegated to the tree's own toolchain:

    ./otp_build autoconf
    ./configure <ssl flag> --enable-dirty-schedulers
    make -j<cpu count>
    make release

Every step runs with the source tree as its working directory and inside a
CI log group. A non-zero exit aborts the build with BuildError.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Sequence

from otpkit.ci.actions import group
from otpkit.core.exceptions import BuildError
from otpkit.core.platform import PlatformInfo, detect_platform
from otpkit.core.process import CommandResult, run_command

logger = logging.getLogger(__name__)

DIRTY_SCHEDULERS_FLAG = "--enable-dirty-schedulers"
RELEASE_DIR_NAME = "release"

# Lines of build output included in BuildError messages
ERROR_OUTPUT_LINES = 40


def _run_step(name: str, args: Sequence[str], cwd: Path) -> CommandResult:
    """Run one build step inside a log group, raising BuildError on failure."""
    with group(name):
        try:
            result = run_command(args, cwd=cwd)
        except OSError as e:
            raise BuildError(
                f"{name} could not be started: {e}", command=args
            ) from e

    if not result.ok:
        tail = "\n".join(result.output.splitlines()[-ERROR_OUTPUT_LINES:])
        raise BuildError(
            f"{name} failed with exit code {result.returncode}\n{tail}",
            command=result.args,
            returncode=result.returncode,
            output=result.output,
        )
    return result


def resolve_ssl_flag(platform_info: Optional[PlatformInfo] = None) -> str:
    """
    Choose the OpenSSL configure flag for the host.

    On macOS the OpenSSL prefix comes from Homebrew; elsewhere configure
    locates the system OpenSSL itself.

    Raises:
        BuildError: If Homebrew cannot report the OpenSSL prefix
    """
    platform_info = platform_info or detect_platform()
    if not platform_info.is_macos:
        return "--with-ssl"

    args = ["brew", "--prefix", "openssl"]
    try:
        result = run_command(args, capture=True, merge_stderr=False)
    except OSError as e:
        raise BuildError(f"Homebrew not available: {e}", command=args) from e

    prefix = result.output.strip()
    if not result.ok or not prefix:
        raise BuildError(
            f"Could not locate OpenSSL with Homebrew (exit code {result.returncode})",
            command=result.args,
            returncode=result.returncode,
            output=result.output,
        )

    logger.debug(f"Using OpenSSL from {prefix}")
    return f"--with-ssl={prefix}"


def configure(
    source_tree: Path, ssl_flag: str, extra_args: Sequence[str] = ()
) -> None:
    """
    Generate and run the configure script.

    Raises:
        BuildError: If either step exits non-zero
    """
    source_tree = Path(source_tree)
    _run_step("otp_build", ["./otp_build", "autoconf"], source_tree)
    _run_step(
        "configure",
        ["./configure", ssl_flag, DIRTY_SCHEDULERS_FLAG, *extra_args],
        source_tree,
    )


def compile_otp(source_tree: Path, jobs: Optional[int] = None) -> Path:
    """
    Compile the configured tree and lay out the release.

    Args:
        source_tree: Configured source tree
        jobs: Parallel make jobs (default: logical CPU count)

    Returns:
        The release layout directory (``<source_tree>/release``)

    Raises:
        BuildError: If make exits non-zero
    """
    source_tree = Path(source_tree)
    jobs = jobs or os.cpu_count() or 1
    _run_step("make", ["make", f"-j{jobs}"], source_tree)
    _run_step("make release", ["make", RELEASE_DIR_NAME], source_tree)
    return source_tree / RELEASE_DIR_NAME


class BuildEngine:
    """
    Configures and compiles OTP source trees.

    Example:
        >>> engine = BuildEngine(jobs=4)
        >>> release_layout = engine.build(Path("/tmp/otp-OTP-23.1"))
    """

    def __init__(
        self,
        jobs: Optional[int] = None,
        configure_args: Sequence[str] = (),
        platform_info: Optional[PlatformInfo] = None,
    ):
        self.jobs = jobs
        self.configure_args = list(configure_args)
        self.platform_info = platform_info

    def build(self, source_tree: Path) -> Path:
        """
        Run the full build.

        Returns:
            The release layout directory
        """
        logger.info(f"Building OTP in {source_tree}")
        ssl_flag = resolve_ssl_flag(self.platform_info)
        configure(source_tree, ssl_flag, self.configure_args)
        release_layout = compile_otp(source_tree, self.jobs)
        logger.info(f"Release layout ready at {release_layout}")
        return release_layout
