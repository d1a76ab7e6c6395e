"""
Installation of a packaged OTP release.

The artifact is unpacked into the install root and the release's own
``Install`` program is run in minimal mode to finalise paths. The install
root is never cleaned up; reinstalling overwrites files in place.
"""

import logging
from pathlib import Path
from typing import Optional

from otpkit.ci.actions import group
from otpkit.core.directory import get_install_root
from otpkit.core.exceptions import ExtractError, InstallError
from otpkit.core.filesystem import ensure_directory, extract_archive
from otpkit.core.process import run_command

logger = logging.getLogger(__name__)


def default_install_root() -> Path:
    """The fixed user-local install root (``~/.local/otp``)."""
    return get_install_root()


def install(artifact_path: Path, install_root: Optional[Path] = None) -> Path:
    """
    Install an artifact.

    Args:
        artifact_path: Packaged release (gzip tarball)
        install_root: Target directory (default: ``~/.local/otp``)

    Returns:
        The install root

    Raises:
        InstallError: If the artifact cannot be unpacked or the Install
            program fails
    """
    install_root = ensure_directory(install_root or default_install_root())

    logger.info(f"Installing {artifact_path} to {install_root}")
    try:
        extract_archive(artifact_path, install_root, strip_components=1)
    except ExtractError as e:
        raise InstallError(f"Could not unpack {artifact_path}: {e}") from e

    args = [str(install_root / "Install"), "-minimal", str(install_root)]
    with group("Install"):
        try:
            result = run_command(args, cwd=install_root)
        except OSError as e:
            raise InstallError(f"Install could not be started: {e}") from e

    if not result.ok:
        raise InstallError(
            f"Install failed with exit code {result.returncode}\n{result.output}"
        )

    logger.info(f"Installed OTP to {install_root}")
    return install_root


def executable_path(install_root: Path) -> Path:
    """Directory holding the installed executables."""
    return Path(install_root) / "bin"
