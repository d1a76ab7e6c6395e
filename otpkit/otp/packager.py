"""
Packaging of a built release layout into a single artifact.

``make release`` writes the installable tree to
``release/<platform triple>/``; the packager archives that sub-directory's
contents into one gzip tarball.
"""

import logging
from pathlib import Path
from typing import Optional

from otpkit.core.filesystem import create_tar_gz, find_single_subdirectory

logger = logging.getLogger(__name__)


def locate_release_subdirectory(release_layout: Path) -> str:
    """
    Find the platform-named directory inside the release layout.

    Raises:
        StructureError: If the layout holds zero or several directories
    """
    return find_single_subdirectory(release_layout)


def archive(release_subdirectory: Path, output_path: Path) -> Path:
    """
    Archive the full contents of ``release_subdirectory`` to ``output_path``.

    The output must be outside the archived directory.
    """
    logger.info(f"Archiving {release_subdirectory} to {output_path}")
    return create_tar_gz(release_subdirectory, output_path)


def package_release(
    release_layout: Path, artifact_name: str, output_dir: Optional[Path] = None
) -> Path:
    """
    Package a release layout as ``artifact_name``.

    Args:
        release_layout: Directory produced by ``make release``
        artifact_name: File name of the artifact
        output_dir: Where to write the artifact (default: the release layout)

    Returns:
        Path to the artifact
    """
    release_layout = Path(release_layout)
    subdirectory = locate_release_subdirectory(release_layout)
    output_path = Path(output_dir or release_layout) / artifact_name
    return archive(release_layout / subdirectory, output_path)
