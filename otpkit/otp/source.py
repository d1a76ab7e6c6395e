"""
Source archive retrieval.

Downloads the tagged source tarball for a release from GitHub and locates the
single top-level directory it unpacks to (``otp-OTP-<version>``).
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from otpkit.config.parser import SOURCE_URL_TEMPLATE
from otpkit.core.download import DownloadProgress, download_file
from otpkit.core.exceptions import StructureError
from otpkit.core.filesystem import extract_archive, list_subdirectories

logger = logging.getLogger(__name__)

PROJECT_NAME = "otp"


def source_archive_url(version: str, template: str = SOURCE_URL_TEMPLATE) -> str:
    """
    Build the source archive URL for a version.

    Example:
        >>> source_archive_url("23.1")
        'https://github.com/erlang/otp/archive/OTP-23.1.tar.gz'
    """
    return template.format(version=version)


def source_dir_name(version: str) -> str:
    """Name of the directory the source archive unpacks to."""
    return f"{PROJECT_NAME}-OTP-{version}"


def _log_progress(progress: DownloadProgress) -> None:
    logger.info(f"Source download: {progress}")


def download_source(
    version: str,
    destination_dir: Path,
    template: str = SOURCE_URL_TEMPLATE,
    timeout: int = 30,
    max_retries: int = 1,
) -> Path:
    """
    Download the source archive for ``version`` into ``destination_dir``.

    Raises:
        FetchError: If the download fails
    """
    url = source_archive_url(version, template)
    destination = Path(destination_dir) / f"OTP-{version}.tar.gz"
    return download_file(
        url,
        destination,
        progress_callback=_log_progress,
        timeout=timeout,
        max_retries=max_retries,
    )


def extract_source(archive_path: Path, destination: Optional[Path] = None) -> Path:
    """
    Unpack a source archive into a fresh directory.

    Args:
        archive_path: Downloaded source archive
        destination: Parent for the extraction directory (default: system temp)

    Returns:
        The new directory holding the extracted tree

    Raises:
        ExtractError: If the archive is corrupt
    """
    if destination is not None:
        Path(destination).mkdir(parents=True, exist_ok=True)
    extract_dir = Path(tempfile.mkdtemp(prefix="otp-src-", dir=destination))
    logger.info(f"Extracting {archive_path} to {extract_dir}")
    extract_archive(archive_path, extract_dir)
    return extract_dir


def locate_source_root(directory: Path, version: str) -> Path:
    """
    Find the source tree inside an extraction directory.

    The directory must contain exactly one child directory, named
    ``otp-OTP-<version>``.

    Raises:
        StructureError: If the expected directory is missing or not alone
    """
    directory = Path(directory)
    expected = source_dir_name(version)
    children = list_subdirectories(directory)

    if expected not in children:
        raise StructureError(
            f"Expected source directory {expected} in {directory}, "
            f"found: {', '.join(children) or 'nothing'}"
        )
    if len(children) > 1:
        raise StructureError(
            f"Expected only {expected} in {directory}, "
            f"but it also contains: {', '.join(c for c in children if c != expected)}"
        )

    return directory / expected


def fetch_source(
    version: str,
    work_dir: Path,
    template: str = SOURCE_URL_TEMPLATE,
    timeout: int = 30,
    max_retries: int = 1,
) -> Path:
    """Download, extract and locate the source tree for ``version``."""
    work_dir = Path(work_dir)
    archive_path = download_source(
        version, work_dir, template, timeout=timeout, max_retries=max_retries
    )
    extract_dir = extract_source(archive_path, work_dir)
    source_root = locate_source_root(extract_dir, version)
    logger.info(f"Source tree ready at {source_root}")
    return source_root
