"""
File system utilities for otpkit.

This module provides file operations shared by the pipeline stages:
- Gzip tarball extraction with leading component stripping
- Archive creation (gzip tarball of a directory's contents)
- Single sub-directory discovery
- Safe file operations (atomic writes, safe deletion)
"""

import copy
import shutil
import sys
import tarfile
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Union

from otpkit.core.exceptions import ExtractError, OTPKitError, StructureError


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(OTPKitError):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(ExtractError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Args:
        path: Path to check
        parent: Potential parent path

    Returns:
        True if path is under parent
    """
    try:
        path.resolve().relative_to(parent.resolve())
        return True
    except ValueError:
        return False


def list_subdirectories(path: Union[str, Path]) -> List[str]:
    """Return the sorted names of the immediate child directories of ``path``."""
    path = Path(path)
    if not path.is_dir():
        raise StructureError(f"Expected a directory at {path}, but it doesn't exist.")
    return sorted(child.name for child in path.iterdir() if child.is_dir())


def find_single_subdirectory(path: Union[str, Path]) -> str:
    """
    Return the name of the only child directory of ``path``.

    Args:
        path: Directory expected to hold exactly one sub-directory

    Returns:
        Name of the sub-directory

    Raises:
        StructureError: If there are zero or several sub-directories

    Example:
        >>> find_single_subdirectory('/tmp/otp/release')
        'x86_64-pc-linux-gnu'
    """
    subdirectories = list_subdirectories(path)
    if not subdirectories:
        raise StructureError(
            f"Expect a sub directory in {path} exists, but it doesn't."
        )
    if len(subdirectories) > 1:
        raise StructureError(
            f"Expect a sub directory in {path} exists, but it has too many "
            f"directories named {','.join(subdirectories)}."
        )
    return subdirectories[0]


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def _strip_path(name: str, strip_components: int) -> str:
    """Drop the first ``strip_components`` slash-separated parts of ``name``."""
    parts = name.split("/")
    return "/".join(parts[strip_components:]).strip("/")


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    strip_components: int = 0,
) -> None:
    """
    Extract an archive to a destination directory.

    Only gzip tarballs (.tar.gz, .tgz) are supported. Validates all paths to
    prevent directory traversal attacks.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        strip_components: Number of leading path components removed from
            every member name, as ``tar --strip-components`` does

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths

    Example:
        >>> extract_archive('release.tar.gz', '/home/user/.local/otp', strip_components=1)
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)

    archive_name = archive_path.name.lower()

    try:
        if archive_name.endswith((".tar.gz", ".tgz")):
            _extract_tar(archive_path, destination, "r:gz", strip_components)
        else:
            raise UnsupportedArchiveFormat(
                f"Unsupported archive format: {archive_path.name}. "
                "Supported: .tar.gz, .tgz"
            )
    except ArchiveExtractionError:
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


def _extract_tar(
    archive_path: Path, destination: Path, mode: str, strip_components: int
) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        members = []
        for member in tar.getmembers():
            if strip_components:
                name = _strip_path(member.name, strip_components)
                if not name:
                    continue
                member = copy.copy(member)
                member.name = name
                if member.islnk():
                    member.linkname = _strip_path(member.linkname, strip_components)
            _validate_archive_path(member.name, destination)
            members.append(member)

        # Extract with filter for security (Python 3.12+)
        if sys.version_info >= (3, 12):
            tar.extractall(destination, members=members, filter="data")
        else:
            tar.extractall(destination, members=members)


# ============================================================================
# Archive Creation
# ============================================================================


def create_tar_gz(
    source_dir: Union[str, Path], output_path: Union[str, Path]
) -> Path:
    """
    Compress the full contents of ``source_dir`` into a gzip tarball.

    Members are rooted at ``.`` so the archive unpacks the directory's contents
    (not the directory itself) when extracted with one stripped component.

    Args:
        source_dir: Directory whose contents are archived
        output_path: Archive file to create; must live outside ``source_dir``

    Returns:
        Path to the created archive

    Raises:
        FilesystemError: If the source is missing or the output lies inside it
    """
    source_dir = Path(source_dir)
    output_path = Path(output_path)

    if not source_dir.is_dir():
        raise FilesystemError(f"Source is not a directory: {source_dir}")

    if is_relative_to(output_path, source_dir):
        raise FilesystemError(
            f"Refusing to write archive {output_path} inside the archived "
            f"directory {source_dir}"
        )

    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(output_path, "w:gz") as tar:
            tar.add(source_dir, arcname=".")
    except (OSError, tarfile.TarError) as e:
        raise FilesystemError(f"Failed to create archive {output_path}: {e}") from e

    return output_path


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory (ensures same filesystem)
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists (idempotent).

    Returns:
        Path object (resolved)
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path.resolve()


# ============================================================================
# Temporary Directory Management
# ============================================================================


@contextmanager
def temporary_directory(
    prefix: str = "otpkit_", cleanup: bool = True, parent: Optional[Path] = None
):
    """
    Context manager for temporary directory with automatic cleanup.

    Args:
        prefix: Prefix for temp directory name
        cleanup: If True, remove directory on exit
        parent: Directory to create the temporary directory in (default: system temp)

    Yields:
        Path to temporary directory

    Example:
        >>> with temporary_directory() as tmp:
        ...     (tmp / 'file.txt').write_text('test')
    """
    if parent is not None:
        Path(parent).mkdir(parents=True, exist_ok=True)
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))

    try:
        yield temp_dir
    finally:
        if cleanup and temp_dir.exists():
            safe_rmtree(temp_dir)


__all__ = [
    # Exceptions
    "FilesystemError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    # Path utilities
    "is_relative_to",
    "list_subdirectories",
    "find_single_subdirectory",
    # Archives
    "extract_archive",
    "create_tar_gz",
    # Safe file operations
    "atomic_write",
    "safe_rmtree",
    "ensure_directory",
    # Temporary files
    "temporary_directory",
]
