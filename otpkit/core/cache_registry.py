"""
Artifact cache for built OTP releases.

This module stores packaged build artifacts keyed by (tool name, version) so a
later run for the same version can install without rebuilding. The on-disk
layout mirrors the runner tool cache:

    <cache root>/<tool>/<version>/<arch>/<artifact file>
    <cache root>/<tool>/<version>/<arch>.complete

A registry file next to the entries records metadata about every stored
artifact. Registry updates are serialised with a file lock so concurrent jobs
sharing a cache directory do not corrupt it.

Cached entries are trusted unconditionally: there is no checksum or freshness
validation because released OTP versions are immutable upstream.
"""

import json
import logging
import shutil
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from filelock import FileLock, Timeout

from otpkit.core.directory import get_tool_cache_dir
from otpkit.core.exceptions import CacheError, CacheLockTimeout
from otpkit.core.filesystem import atomic_write, safe_rmtree
from otpkit.core.platform import detect_platform

logger = logging.getLogger(__name__)

REGISTRY_VERSION = 1


@dataclass
class CacheEntry:
    """Registry record for one cached artifact."""

    tool: str
    version: str
    arch: str
    path: str
    file_name: str
    size_bytes: int
    stored: str

    @property
    def key(self) -> str:
        return _entry_key(self.tool, self.version, self.arch)

    @property
    def artifact_path(self) -> Path:
        return Path(self.path) / self.file_name


def _entry_key(tool: str, version: str, arch: str) -> str:
    return f"{tool}/{version}/{arch}"


class ArtifactCache:
    """
    Local cache of packaged build artifacts.

    Example:
        >>> cache = ArtifactCache()
        >>> cached = cache.lookup("otp-release", "23.1")
        >>> if cached is None:
        ...     cached = cache.store(Path("release.tar.gz"), "release.tar.gz",
        ...                          "otp-release", "23.1")
    """

    def __init__(
        self,
        cache_root: Optional[Path] = None,
        arch: Optional[str] = None,
        lock_timeout: int = 30,
    ):
        """
        Initialize artifact cache.

        Args:
            cache_root: Cache directory (default: runner tool cache or ~/.otpkit/tool-cache)
            arch: Architecture component of cache keys (default: detected)
            lock_timeout: Timeout in seconds for acquiring the registry lock
        """
        self.cache_root = Path(cache_root) if cache_root else get_tool_cache_dir()
        self.arch = arch or detect_platform().arch
        self.registry_path = self.cache_root / "registry.json"
        self.lock_path = self.cache_root / "lock" / "registry.lock"
        self.lock_timeout = lock_timeout

        logger.debug(f"Initialized artifact cache at {self.cache_root}")

    def entry_dir(self, tool: str, version: str) -> Path:
        """Directory holding the artifact for (tool, version)."""
        if not tool or not version:
            raise ValueError("Cache key requires both a tool name and a version")
        return self.cache_root / tool / version / self.arch

    def _marker_path(self, tool: str, version: str) -> Path:
        entry_dir = self.entry_dir(tool, version)
        return entry_dir.parent / f"{entry_dir.name}.complete"

    def _load_registry(self) -> dict:
        if not self.registry_path.exists():
            return {"version": REGISTRY_VERSION, "entries": {}}

        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load cache registry: {e}")
            raise CacheError(f"Failed to load cache registry: {e}") from e

        if "version" not in data or "entries" not in data:
            logger.warning("Invalid cache registry format, resetting")
            return {"version": REGISTRY_VERSION, "entries": {}}

        return data

    def _save_registry(self, data: dict):
        try:
            atomic_write(
                self.registry_path, json.dumps(data, indent=2, ensure_ascii=False)
            )
        except OSError as e:
            logger.error(f"Failed to save cache registry: {e}")
            raise CacheError(f"Failed to save cache registry: {e}") from e

    @contextmanager
    def _lock(self):
        """
        Acquire the exclusive registry lock.

        Raises:
            CacheLockTimeout: If lock cannot be acquired within timeout
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.lock_path, timeout=self.lock_timeout)

        try:
            with lock:
                logger.debug("Acquired cache registry lock")
                yield
            logger.debug("Released cache registry lock")
        except Timeout as e:
            raise CacheLockTimeout(
                f"Could not acquire cache lock within {self.lock_timeout} seconds"
            ) from e

    def lookup(self, tool: str, version: str) -> Optional[Path]:
        """
        Find the cached artifact directory for (tool, version).

        A miss is a normal outcome and returns None. An entry directory
        without its completion marker (an interrupted store) is a miss.

        Returns:
            Directory containing the cached artifact, or None
        """
        entry_dir = self.entry_dir(tool, version)
        if entry_dir.is_dir() and self._marker_path(tool, version).exists():
            logger.info(f"Found in cache @ {entry_dir}")
            return entry_dir

        logger.debug(f"Cache miss for {tool} {version} ({self.arch})")
        return None

    def store(
        self, artifact_path: Path, artifact_name: str, tool: str, version: str
    ) -> Path:
        """
        Copy an artifact into the cache under (tool, version).

        Storing the same key again replaces the previous entry.

        Args:
            artifact_path: Artifact file to cache
            artifact_name: File name of the artifact inside the cache entry
            tool: Cache key tool name (e.g. 'otp-release')
            version: Cache key version

        Returns:
            Directory containing the cached artifact

        Raises:
            CacheError: If the artifact is missing or cannot be copied
        """
        artifact_path = Path(artifact_path)
        if not artifact_path.is_file():
            raise CacheError(f"Artifact not found: {artifact_path}")

        entry_dir = self.entry_dir(tool, version)
        marker = self._marker_path(tool, version)

        with self._lock():
            marker.unlink(missing_ok=True)
            safe_rmtree(entry_dir, require_prefix=self.cache_root)

            try:
                entry_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(artifact_path, entry_dir / artifact_name)
                marker.write_text("", encoding="utf-8")
            except OSError as e:
                raise CacheError(
                    f"Failed to store {artifact_path} in cache: {e}"
                ) from e

            entry = CacheEntry(
                tool=tool,
                version=version,
                arch=self.arch,
                path=str(entry_dir.resolve()),
                file_name=artifact_name,
                size_bytes=artifact_path.stat().st_size,
                stored=datetime.now().isoformat(),
            )
            data = self._load_registry()
            data["entries"][entry.key] = asdict(entry)
            self._save_registry(data)

        logger.info(f"Cached {tool} {version} @ {entry_dir}")
        return entry_dir

    def get_entry(self, tool: str, version: str) -> Optional[CacheEntry]:
        """Get the registry record for (tool, version), if any."""
        data = self._load_registry()
        record = data["entries"].get(_entry_key(tool, version, self.arch))
        return CacheEntry(**record) if record else None

    def list_entries(self) -> List[CacheEntry]:
        """List all registry records, sorted by key."""
        data = self._load_registry()
        entries: Dict[str, dict] = data["entries"]
        return [CacheEntry(**entries[key]) for key in sorted(entries)]
