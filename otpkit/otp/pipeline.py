"""
OTP installation pipeline.

This module orchestrates the complete install workflow:
1. Resolve the requested version against the upstream catalog
2. Look up a previously built artifact in the cache
3. On a miss: fetch source, build, package and store the artifact
4. Install the artifact and report the executable directory

Each stage completes before the next starts. The executable directory is
returned to the caller, which decides how to expose it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from otpkit.config.parser import OTPKitConfig
from otpkit.core.cache_registry import ArtifactCache
from otpkit.core.directory import get_work_dir
from otpkit.core.filesystem import temporary_directory
from otpkit.otp.build import BuildEngine
from otpkit.otp.catalog import resolve_version
from otpkit.otp.installer import default_install_root, executable_path, install
from otpkit.otp.packager import package_release
from otpkit.otp.source import fetch_source

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of an install run."""

    version: str
    """Resolved OTP version"""

    install_root: Path
    """Directory the release was installed to"""

    bin_dir: Path
    """Directory holding the installed executables"""

    cache_hit: bool
    """Whether the artifact came from the cache (no build needed)"""

    artifact_path: Path
    """Cached artifact the installation was made from"""


class OTPInstaller:
    """
    Installs an OTP release, building it only when no cached artifact exists.

    Example:
        >>> installer = OTPInstaller()
        >>> result = installer.install("23.1")
        >>> print(f"Executables in: {result.bin_dir}")
    """

    def __init__(
        self,
        config: Optional[OTPKitConfig] = None,
        cache: Optional[ArtifactCache] = None,
        build_engine: Optional[BuildEngine] = None,
        work_dir: Optional[Path] = None,
    ):
        """
        Initialize installer.

        Args:
            config: Configuration (default: built-in defaults)
            cache: Artifact cache (default: cache at the configured directory)
            build_engine: Build engine (default: configured from ``config.build``)
            work_dir: Parent directory for build scratch space
        """
        self.config = config or OTPKitConfig()
        self.cache = cache or ArtifactCache(self.config.cache_dir)
        self.build_engine = build_engine or BuildEngine(
            jobs=self.config.build.job_count(),
            configure_args=self.config.build.configure_args,
        )
        self.work_dir = work_dir or get_work_dir()
        self.install_root = self.config.install_root or default_install_root()

    def install(self, specifier: str) -> InstallResult:
        """
        Install the release matching ``specifier``.

        Raises:
            FetchError: If the catalog or source cannot be downloaded
            VersionNotFoundError: If the version is not published
            StructureError: If the source or release layout is unexpected
            BuildError: If the native build fails
            InstallError: If the artifact cannot be unpacked or Install fails
        """
        download = self.config.download
        version = resolve_version(
            specifier,
            url=self.config.versions_url,
            timeout=download.timeout,
            max_retries=download.max_retries,
        )

        cached_dir = self.cache.lookup(self.config.cache_key, version)
        cache_hit = cached_dir is not None
        if cached_dir is None:
            logger.info(f"No cached build for OTP {version}, building from source")
            cached_dir = self._build_and_cache(version)

        artifact_path = cached_dir / self.config.artifact_name
        install_root = install(artifact_path, self.install_root)

        return InstallResult(
            version=version,
            install_root=install_root,
            bin_dir=executable_path(install_root),
            cache_hit=cache_hit,
            artifact_path=artifact_path,
        )

    def _build_and_cache(self, version: str) -> Path:
        """Build ``version`` from source and store the artifact in the cache."""
        download = self.config.download
        with temporary_directory(prefix="otpkit_build_", parent=self.work_dir) as work:
            source_root = fetch_source(
                version,
                work,
                template=self.config.source_url_template,
                timeout=download.timeout,
                max_retries=download.max_retries,
            )
            release_layout = self.build_engine.build(source_root)
            artifact = package_release(
                release_layout, self.config.artifact_name, output_dir=work
            )
            return self.cache.store(
                artifact, self.config.artifact_name, self.config.cache_key, version
            )


def install_otp(specifier: str, config: Optional[OTPKitConfig] = None) -> InstallResult:
    """Install ``specifier`` with a default-configured OTPInstaller."""
    return OTPInstaller(config).install(specifier)
