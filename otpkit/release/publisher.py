"""
Precompiled release publishing.

Publishes a built OTP release as an asset of the GitHub release tagged
``OTP-<version>``. Both the release and the asset are checked before any
work is done, so rerunning for an already published version is a no-op.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from otpkit.core.directory import get_work_dir
from otpkit.core.exceptions import PublishError
from otpkit.core.filesystem import temporary_directory
from otpkit.core.platform import PlatformInfo, detect_platform
from otpkit.otp.build import BuildEngine
from otpkit.otp.packager import package_release
from otpkit.release.github import Asset, GitHubReleaseClient, Release

logger = logging.getLogger(__name__)

# Fetches the source tree for a version into a work directory
SourceFetcher = Callable[[str, Path], Path]


def release_tag(version: str) -> str:
    """Tag of the release holding builds of ``version``."""
    return f"OTP-{version}"


def asset_name(version: str, platform_info: PlatformInfo) -> str:
    """
    Name of the published artifact for ``version`` on a platform.

    Example:
        >>> asset_name("23.1", PlatformInfo("linux", "x64"))
        'otp-23.1-x86_64-pc-linux-gnu.tar.gz'
    """
    return f"otp-{version}-{platform_info.triple()}.tar.gz"


@dataclass
class PublishResult:
    """Result of a publish run."""

    version: str
    release: Release
    asset: Asset
    built: bool
    """Whether a build and upload happened (False if already published)"""

    release_created: bool
    """Whether this run created the release"""


class ReleasePublisher:
    """
    Builds and uploads an OTP release asset unless it is already published.

    Example:
        >>> publisher = ReleasePublisher(client, BuildEngine(), fetch_source)
        >>> result = publisher.publish("23.1")
    """

    def __init__(
        self,
        client: GitHubReleaseClient,
        build_engine: BuildEngine,
        fetch_source: SourceFetcher,
        platform_info: Optional[PlatformInfo] = None,
        work_dir: Optional[Path] = None,
    ):
        self.client = client
        self.build_engine = build_engine
        self.fetch_source = fetch_source
        self.platform_info = platform_info or detect_platform()
        self.work_dir = work_dir or get_work_dir()

    def _ensure_release(self, tag: str):
        release = self.client.get_release_by_tag(tag)
        if release is not None:
            logger.info(f"Release {tag} exists. id: {release.id}.")
            return release, False

        result = self.client.create_release(tag)
        return result.release, result.created

    def publish(self, version: str) -> PublishResult:
        """
        Publish the build of ``version`` for this platform.

        Raises:
            PublishError: If the API rejects a request or the upload is not confirmed
            BuildError: If the native build fails
        """
        tag = release_tag(version)
        name = asset_name(version, self.platform_info)

        release, release_created = self._ensure_release(tag)

        existing = self.client.get_asset(release.id, name)
        if existing is not None:
            logger.info(f"Asset {name} already published in {tag}, nothing to do")
            return PublishResult(version, release, existing, False, release_created)

        with temporary_directory(prefix="otpkit_publish_", parent=self.work_dir) as work:
            source_root = self.fetch_source(version, work)
            release_layout = self.build_engine.build(source_root)
            artifact = package_release(release_layout, name, output_dir=work)
            asset = self.client.upload_asset(release, name, artifact)
            self._confirm_upload(asset, name, artifact)

        logger.info(f"Published {name} to release {tag}")
        return PublishResult(version, release, asset, True, release_created)

    @staticmethod
    def _confirm_upload(asset: Asset, name: str, artifact: Path) -> None:
        expected_size = artifact.stat().st_size
        if asset.name != name or asset.state != "uploaded":
            raise PublishError(
                f"Upload of {name} not confirmed: asset {asset.name} is {asset.state}"
            )
        if asset.size != expected_size:
            raise PublishError(
                f"Upload of {name} incomplete: {asset.size} of {expected_size} bytes"
            )
