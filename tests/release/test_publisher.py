"""
Unit tests for the release publisher.
"""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from otpkit.core.exceptions import BuildError, PublishError
from otpkit.core.platform import PlatformInfo
from otpkit.otp.build import BuildEngine
from otpkit.otp.packager import package_release
from otpkit.release.github import (
    ALREADY_EXISTS,
    CREATED,
    Asset,
    CreateReleaseResult,
    GitHubReleaseClient,
    Release,
)
from otpkit.release.publisher import ReleasePublisher, asset_name, release_tag

LINUX = PlatformInfo("linux", "x64")
ASSET_NAME = "otp-23.1-x86_64-pc-linux-gnu.tar.gz"
RELEASE = Release(7, "OTP-23.1", "https://uploads.github.com/x/assets{?name,label}")


def _fake_build(source_root: Path) -> Path:
    release_dir = source_root / "release" / "x86_64-pc-linux-gnu"
    (release_dir / "bin").mkdir(parents=True)
    (release_dir / "bin" / "erl").write_text("erl")
    return source_root / "release"


def _fake_fetch(version, work_dir):
    root = Path(work_dir) / f"otp-OTP-{version}"
    root.mkdir()
    return root


def _confirmed_upload(release, name, path):
    return Asset(11, name, Path(path).stat().st_size, "uploaded")


@pytest.fixture
def parts(tmp_path):
    """Client, build engine and fetcher mocks attached to one call recorder."""
    manager = Mock()
    manager.client = Mock(spec=GitHubReleaseClient)
    manager.build_engine = Mock(spec=BuildEngine)
    manager.build_engine.build.side_effect = _fake_build
    manager.fetch_source.side_effect = _fake_fetch
    manager.client.upload_asset.side_effect = _confirmed_upload
    return manager


@pytest.fixture
def publisher(parts, tmp_path):
    return ReleasePublisher(
        parts.client,
        parts.build_engine,
        parts.fetch_source,
        platform_info=LINUX,
        work_dir=tmp_path / "work",
    )


def _call_names(manager):
    return [name for name, _, _ in manager.mock_calls]


class TestNaming:
    """Test tag and asset naming."""

    def test_release_tag(self):
        assert release_tag("23.1") == "OTP-23.1"

    @pytest.mark.parametrize(
        "platform_info,expected",
        [
            (PlatformInfo("linux", "x64"), "otp-23.1-x86_64-pc-linux-gnu.tar.gz"),
            (PlatformInfo("macos", "arm64"), "otp-23.1-aarch64-apple-darwin.tar.gz"),
        ],
    )
    def test_asset_name(self, platform_info, expected):
        assert asset_name("23.1", platform_info) == expected


class TestPublish:
    """Test ReleasePublisher.publish."""

    def test_already_published_is_noop(self, parts, publisher):
        existing = Asset(3, ASSET_NAME, 100)
        parts.client.get_release_by_tag.return_value = RELEASE
        parts.client.get_asset.return_value = existing

        with patch("otpkit.release.publisher.package_release") as mock_package:
            result = publisher.publish("23.1")

        assert result.built is False
        assert result.release_created is False
        assert result.asset == existing
        parts.client.create_release.assert_not_called()
        parts.fetch_source.assert_not_called()
        parts.build_engine.build.assert_not_called()
        mock_package.assert_not_called()
        parts.client.upload_asset.assert_not_called()

    def test_missing_release_and_asset(self, parts, publisher):
        parts.client.get_release_by_tag.return_value = None
        parts.client.create_release.return_value = CreateReleaseResult(RELEASE, CREATED)
        parts.client.get_asset.return_value = None

        with patch(
            "otpkit.release.publisher.package_release", wraps=package_release
        ) as mock_package:
            parts.attach_mock(mock_package, "package_release")
            result = publisher.publish("23.1")

        assert result.built is True
        assert result.release_created is True
        assert result.asset.name == ASSET_NAME
        assert _call_names(parts) == [
            "client.get_release_by_tag",
            "client.create_release",
            "client.get_asset",
            "fetch_source",
            "build_engine.build",
            "package_release",
            "client.upload_asset",
        ]
        parts.client.create_release.assert_called_once_with("OTP-23.1")
        release, name, path = parts.client.upload_asset.call_args.args
        assert release == RELEASE
        assert name == ASSET_NAME
        assert Path(path).name == ASSET_NAME

    def test_existing_release_missing_asset(self, parts, publisher):
        parts.client.get_release_by_tag.return_value = RELEASE
        parts.client.get_asset.return_value = None

        result = publisher.publish("23.1")

        assert result.built is True
        assert result.release_created is False
        parts.client.create_release.assert_not_called()
        parts.client.get_asset.assert_called_once_with(7, ASSET_NAME)

    def test_concurrent_release_creation(self, parts, publisher):
        parts.client.get_release_by_tag.return_value = None
        parts.client.create_release.return_value = CreateReleaseResult(
            RELEASE, ALREADY_EXISTS
        )
        parts.client.get_asset.return_value = None

        result = publisher.publish("23.1")

        assert result.release_created is False
        assert result.built is True

    def test_build_failure_uploads_nothing(self, parts, publisher, tmp_path):
        parts.client.get_release_by_tag.return_value = RELEASE
        parts.client.get_asset.return_value = None
        parts.build_engine.build.side_effect = BuildError("make failed with exit code 2")

        with pytest.raises(BuildError):
            publisher.publish("23.1")

        parts.client.upload_asset.assert_not_called()
        assert list((tmp_path / "work").iterdir()) == []

    def test_upload_not_confirmed(self, parts, publisher):
        parts.client.get_release_by_tag.return_value = RELEASE
        parts.client.get_asset.return_value = None
        parts.client.upload_asset.side_effect = lambda r, name, p: Asset(
            11, name, Path(p).stat().st_size, "starter"
        )

        with pytest.raises(PublishError, match="not confirmed"):
            publisher.publish("23.1")

    def test_upload_size_mismatch(self, parts, publisher):
        parts.client.get_release_by_tag.return_value = RELEASE
        parts.client.get_asset.return_value = None
        parts.client.upload_asset.side_effect = lambda r, name, p: Asset(
            11, name, 1, "uploaded"
        )

        with pytest.raises(PublishError, match="incomplete"):
            publisher.publish("23.1")
