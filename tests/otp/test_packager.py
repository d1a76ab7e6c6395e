"""
Unit tests for release packaging.
"""

import os
import tarfile

import pytest

from otpkit.core.exceptions import StructureError
from otpkit.otp.packager import archive, locate_release_subdirectory, package_release


@pytest.fixture
def release_layout(tmp_path, write_tree):
    layout = tmp_path / "otp-OTP-23.1" / "release"
    write_tree(
        layout / "x86_64-pc-linux-gnu",
        {"Install": "#!/bin/sh\n", "bin/erl": "erl", "lib/kernel/ebin/x.beam": "b"},
    )
    return layout


class TestLocateReleaseSubdirectory:
    """Test locate_release_subdirectory."""

    def test_single_directory(self, release_layout):
        assert locate_release_subdirectory(release_layout) == "x86_64-pc-linux-gnu"

    def test_files_ignored(self, release_layout):
        (release_layout / "README").write_text("not a directory")

        assert locate_release_subdirectory(release_layout) == "x86_64-pc-linux-gnu"

    def test_empty_layout(self, tmp_path):
        with pytest.raises(StructureError, match="but it doesn't"):
            locate_release_subdirectory(tmp_path)

    def test_two_directories_named_in_error(self, release_layout):
        (release_layout / "aarch64-apple-darwin").mkdir()

        with pytest.raises(StructureError) as exc_info:
            locate_release_subdirectory(release_layout)

        assert "aarch64-apple-darwin,x86_64-pc-linux-gnu" in str(exc_info.value)


class TestPackageRelease:
    """Test package_release."""

    def test_default_output_in_layout(self, release_layout):
        artifact = package_release(release_layout, "release.tar.gz")

        assert artifact == release_layout / "release.tar.gz"
        with tarfile.open(artifact, "r:gz") as tar:
            names = set(tar.getnames())
        assert {"./Install", "./bin/erl", "./lib/kernel/ebin/x.beam"} <= names

    def test_output_dir(self, release_layout, tmp_path):
        artifact = package_release(
            release_layout, "otp-23.1-x86_64-pc-linux-gnu.tar.gz", tmp_path / "out"
        )

        assert artifact == tmp_path / "out" / "otp-23.1-x86_64-pc-linux-gnu.tar.gz"
        assert artifact.exists()

    def test_cwd_unchanged(self, release_layout):
        before = os.getcwd()

        archive(release_layout / "x86_64-pc-linux-gnu", release_layout / "a.tar.gz")

        assert os.getcwd() == before
