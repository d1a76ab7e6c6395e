"""
Erlang/OTP build and installation pipeline.

Stages, in pipeline order:
    catalog   - resolve a version against the upstream version table
    source    - download and unpack the source archive
    build     - configure and compile with the tree's own toolchain
    packager  - archive the release layout into one artifact
    installer - unpack an artifact and run its Install program
    pipeline  - orchestration with artifact caching
"""

from otpkit.otp.build import BuildEngine, compile_otp, configure, resolve_ssl_flag
from otpkit.otp.catalog import fetch_catalog, parse_catalog, resolve, resolve_version
from otpkit.otp.installer import default_install_root, executable_path, install
from otpkit.otp.packager import archive, locate_release_subdirectory, package_release
from otpkit.otp.pipeline import InstallResult, OTPInstaller, install_otp
from otpkit.otp.source import (
    download_source,
    extract_source,
    fetch_source,
    locate_source_root,
    source_archive_url,
)

__all__ = [
    "BuildEngine",
    "compile_otp",
    "configure",
    "resolve_ssl_flag",
    "fetch_catalog",
    "parse_catalog",
    "resolve",
    "resolve_version",
    "default_install_root",
    "executable_path",
    "install",
    "archive",
    "locate_release_subdirectory",
    "package_release",
    "InstallResult",
    "OTPInstaller",
    "install_otp",
    "download_source",
    "extract_source",
    "fetch_source",
    "locate_source_root",
    "source_archive_url",
]
