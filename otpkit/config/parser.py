"""YAML configuration parser for otpkit.

This module provides parsing and validation for otpkit.yaml configuration files.
Every setting is optional; a missing file yields the defaults.

Example otpkit.yaml:

    cache_dir: /opt/hostedtoolcache
    build:
      jobs: 4
      configure_args: ["--without-javac"]
    github:
      owner: my-org
      repo: otp-builds
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from otpkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "otpkit.yaml"

VERSIONS_TABLE_URL = (
    "https://raw.githubusercontent.com/erlang/otp/master/otp_versions.table"
)
SOURCE_URL_TEMPLATE = "https://github.com/erlang/otp/archive/OTP-{version}.tar.gz"
GITHUB_API_URL = "https://api.github.com"


@dataclass
class BuildSettings:
    """Native build configuration."""

    jobs: Union[str, int] = "auto"  # 'auto' or number of make jobs
    configure_args: List[str] = field(default_factory=list)

    def job_count(self) -> Optional[int]:
        """Explicit job count, or None to use the host CPU count."""
        return None if self.jobs == "auto" else int(self.jobs)


@dataclass
class DownloadSettings:
    """Network download configuration."""

    timeout: int = 30
    max_retries: int = 1


@dataclass
class GitHubSettings:
    """Release publishing target."""

    owner: Optional[str] = None
    repo: Optional[str] = None
    api_url: str = GITHUB_API_URL


@dataclass
class OTPKitConfig:
    """Complete otpkit configuration."""

    versions_url: str = VERSIONS_TABLE_URL
    source_url_template: str = SOURCE_URL_TEMPLATE
    cache_dir: Optional[Path] = None
    install_root: Optional[Path] = None
    cache_key: str = "otp-release"
    artifact_name: str = "release.tar.gz"
    build: BuildSettings = field(default_factory=BuildSettings)
    download: DownloadSettings = field(default_factory=DownloadSettings)
    github: GitHubSettings = field(default_factory=GitHubSettings)


def parse_config(config_path: Path) -> OTPKitConfig:
    """
    Parse otpkit.yaml configuration file.

    Args:
        config_path: Path to otpkit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is missing or invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}") from e

    if data is None:
        return OTPKitConfig()

    return _parse_and_validate(data)


def load_config(config_path: Optional[Path] = None) -> OTPKitConfig:
    """
    Load configuration, falling back to defaults.

    An explicitly given path must exist. Without one, ./otpkit.yaml is used
    when present.
    """
    if config_path is not None:
        return parse_config(Path(config_path))

    default_path = Path.cwd() / DEFAULT_CONFIG_FILE
    if default_path.exists():
        logger.debug(f"Loading configuration from {default_path}")
        return parse_config(default_path)

    logger.debug("No configuration file found, using defaults")
    return OTPKitConfig()


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"'{name}' must be a positive integer, got {value!r}")
    return value


def _parse_and_validate(data: Any) -> OTPKitConfig:
    """Parse and validate configuration data."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    config = OTPKitConfig()

    for key in ("versions_url", "source_url_template", "cache_key", "artifact_name"):
        if key in data:
            if not isinstance(data[key], str) or not data[key]:
                raise ConfigError(f"'{key}' must be a non-empty string")
            setattr(config, key, data[key])

    if "{version}" not in config.source_url_template:
        raise ConfigError("'source_url_template' must contain '{version}'")

    for key in ("cache_dir", "install_root"):
        if data.get(key):
            setattr(config, key, Path(data[key]).expanduser())

    build = _section(data, "build")
    jobs = build.get("jobs", "auto")
    if jobs != "auto":
        jobs = _positive_int(jobs, "build.jobs")
    configure_args = build.get("configure_args", [])
    if not isinstance(configure_args, list) or not all(
        isinstance(arg, str) for arg in configure_args
    ):
        raise ConfigError("'build.configure_args' must be a list of strings")
    config.build = BuildSettings(jobs=jobs, configure_args=configure_args)

    download = _section(data, "download")
    config.download = DownloadSettings(
        timeout=_positive_int(download.get("timeout", 30), "download.timeout"),
        max_retries=_positive_int(
            download.get("max_retries", 1), "download.max_retries"
        ),
    )

    github = _section(data, "github")
    config.github = GitHubSettings(
        owner=github.get("owner"),
        repo=github.get("repo"),
        api_url=github.get("api_url", GITHUB_API_URL),
    )

    return config
