"""Configuration module for otpkit.

This module provides YAML configuration parsing and validation for otpkit.yaml.
"""

from otpkit.config.parser import (
    BuildSettings,
    DownloadSettings,
    GitHubSettings,
    OTPKitConfig,
    ConfigError,
    parse_config,
    load_config,
    VERSIONS_TABLE_URL,
    SOURCE_URL_TEMPLATE,
)

__all__ = [
    "BuildSettings",
    "DownloadSettings",
    "GitHubSettings",
    "OTPKitConfig",
    "ConfigError",
    "parse_config",
    "load_config",
    "VERSIONS_TABLE_URL",
    "SOURCE_URL_TEMPLATE",
]
