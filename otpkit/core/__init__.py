"""
Core functionality for otpkit.

This package contains the foundational modules that the pipeline stages depend on.
"""

from .directory import (
    get_home_dir,
    get_global_cache_dir,
    get_tool_cache_dir,
    get_work_dir,
    get_install_root,
    DirectoryError,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .cache_registry import (
    ArtifactCache,
    CacheEntry,
)

from .process import (
    CommandResult,
    run_command,
)

from .exceptions import (
    OTPKitError,
    FetchError,
    VersionNotFoundError,
    ExtractError,
    StructureError,
    BuildError,
    InstallError,
    CacheError,
    CacheLockTimeout,
    PublishError,
    ConfigError,
)

__all__ = [
    "get_home_dir",
    "get_global_cache_dir",
    "get_tool_cache_dir",
    "get_work_dir",
    "get_install_root",
    "DirectoryError",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "ArtifactCache",
    "CacheEntry",
    "CommandResult",
    "run_command",
    "OTPKitError",
    "FetchError",
    "VersionNotFoundError",
    "ExtractError",
    "StructureError",
    "BuildError",
    "InstallError",
    "CacheError",
    "CacheLockTimeout",
    "PublishError",
    "ConfigError",
]
