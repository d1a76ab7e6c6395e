"""
Platform detection for otpkit.

This module detects the current platform (OS, architecture) to choose the
platform-specific build configuration and to name published release assets.

Usage:
    from otpkit.core.platform import detect_platform

    platform_info = detect_platform()
    print(f"Platform string: {platform_info.platform_string()}")
    print(f"Platform triple: {platform_info.triple()}")
"""

import functools
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class PlatformInfo:
    """
    Platform information.

    Attributes:
        os: Operating system ('linux', 'macos', 'windows', 'freebsd')
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm')
    """

    os: str
    arch: str

    @property
    def is_macos(self) -> bool:
        return self.os == "macos"

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').

        Example:
            >>> PlatformInfo('linux', 'x64').platform_string()
            'linux-x64'
        """
        return f"{self.os}-{self.arch}"

    def triple(self) -> str:
        """
        Get the GNU-style platform triple used in release asset names.

        Example:
            >>> PlatformInfo('linux', 'x64').triple()
            'x86_64-pc-linux-gnu'
            >>> PlatformInfo('macos', 'arm64').triple()
            'aarch64-apple-darwin'
        """
        arch_map = {
            "x64": "x86_64",
            "arm64": "aarch64",
            "x86": "i686",
            "arm": "armv7l",
        }
        cpu = arch_map.get(self.arch, self.arch)

        if self.os == "macos":
            return f"{cpu}-apple-darwin"
        if self.os == "linux":
            return f"{cpu}-pc-linux-gnu"
        if self.os == "windows":
            return f"{cpu}-pc-windows-msvc"
        return f"{cpu}-unknown-{self.os}"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def clear_platform_cache() -> None:
    """Clear the cached platform detection result (used by tests)."""
    detect_platform.cache_clear()


def _detect_os() -> str:
    """
    Detect operating system.

    Raises:
        RuntimeError: If OS is not supported
    """
    system = platform.system().lower()

    if system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    elif system == "windows":
        return "windows"
    elif system == "freebsd":
        return "freebsd"
    else:
        raise RuntimeError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    """Detect CPU architecture."""
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        return machine
