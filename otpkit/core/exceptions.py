"""
Centralized exception hierarchy for otpkit.

This module defines all custom exceptions used across the codebase
to provide clear exception semantics for every pipeline stage.
"""

from typing import List, Optional, Sequence


# ============================================================================
# Base Exceptions
# ============================================================================


class OTPKitError(Exception):
    """Base exception for all otpkit errors."""

    pass


# ============================================================================
# Fetch and Version Exceptions
# ============================================================================


class FetchError(OTPKitError):
    """Raised when the version manifest or a source archive cannot be retrieved."""

    pass


class VersionNotFoundError(OTPKitError):
    """Raised when the requested version is not present in the catalog."""

    def __init__(self, candidates: Sequence[str], specifier: str):
        self.candidates: List[str] = list(candidates)
        self.specifier = specifier
        quoted = ",".join(f'"{candidate}"' for candidate in self.candidates)
        super().__init__(f'Specified version "{specifier}" is not matched in {quoted}.')


# ============================================================================
# Filesystem Layout Exceptions
# ============================================================================


class ExtractError(OTPKitError):
    """Raised when an archive cannot be extracted."""

    pass


class StructureError(OTPKitError):
    """Raised when an expected directory layout is not found."""

    pass


# ============================================================================
# Build and Install Exceptions
# ============================================================================


class BuildError(OTPKitError):
    """Raised when a configure or compile step exits non-zero."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        output: str = "",
    ):
        self.command = list(command) if command else []
        self.returncode = returncode
        self.output = output
        super().__init__(message)


class InstallError(OTPKitError):
    """Raised when the bundled installer program fails."""

    pass


# ============================================================================
# Cache Exceptions
# ============================================================================


class CacheError(OTPKitError):
    """Base exception for artifact cache errors."""

    pass


class CacheLockTimeout(CacheError):
    """Raised when the cache registry lock cannot be acquired within timeout."""

    pass


# ============================================================================
# Release Publishing Exceptions
# ============================================================================


class PublishError(OTPKitError):
    """Raised when the release hosting API rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(OTPKitError):
    """Configuration parsing or validation error."""

    pass
