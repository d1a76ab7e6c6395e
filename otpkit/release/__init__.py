"""
Publishing of precompiled OTP builds as GitHub release assets.
"""

from otpkit.release.github import (
    ALREADY_EXISTS,
    CREATED,
    Asset,
    CreateReleaseResult,
    GitHubReleaseClient,
    Release,
)
from otpkit.release.publisher import (
    PublishResult,
    ReleasePublisher,
    asset_name,
    release_tag,
)

__all__ = [
    "ALREADY_EXISTS",
    "CREATED",
    "Asset",
    "CreateReleaseResult",
    "GitHubReleaseClient",
    "Release",
    "PublishResult",
    "ReleasePublisher",
    "asset_name",
    "release_tag",
]
