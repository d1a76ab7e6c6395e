"""
Publish command implementation.

Builds an OTP release and uploads it as a GitHub release asset unless the
asset already exists.
"""

import logging
import os
from functools import partial

from otpkit.ci.actions import get_input
from otpkit.config.parser import load_config
from otpkit.core.exceptions import ConfigError
from otpkit.otp.build import BuildEngine
from otpkit.otp.catalog import resolve_version
from otpkit.otp.source import fetch_source
from otpkit.release.github import GitHubReleaseClient
from otpkit.release.publisher import ReleasePublisher

logger = logging.getLogger(__name__)


def _target_repository(args, config):
    repository = args.repository or os.environ.get("GITHUB_REPOSITORY", "")
    if repository:
        owner, _, repo = repository.partition("/")
        if not owner or not repo:
            raise ConfigError(f"Repository must be OWNER/REPO, got '{repository}'")
        return owner, repo

    if config.github.owner and config.github.repo:
        return config.github.owner, config.github.repo

    raise ConfigError(
        "No target repository: pass --repository, set $GITHUB_REPOSITORY "
        "or configure github.owner and github.repo"
    )


def run(args) -> int:
    """
    Run the publish command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    logger.debug(f"Arguments: {args}")

    config = load_config(args.config)
    specifier = args.otp_version or get_input("otp-version", required=True)
    token = (
        args.token or get_input("github-token") or os.environ.get("GITHUB_TOKEN", "")
    )
    if not token:
        raise ConfigError("A GitHub token is required to publish releases")
    owner, repo = _target_repository(args, config)

    download = config.download
    version = resolve_version(
        specifier,
        url=config.versions_url,
        timeout=download.timeout,
        max_retries=download.max_retries,
    )

    client = GitHubReleaseClient(owner, repo, token, api_url=config.github.api_url)
    publisher = ReleasePublisher(
        client,
        BuildEngine(
            jobs=config.build.job_count(),
            configure_args=config.build.configure_args,
        ),
        partial(
            fetch_source,
            template=config.source_url_template,
            timeout=download.timeout,
            max_retries=download.max_retries,
        ),
    )
    result = publisher.publish(version)

    if result.built:
        print(f"Published {result.asset.name} to {owner}/{repo} {result.release.tag_name}")
    else:
        print(f"{result.asset.name} is already published in {result.release.tag_name}")
    return 0
