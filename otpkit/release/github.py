"""
GitHub Releases API client.

Covers the release and asset operations the publisher needs. Creating a
release whose tag already exists is an expected outcome, reported through
CreateReleaseResult rather than an exception.

Reference: https://docs.github.com/rest/releases
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import RequestException

from otpkit.config.parser import GITHUB_API_URL
from otpkit.core.exceptions import PublishError

logger = logging.getLogger(__name__)

PAGE_SIZE = 100

CREATED = "created"
ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class Release:
    """A GitHub release."""

    id: int
    tag_name: str
    upload_url: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Release":
        return cls(id=data["id"], tag_name=data["tag_name"], upload_url=data["upload_url"])


@dataclass(frozen=True)
class Asset:
    """A file attached to a GitHub release."""

    id: int
    name: str
    size: int
    state: str = "uploaded"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Asset":
        return cls(
            id=data["id"],
            name=data["name"],
            size=data.get("size", 0),
            state=data.get("state", "uploaded"),
        )


@dataclass(frozen=True)
class CreateReleaseResult:
    """Outcome of a create-release call."""

    release: Release
    outcome: str

    @property
    def created(self) -> bool:
        return self.outcome == CREATED


class GitHubReleaseClient:
    """
    Minimal GitHub Releases client for one repository.

    Example:
        >>> client = GitHubReleaseClient("my-org", "otp-builds", token)
        >>> release = client.get_release_by_tag("OTP-23.1")
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        if not owner or not repo:
            raise ValueError("Both owner and repo are required")

        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        # Per-request headers; the session itself is not modified
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    @property
    def repo_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        kwargs["headers"] = {**self.headers, **kwargs.get("headers", {})}
        try:
            return self.session.request(method, url, **kwargs)
        except RequestException as e:
            raise PublishError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: requests.Response, action: str) -> None:
        if response.ok:
            return
        try:
            detail = response.json().get("message", response.text)
        except ValueError:
            detail = response.text
        raise PublishError(
            f"Failed to {action}: HTTP {response.status_code} {detail}",
            status_code=response.status_code,
        )

    def _paginate(self, url: str, action: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = self._request(
                "GET", url, params={"per_page": PAGE_SIZE, "page": page}
            )
            self._raise_for_status(response, action)
            batch = response.json()
            items.extend(batch)
            if len(batch) < PAGE_SIZE:
                return items
            page += 1

    def get_release_by_tag(self, tag: str) -> Optional[Release]:
        """Get the release for ``tag``, or None if there is none."""
        response = self._request("GET", f"{self.repo_url}/releases/tags/{tag}")
        if response.status_code == 404:
            logger.debug(f"No release tagged {tag}")
            return None
        self._raise_for_status(response, f"get release {tag}")
        return Release.from_json(response.json())

    def list_releases(self) -> List[Release]:
        """List all releases of the repository."""
        data = self._paginate(f"{self.repo_url}/releases", "list releases")
        return [Release.from_json(item) for item in data]

    def create_release(self, tag: str) -> CreateReleaseResult:
        """
        Create a release for ``tag``.

        If the release already exists (for example because a concurrent job
        created it first), the existing release is looked up by tag and
        returned with outcome ALREADY_EXISTS.
        """
        response = self._request(
            "POST", f"{self.repo_url}/releases", json={"tag_name": tag}
        )
        if response.status_code == 422 and self._is_already_exists(response):
            logger.info(f"Release {tag} already exists, looking it up")
            for release in self.list_releases():
                if release.tag_name == tag:
                    return CreateReleaseResult(release, ALREADY_EXISTS)
            raise PublishError(
                f"Release {tag} reported as existing but was not found",
                status_code=response.status_code,
            )

        self._raise_for_status(response, f"create release {tag}")
        release = Release.from_json(response.json())
        logger.info(f"The new Release({tag}) is created. id: {release.id}.")
        return CreateReleaseResult(release, CREATED)

    @staticmethod
    def _is_already_exists(response: requests.Response) -> bool:
        try:
            errors = response.json().get("errors", [])
        except ValueError:
            return False
        return any(
            isinstance(error, dict) and error.get("code") == "already_exists"
            for error in errors
        )

    def list_assets(self, release_id: int) -> List[Asset]:
        """List the assets attached to a release."""
        data = self._paginate(
            f"{self.repo_url}/releases/{release_id}/assets",
            f"list assets of release {release_id}",
        )
        return [Asset.from_json(item) for item in data]

    def get_asset(self, release_id: int, name: str) -> Optional[Asset]:
        """Find the asset called ``name`` on a release."""
        return next((a for a in self.list_assets(release_id) if a.name == name), None)

    def upload_asset(self, release: Release, name: str, path: Path) -> Asset:
        """
        Upload ``path`` as asset ``name``.

        Returns:
            The asset as reported by GitHub
        """
        path = Path(path)
        # upload_url is a URI template such as ".../assets{?name,label}"
        url = re.sub(r"\{[^}]*\}$", "", release.upload_url)
        size = path.stat().st_size

        logger.info(f"Uploading {path} ({size} bytes) as {name}")
        with open(path, "rb") as data:
            response = self._request(
                "POST",
                url,
                params={"name": name},
                data=data,
                headers={
                    "Content-Type": "application/octet-stream",
                    "Content-Length": str(size),
                },
                timeout=None,
            )
        self._raise_for_status(response, f"upload asset {name}")
        return Asset.from_json(response.json())
