"""
Network download manager with retry logic.

This module provides downloading capabilities with:
- HTTP/HTTPS downloads with TLS verification
- Streaming to disk with progress logging
- Opt-in retry of transient failures with exponential backoff
- Timeout handling
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from otpkit.core.exceptions import FetchError

logger = logging.getLogger(__name__)


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    speed_bps: float  # bytes per second

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.bytes_downloaded / self.total_bytes * 100

    def __str__(self) -> str:
        mb_downloaded = self.bytes_downloaded / 1024 / 1024
        speed_mbps = self.speed_bps / 1024 / 1024
        if self.total_bytes > 0:
            mb_total = self.total_bytes / 1024 / 1024
            return (
                f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
                f"({self.percentage:.1f}%) at {speed_mbps:.1f} MB/s"
            )
        return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"


def _is_client_error(error: RequestException) -> bool:
    response = getattr(error, "response", None)
    return response is not None and 400 <= response.status_code < 500


def _with_retries(action: Callable[[], object], url: str, max_retries: int):
    """
    Run ``action``, retrying transient request failures with exponential backoff.

    With the default single attempt nothing is retried. Client errors (4xx)
    are never retried.
    """
    for attempt in range(max_retries):
        try:
            return action()
        except RequestException as e:
            if _is_client_error(e):
                raise FetchError(f"Download of {url} failed: {e}") from e
            if attempt == max_retries - 1:
                raise FetchError(
                    f"Download of {url} failed after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise FetchError(f"Download of {url} failed for unknown reason")


def download_file(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 30,
    max_retries: int = 1,
) -> Path:
    """
    Download file from URL to destination with retry logic.

    Args:
        url: URL to download from
        destination: Local path to save file
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts (1 means no retry)

    Returns:
        Path to downloaded file

    Raises:
        FetchError: If download fails after retries
        ValueError: If URL or destination is invalid

    Example:
        >>> download_file(
        ...     "https://github.com/erlang/otp/archive/OTP-23.1.tar.gz",
        ...     Path("/tmp/OTP-23.1.tar.gz"),
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    try:
        return _with_retries(
            lambda: _download_with_progress(
                url, destination, progress_callback, timeout
            ),
            url,
            max_retries,
        )
    except OSError as e:
        raise FetchError(f"Failed to write {destination}: {e}") from e


def _download_with_progress(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    """
    Perform download with streaming and progress updates.

    Raises:
        RequestException: If HTTP request fails
    """
    logger.info(f"Downloading from {url}")

    response = requests.get(url, stream=True, timeout=timeout, allow_redirects=True)
    response.raise_for_status()

    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=8192):
            if not chunk:
                continue
            f.write(chunk)
            downloaded += len(chunk)

            # Report progress (max once per 0.5 seconds)
            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                elapsed = current_time - start_time
                progress_callback(
                    DownloadProgress(
                        bytes_downloaded=downloaded,
                        total_bytes=total_size,
                        speed_bps=downloaded / elapsed if elapsed > 0 else 0,
                    )
                )
                last_progress_time = current_time

    logger.info(f"Download complete: {destination} ({downloaded} bytes)")
    return destination


def fetch_text(url: str, timeout: int = 30, max_retries: int = 1) -> str:
    """
    Fetch a small text document.

    Args:
        url: URL of the document
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts (1 means no retry)

    Returns:
        Response body decoded as text

    Raises:
        FetchError: If the document cannot be retrieved
    """
    if not url:
        raise ValueError("URL cannot be empty")

    def _get() -> str:
        logger.debug(f"Fetching {url}")
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response.text

    return _with_retries(_get, url, max_retries)
