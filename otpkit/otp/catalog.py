"""
Version catalog resolution.

The upstream ``otp_versions.table`` lists every published release, one per
line, in the form ``OTP-<version> : <applications> # <...>``. Only the
dotted-numeric version after the ``OTP-`` prefix is used.
"""

import logging
import re
from typing import List, Optional, Sequence

from otpkit.config.parser import VERSIONS_TABLE_URL
from otpkit.core.download import fetch_text
from otpkit.core.exceptions import VersionNotFoundError

logger = logging.getLogger(__name__)

_VERSION_LINE = re.compile(r"^OTP-([.\d]+)")


def fetch_catalog(
    url: str = VERSIONS_TABLE_URL, timeout: int = 30, max_retries: int = 1
) -> str:
    """
    Download the version manifest document.

    Raises:
        FetchError: If the manifest cannot be retrieved
    """
    logger.debug(f"Fetching version catalog from {url}")
    return fetch_text(url, timeout=timeout, max_retries=max_retries)


def parse_catalog(document: str) -> List[str]:
    """
    Extract release versions from a manifest document.

    Lines not starting with ``OTP-<digits and dots>`` are skipped. Order is
    preserved and duplicates are kept.

    Example:
        >>> parse_catalog("OTP-23.1 : erts-11.1\\njunk\\nOTP-23.0 : erts-11.0\\n")
        ['23.1', '23.0']
    """
    versions = []
    for line in document.splitlines():
        matched = _VERSION_LINE.match(line)
        if matched:
            versions.append(matched.group(1))
    return versions


def resolve(catalog: Sequence[str], specifier: str) -> str:
    """
    Confirm that ``specifier`` is a published version.

    Matching is exact string equality; no semantic-version ranges.

    Raises:
        VersionNotFoundError: If no catalog entry equals the specifier
    """
    found: Optional[str] = next((v for v in catalog if v == specifier), None)
    if found is None:
        raise VersionNotFoundError(catalog, specifier)
    return found


def resolve_version(
    specifier: str,
    url: str = VERSIONS_TABLE_URL,
    timeout: int = 30,
    max_retries: int = 1,
) -> str:
    """Fetch the catalog and resolve ``specifier`` against it."""
    document = fetch_catalog(url, timeout=timeout, max_retries=max_retries)
    catalog = parse_catalog(document)
    logger.debug(f"Catalog holds {len(catalog)} versions")
    version = resolve(catalog, specifier)
    logger.info(f"Resolved OTP version {version}")
    return version
