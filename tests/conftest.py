"""
Pytest configuration and shared fixtures for otpkit tests.
"""

import os
import stat
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

from otpkit.core.filesystem import create_tar_gz


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def isolated_home(temp_dir: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = temp_dir / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))
    monkeypatch.delenv("RUNNER_TOOL_CACHE", raising=False)
    monkeypatch.delenv("RUNNER_TEMP", raising=False)
    monkeypatch.delenv("GITHUB_PATH", raising=False)

    return fake_home


@pytest.fixture
def write_tree() -> Callable[[Path, Dict[str, str]], Path]:
    """Return a helper that writes ``{relative path: content}`` under a root."""

    def _write(root: Path, files: Dict[str, str]) -> Path:
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _write


INSTALL_SCRIPT = """#!/bin/sh
# Record the arguments the installer was called with
echo "$@" > "$2/install-args.txt"
exit ${OTPKIT_TEST_INSTALL_EXIT:-0}
"""


@pytest.fixture
def release_artifact(temp_dir: Path) -> Path:
    """
    Build a fake packaged OTP release.

    The archive holds an ``Install`` script that records its arguments and a
    ``bin/erl`` placeholder, rooted at ``.`` like real artifacts.
    """
    release_dir = temp_dir / "release" / "x86_64-pc-linux-gnu"
    (release_dir / "bin").mkdir(parents=True)
    (release_dir / "bin" / "erl").write_text("#!/bin/sh\n")

    install_script = release_dir / "Install"
    install_script.write_text(INSTALL_SCRIPT)
    install_script.chmod(install_script.stat().st_mode | stat.S_IXUSR)

    return create_tar_gz(release_dir, temp_dir / "release.tar.gz")


@pytest.fixture
def preserve_cwd() -> Generator[Path, None, None]:
    """Yield the current working directory and restore it after the test."""
    original = Path.cwd()
    try:
        yield original
    finally:
        os.chdir(original)


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset any module-level caches between tests."""
    from otpkit.core import platform

    platform.clear_platform_cache()
    yield
