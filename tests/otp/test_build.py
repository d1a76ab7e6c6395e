"""
Unit tests for the native build steps.

The toolchain is never run; run_command is mocked and the issued commands
are checked. Homebrew lookup is also run against a fake brew script.
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from otpkit.core.exceptions import BuildError
from otpkit.core.platform import PlatformInfo
from otpkit.core.process import CommandResult
from otpkit.otp.build import BuildEngine, compile_otp, configure, resolve_ssl_flag

LINUX = PlatformInfo("linux", "x64")
MACOS = PlatformInfo("macos", "arm64")


def _ok(args, cwd=None, **kwargs):
    return CommandResult(args=[str(a) for a in args], returncode=0, output="")


def _commands(mock_run):
    return [c.args[0] for c in mock_run.call_args_list]


class TestResolveSslFlag:
    """Test platform-specific SSL flag."""

    @patch("otpkit.otp.build.run_command")
    def test_linux_generic_flag(self, mock_run):
        assert resolve_ssl_flag(LINUX) == "--with-ssl"
        mock_run.assert_not_called()

    @patch("otpkit.otp.build.run_command")
    def test_macos_uses_brew_prefix(self, mock_run):
        mock_run.return_value = CommandResult(
            ["brew", "--prefix", "openssl"], 0, "/opt/homebrew/opt/openssl@3\n"
        )

        assert resolve_ssl_flag(MACOS) == "--with-ssl=/opt/homebrew/opt/openssl@3"
        assert mock_run.call_args.args[0] == ["brew", "--prefix", "openssl"]

    @patch("otpkit.otp.build.run_command")
    def test_macos_brew_failure(self, mock_run):
        mock_run.return_value = CommandResult(
            ["brew", "--prefix", "openssl"], 1, "Error: No available formula"
        )

        with pytest.raises(BuildError, match="Could not locate OpenSSL"):
            resolve_ssl_flag(MACOS)

    @patch("otpkit.otp.build.run_command", side_effect=FileNotFoundError("brew"))
    def test_macos_brew_missing(self, mock_run):
        with pytest.raises(BuildError, match="Homebrew not available"):
            resolve_ssl_flag(MACOS)

    @pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell")
    def test_macos_ignores_brew_warnings(self, tmp_path, monkeypatch):
        brew = tmp_path / "brew"
        brew.write_text(
            "#!/bin/sh\n"
            "echo 'Warning: openssl@3 is keg-only' >&2\n"
            "echo /opt/homebrew/opt/openssl@3\n"
        )
        brew.chmod(0o755)
        monkeypatch.setenv("PATH", f"{tmp_path}{os.pathsep}{os.environ['PATH']}")

        assert resolve_ssl_flag(MACOS) == "--with-ssl=/opt/homebrew/opt/openssl@3"


class TestConfigure:
    """Test configure step."""

    @patch("otpkit.otp.build.run_command", side_effect=_ok)
    def test_commands_and_cwd(self, mock_run, tmp_path):
        configure(tmp_path, "--with-ssl")

        assert _commands(mock_run) == [
            ["./otp_build", "autoconf"],
            ["./configure", "--with-ssl", "--enable-dirty-schedulers"],
        ]
        for call in mock_run.call_args_list:
            assert call.kwargs["cwd"] == tmp_path

    @patch("otpkit.otp.build.run_command", side_effect=_ok)
    def test_extra_args(self, mock_run, tmp_path):
        configure(tmp_path, "--with-ssl", ["--without-javac"])

        assert _commands(mock_run)[1][-1] == "--without-javac"

    @patch("otpkit.otp.build.run_command")
    def test_autoconf_failure_stops(self, mock_run, tmp_path):
        mock_run.return_value = CommandResult(
            ["./otp_build", "autoconf"], 2, "autoconf: not found"
        )

        with pytest.raises(BuildError) as exc_info:
            configure(tmp_path, "--with-ssl")

        assert mock_run.call_count == 1
        assert exc_info.value.returncode == 2
        assert exc_info.value.command == ["./otp_build", "autoconf"]
        assert "autoconf: not found" in str(exc_info.value)

    @patch("otpkit.otp.build.run_command", side_effect=PermissionError("denied"))
    def test_unstartable_command(self, mock_run, tmp_path):
        with pytest.raises(BuildError, match="could not be started"):
            configure(tmp_path, "--with-ssl")


class TestCompile:
    """Test compile step."""

    @patch("otpkit.otp.build.run_command", side_effect=_ok)
    def test_uses_cpu_count(self, mock_run, tmp_path):
        with patch("otpkit.otp.build.os.cpu_count", return_value=6):
            release_layout = compile_otp(tmp_path)

        assert _commands(mock_run) == [["make", "-j6"], ["make", "release"]]
        assert release_layout == tmp_path / "release"

    @patch("otpkit.otp.build.run_command", side_effect=_ok)
    def test_explicit_jobs(self, mock_run, tmp_path):
        compile_otp(tmp_path, jobs=2)

        assert _commands(mock_run)[0] == ["make", "-j2"]

    @patch("otpkit.otp.build.run_command")
    def test_make_failure_skips_release(self, mock_run, tmp_path):
        mock_run.return_value = CommandResult(["make", "-j4"], 2, "error")

        with pytest.raises(BuildError, match="make failed with exit code 2"):
            compile_otp(tmp_path, jobs=4)

        assert mock_run.call_count == 1


class TestBuildEngine:
    """Test the full build sequence."""

    @patch("otpkit.otp.build.run_command", side_effect=_ok)
    def test_build_sequence(self, mock_run, tmp_path):
        engine = BuildEngine(jobs=3, platform_info=LINUX)

        release_layout = engine.build(tmp_path)

        assert release_layout == tmp_path / "release"
        assert _commands(mock_run) == [
            ["./otp_build", "autoconf"],
            ["./configure", "--with-ssl", "--enable-dirty-schedulers"],
            ["make", "-j3"],
            ["make", "release"],
        ]

    @pytest.mark.parametrize("fail", [True, False])
    def test_cwd_restored(self, tmp_path, fail):
        """The process working directory is unchanged on success and failure."""
        before = os.getcwd()
        result = CommandResult([], 1 if fail else 0, "")

        with patch("otpkit.otp.build.run_command", return_value=result):
            engine = BuildEngine(platform_info=LINUX)
            if fail:
                with pytest.raises(BuildError):
                    engine.build(tmp_path)
            else:
                engine.build(tmp_path)

        assert os.getcwd() == before

    @patch("otpkit.otp.build.run_command", side_effect=_ok)
    def test_build_output_grouped(self, mock_run, tmp_path, capsys):
        BuildEngine(jobs=1, platform_info=LINUX).build(Path(tmp_path))

        out = capsys.readouterr().out
        assert "::group::configure" in out
        assert "::group::make release" in out
        assert out.count("::endgroup::") == 4

    def test_default_configure_args_empty(self):
        assert BuildEngine().configure_args == []

