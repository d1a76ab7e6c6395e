"""
Unit tests for subprocess execution.
"""

import sys
from pathlib import Path

import pytest

from otpkit.core.process import run_command

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell")


class TestRunCommand:
    """Test run_command."""

    def test_success_with_output(self):
        result = run_command(["sh", "-c", "echo hello; echo world >&2"], capture=True)

        assert result.ok
        assert result.returncode == 0
        assert result.output.splitlines() == ["hello", "world"]

    def test_stderr_kept_separate(self):
        result = run_command(
            ["sh", "-c", "echo hello; echo warning >&2"],
            capture=True,
            merge_stderr=False,
        )

        assert result.output == "hello"
        assert result.stderr == "warning\n"

    def test_failure_exit_code(self):
        result = run_command(["sh", "-c", "exit 3"])

        assert not result.ok
        assert result.returncode == 3

    def test_runs_in_given_directory(self, tmp_path):
        result = run_command(["pwd"], cwd=tmp_path, capture=True)

        assert Path(result.output.strip()).resolve() == tmp_path.resolve()

    def test_does_not_change_process_cwd(self, tmp_path):
        before = Path.cwd()

        run_command(["true"], cwd=tmp_path)

        assert Path.cwd() == before

    def test_tail_only_without_capture(self):
        result = run_command(["sh", "-c", "for i in $(seq 1 500); do echo $i; done"])

        lines = result.output.splitlines()
        assert len(lines) == 200
        assert lines[-1] == "500"

    def test_missing_executable(self):
        with pytest.raises(OSError):
            run_command(["definitely-not-a-real-command-otpkit"])

    def test_command_line(self):
        result = run_command(["echo", Path("a b")], capture=True)

        assert result.args == ["echo", "a b"]
        assert result.command_line == "echo a b"
