"""Unit tests for shell execution utilities."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest
from swapwiz.utils.shell import CommandResult, command_exists, run_command, run_interactive


class TestCommandResult:
    """Tests for CommandResult dataclass."""

    def test_success(self) -> None:
        """Zero exit code means success."""
        assert CommandResult(stdout="", stderr="", returncode=0).success is True
        assert CommandResult(stdout="", stderr="", returncode=1).success is False

    @pytest.mark.parametrize(
        ("stdout", "stderr", "expected"),
        [
            ("out", " err \n", "err"),
            ("out\n", "", "out"),
            ("", "", "exit code 3"),
        ],
    )
    def test_error_text(self, stdout: str, stderr: str, expected: str) -> None:
        """error_text prefers stderr, then stdout, then the exit code."""
        result = CommandResult(stdout=stdout, stderr=stderr, returncode=3)
        assert result.error_text == expected


class TestRunCommand:
    """Tests for run_command function."""

    @patch("swapwiz.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        """Output and exit code are captured."""
        mock_run.return_value = MagicMock(stdout="ok\n", stderr="", returncode=0)

        result = run_command(["swapon", "/swapfile"], timeout=5)

        assert result == CommandResult(stdout="ok\n", stderr="", returncode=0)
        mock_run.assert_called_once_with(
            ["swapon", "/swapfile"],
            capture_output=True,
            text=True,
            check=False,
            timeout=5,
        )

    def test_never_raises_on_exit_status(self) -> None:
        """Exit codes are reported through CommandResult, not exceptions."""
        with pytest.raises(TypeError):
            run_command(["false"], check=True)  # type: ignore[call-arg]

    @patch("swapwiz.utils.shell.subprocess.run")
    def test_propagates_timeout(self, mock_run: MagicMock) -> None:
        """Timeouts surface to the caller."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="swapoff", timeout=1)

        with pytest.raises(subprocess.TimeoutExpired):
            run_command(["swapoff", "/swapfile"], timeout=1)


class TestCommandExists:
    """Tests for command_exists function."""

    @patch("swapwiz.utils.shell.shutil.which", return_value="/usr/sbin/mkswap")
    def test_found(self, _mock_which: MagicMock) -> None:
        """Commands on PATH exist."""
        assert command_exists("mkswap") is True

    @patch("swapwiz.utils.shell.shutil.which", return_value=None)
    def test_missing(self, _mock_which: MagicMock) -> None:
        """Commands not on PATH do not."""
        assert command_exists("filefrag") is False


class TestRunInteractive:
    """Tests for run_interactive function."""

    @patch("swapwiz.utils.shell.subprocess.run")
    def test_returns_exit_code(self, mock_run: MagicMock) -> None:
        """run_interactive returns the subprocess exit code."""
        mock_run.return_value = MagicMock(returncode=1)

        assert run_interactive(["free", "-h"]) == 1

    @patch("swapwiz.utils.shell.subprocess.run")
    def test_does_not_capture_output(self, mock_run: MagicMock) -> None:
        """run_interactive inherits the terminal."""
        mock_run.return_value = MagicMock(returncode=0)

        run_interactive(["free", "-h"])

        call_kwargs = mock_run.call_args
        assert "capture_output" not in call_kwargs.kwargs
        assert "stdout" not in call_kwargs.kwargs
        assert "stderr" not in call_kwargs.kwargs
