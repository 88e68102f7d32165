"""Unit tests for SwapStateController."""

import resource
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest
from swapwiz.core.errors import ActivationError, DeactivationError
from swapwiz.core.filesystem import FilesystemProfile
from swapwiz.core.swapstate import (
    ENABLE_HINT,
    FileClassification,
    SwapStateController,
    has_swap_signature,
)
from swapwiz.utils.shell import CommandResult

OK = CommandResult(stdout="", stderr="", returncode=0)


def _write_swap_signature(path: Path, magic: bytes = b"SWAPSPACE2") -> None:
    """Create a file carrying a swap signature at PAGE_SIZE - 10."""
    page = resource.getpagesize()
    header = bytearray(page)
    header[page - 10 :] = magic
    path.write_bytes(bytes(header) + bytes(page))


class TestListActive:
    """Tests for reading /proc/swaps."""

    def test_list_devices(self, tmp_path: Path, mock_proc_swaps: str) -> None:
        """Active areas are parsed with sizes converted to bytes."""
        proc = tmp_path / "swaps"
        proc.write_text(mock_proc_swaps)

        devices = SwapStateController(proc_swaps=proc).list_devices()

        assert [d.name for d in devices] == ["/dev/dm-1", "/swapfile"]
        swapfile = devices[1]
        assert swapfile.swap_type == "file"
        assert swapfile.size_bytes == 2097148 * 1024
        assert swapfile.used_bytes == 1024 * 1024
        assert swapfile.priority == -3

    def test_list_active(self, tmp_path: Path, mock_proc_swaps: str) -> None:
        """list_active returns the set of active names."""
        proc = tmp_path / "swaps"
        proc.write_text(mock_proc_swaps)

        assert SwapStateController(proc_swaps=proc).list_active() == {"/dev/dm-1", "/swapfile"}

    def test_escaped_names_are_decoded(self, tmp_path: Path, proc_swaps: Path) -> None:
        """Octal escapes in names (spaces) are decoded."""
        with proc_swaps.open("a") as f:
            f.write("/mnt/my\\040disk/swapfile file 1024 0 -2\n")

        controller = SwapStateController(proc_swaps=proc_swaps)

        assert controller.is_active(Path("/mnt/my disk/swapfile"))

    def test_malformed_lines_are_skipped(self, proc_swaps: Path) -> None:
        """Short or non-numeric lines are ignored."""
        with proc_swaps.open("a") as f:
            f.write("garbage\n/swapfile file big 0 -2\n/good file 1 0 -2\n")

        assert SwapStateController(proc_swaps=proc_swaps).list_active() == {"/good"}

    def test_missing_table_means_no_swap(self, tmp_path: Path) -> None:
        """An unreadable swap table yields no active swap."""
        controller = SwapStateController(proc_swaps=tmp_path / "missing")

        assert controller.list_active() == set()


class TestDeactivate:
    """Tests for deactivate."""

    @patch("swapwiz.core.swapstate.run_command")
    def test_inactive_path_is_noop(self, mock_run: MagicMock, proc_swaps: Path) -> None:
        """Deactivating a path that is not active swap succeeds without swapoff."""
        result = SwapStateController(proc_swaps=proc_swaps).deactivate(Path("/swapfile"))

        assert result is False
        mock_run.assert_not_called()

    @patch("swapwiz.core.swapstate.run_command")
    def test_active_path_is_disabled(
        self, mock_run: MagicMock, tmp_path: Path, mock_proc_swaps: str
    ) -> None:
        """An active path is disabled with swapoff."""
        proc = tmp_path / "swaps"
        proc.write_text(mock_proc_swaps)
        mock_run.return_value = OK

        result = SwapStateController(proc_swaps=proc).deactivate(Path("/swapfile"))

        assert result is True
        assert mock_run.call_args.args[0] == ["swapoff", "/swapfile"]

    @patch("swapwiz.core.swapstate.run_command")
    def test_swapoff_failure(
        self, mock_run: MagicMock, tmp_path: Path, mock_proc_swaps: str
    ) -> None:
        """A failing swapoff raises DeactivationError."""
        proc = tmp_path / "swaps"
        proc.write_text(mock_proc_swaps)
        mock_run.return_value = CommandResult(
            stdout="", stderr="swapoff: Cannot allocate memory", returncode=255
        )

        with pytest.raises(DeactivationError, match="Cannot allocate memory"):
            SwapStateController(proc_swaps=proc).deactivate(Path("/swapfile"))


class TestActivate:
    """Tests for activate."""

    @patch("swapwiz.core.swapstate.run_command")
    def test_formats_then_enables(self, mock_run: MagicMock, proc_swaps: Path) -> None:
        """activate runs mkswap and then swapon."""
        mock_run.return_value = OK

        SwapStateController(proc_swaps=proc_swaps).activate(
            Path("/swapfile"), FilesystemProfile.GENERIC
        )

        assert [c.args[0] for c in mock_run.call_args_list] == [
            ["mkswap", "/swapfile"],
            ["swapon", "/swapfile"],
        ]

    @pytest.mark.parametrize(
        ("profile", "fragment"),
        [
            (FilesystemProfile.ZVOL_PREFERRED, "ZVOL"),
            (FilesystemProfile.COPY_ON_WRITE, "NOCOW"),
        ],
    )
    @patch("swapwiz.core.swapstate.run_command")
    def test_format_failure_hint_follows_profile(
        self,
        mock_run: MagicMock,
        profile: FilesystemProfile,
        fragment: str,
        proc_swaps: Path,
    ) -> None:
        """A mkswap failure carries a profile-specific hint and skips swapon."""
        mock_run.return_value = CommandResult(stdout="", stderr="mkswap: error", returncode=1)

        with pytest.raises(ActivationError) as exc_info:
            SwapStateController(proc_swaps=proc_swaps).activate(Path("/swapfile"), profile)

        assert exc_info.value.stage == "format"
        assert fragment in exc_info.value.hint
        mock_run.assert_called_once()

    @patch("swapwiz.core.swapstate.run_command")
    def test_enable_failure(self, mock_run: MagicMock, proc_swaps: Path) -> None:
        """A swapon failure points at the kernel logs."""
        mock_run.side_effect = [
            OK,
            CommandResult(stdout="", stderr="swapon: Invalid argument", returncode=1),
        ]

        with pytest.raises(ActivationError, match="Invalid argument") as exc_info:
            SwapStateController(proc_swaps=proc_swaps).activate(
                Path("/swapfile"), FilesystemProfile.GENERIC
            )

        assert exc_info.value.stage == "enable"
        assert exc_info.value.hint == ENABLE_HINT

    @patch("swapwiz.core.swapstate.run_command", side_effect=FileNotFoundError("mkswap"))
    def test_missing_mkswap(self, mock_run: MagicMock, proc_swaps: Path) -> None:
        """A missing mkswap binary is a format failure."""
        with pytest.raises(ActivationError) as exc_info:
            SwapStateController(proc_swaps=proc_swaps).activate(
                Path("/swapfile"), FilesystemProfile.GENERIC
            )

        assert exc_info.value.stage == "format"


class TestClassifyExistingFile:
    """Tests for classify_existing_file."""

    def test_absent(self, tmp_path: Path, proc_swaps: Path) -> None:
        """No file at the path is ABSENT."""
        controller = SwapStateController(proc_swaps=proc_swaps)

        assert controller.classify_existing_file(tmp_path / "swapfile") is FileClassification.ABSENT

    def test_foreign_file(self, tmp_path: Path, proc_swaps: Path) -> None:
        """A regular file without a swap signature is FOREIGN_FILE."""
        path = tmp_path / "swapfile"
        path.write_text("hello world\n" * 1000)

        result = SwapStateController(proc_swaps=proc_swaps).classify_existing_file(path)

        assert result is FileClassification.FOREIGN_FILE

    def test_short_file_is_foreign(self, tmp_path: Path, proc_swaps: Path) -> None:
        """A file shorter than a page is FOREIGN_FILE."""
        path = tmp_path / "swapfile"
        path.write_bytes(b"SWAPSPACE2")

        result = SwapStateController(proc_swaps=proc_swaps).classify_existing_file(path)

        assert result is FileClassification.FOREIGN_FILE

    @pytest.mark.parametrize("magic", [b"SWAPSPACE2", b"SWAP-SPACE"])
    def test_valid_swap_file(self, magic: bytes, tmp_path: Path, proc_swaps: Path) -> None:
        """A file with a swap signature is VALID_SWAP_FILE."""
        path = tmp_path / "swapfile"
        _write_swap_signature(path, magic)

        result = SwapStateController(proc_swaps=proc_swaps).classify_existing_file(path)

        assert result is FileClassification.VALID_SWAP_FILE
        assert has_swap_signature(path)

    def test_directory_is_foreign(self, tmp_path: Path, proc_swaps: Path) -> None:
        """A directory at the path is FOREIGN_FILE."""
        result = SwapStateController(proc_swaps=proc_swaps).classify_existing_file(tmp_path)

        assert result is FileClassification.FOREIGN_FILE


class TestSysctl:
    """Tests for swappiness helpers."""

    @patch("swapwiz.core.swapstate.run_command")
    def test_set_swappiness(self, mock_run: MagicMock, proc_swaps: Path) -> None:
        """set_swappiness applies the value with sysctl."""
        mock_run.return_value = OK

        assert SwapStateController(proc_swaps=proc_swaps).set_swappiness(10) is True
        mock_run.assert_called_once()
        assert mock_run.call_args.args[0] == ["sysctl", "vm.swappiness=10"]

    @patch("swapwiz.core.swapstate.run_command")
    def test_set_swappiness_failure_is_soft(self, mock_run: MagicMock, proc_swaps: Path) -> None:
        """A failing sysctl returns False instead of raising."""
        mock_run.return_value = CommandResult(stdout="", stderr="permission denied", returncode=1)

        assert SwapStateController(proc_swaps=proc_swaps).set_swappiness(10) is False

    @patch(
        "swapwiz.core.swapstate.run_command",
        side_effect=subprocess.TimeoutExpired(["sysctl"], 30),
    )
    def test_reload_tuning_timeout(self, mock_run: MagicMock, proc_swaps: Path) -> None:
        """A hanging sysctl -p is reported as failure."""
        controller = SwapStateController(proc_swaps=proc_swaps)

        assert controller.reload_tuning(Path("/etc/sysctl.conf")) is False
        assert mock_run.call_args == call(["sysctl", "-p", "/etc/sysctl.conf"], timeout=30.0)
