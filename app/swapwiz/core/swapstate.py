"""Live kernel swap state.

Queries active swap areas, disables a swap file before it is recreated or
removed, formats and enables a freshly allocated file, and classifies
whatever already occupies the target path.
"""

import logging
import re
import resource
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from swapwiz.core.errors import ActivationError, DeactivationError
from swapwiz.core.filesystem import FilesystemProfile
from swapwiz.utils.shell import run_command

logger = logging.getLogger(__name__)

PROC_SWAPS = Path("/proc/swaps")

# Swap signatures written by mkswap at PAGE_SIZE - 10.
_SWAP_MAGICS = (b"SWAPSPACE2", b"SWAP-SPACE")
_MAGIC_LENGTH = 10

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

ENABLE_HINT = "Check dmesg/journalctl for details."


class FileClassification(str, Enum):
    """What currently occupies the swap file path.

    Attributes:
        ABSENT: Nothing exists at the path.
        VALID_SWAP_FILE: A regular file carrying a swap signature.
        FOREIGN_FILE: Something else; it must be recreated.
    """

    ABSENT = "absent"
    VALID_SWAP_FILE = "valid_swap_file"
    FOREIGN_FILE = "foreign_file"


@dataclass(frozen=True, slots=True)
class SwapDevice:
    """An active swap area as listed in /proc/swaps.

    Attributes:
        name: Device or file path.
        swap_type: "file" or "partition".
        size_bytes: Total size in bytes.
        used_bytes: Used size in bytes.
        priority: Swap priority.
    """

    name: str
    swap_type: str
    size_bytes: int
    used_bytes: int
    priority: int


class SwapStateController:
    """Controls activation of swap files against the live kernel state.

    Attributes:
        proc_swaps: Kernel swap table to read active areas from.
    """

    _SWAPOFF_TIMEOUT: float = 600.0
    _MKSWAP_TIMEOUT: float = 300.0
    _SWAPON_TIMEOUT: float = 120.0
    _SYSCTL_TIMEOUT: float = 30.0

    def __init__(self, proc_swaps: Path = PROC_SWAPS) -> None:
        """Initialize the controller.

        Args:
            proc_swaps: Path of the kernel swap table.
        """
        self._proc_swaps = proc_swaps

    def list_devices(self) -> list[SwapDevice]:
        """Read the active swap areas.

        Returns:
            Active swap areas; empty if the swap table is unreadable.
        """
        try:
            lines = self._proc_swaps.read_text(encoding="utf-8").strip().splitlines()
        except OSError as e:
            logger.warning("Cannot read %s: %s", self._proc_swaps, e)
            return []

        devices: list[SwapDevice] = []
        # First line is the column header.
        for line in lines[1:]:
            parts = line.split()
            if len(parts) < 5:
                continue
            name, swap_type, size_kb, used_kb, priority = parts[:5]
            try:
                devices.append(
                    SwapDevice(
                        name=_unescape(name),
                        swap_type=swap_type,
                        size_bytes=int(size_kb) * 1024,
                        used_bytes=int(used_kb) * 1024,
                        priority=int(priority),
                    )
                )
            except ValueError:
                logger.debug("Skipping malformed swap line: %s", line)
        return devices

    def list_active(self) -> set[str]:
        """Return the names of all active swap areas."""
        return {device.name for device in self.list_devices()}

    def is_active(self, path: Path) -> bool:
        """Check if a path is currently in use as swap."""
        return str(path) in self.list_active()

    def deactivate(self, path: Path) -> bool:
        """Disable swap on a path if it is active.

        Deactivating a path that is not active swap is a no-op.

        Args:
            path: Swap file path.

        Returns:
            True if swap was disabled, False if it was not active.

        Raises:
            DeactivationError: If swapoff fails.
        """
        if not self.is_active(path):
            logger.debug("%s is not active swap; nothing to disable", path)
            return False

        logger.info("Disabling swap on %s", path)
        try:
            result = run_command(["swapoff", str(path)], timeout=self._SWAPOFF_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise DeactivationError(f"swapoff failed for {path}: {e}") from e
        if not result.success:
            raise DeactivationError(f"swapoff failed for {path}: {result.error_text}")
        return True

    def activate(self, path: Path, profile: FilesystemProfile) -> None:
        """Format a file as swap and enable it.

        Args:
            path: Swap file path.
            profile: Filesystem profile, used to pick a remediation hint.

        Raises:
            ActivationError: If mkswap or swapon fails. The file is left
                on disk for inspection.
        """
        logger.info("Formatting %s as swap", path)
        try:
            result = run_command(["mkswap", str(path)], timeout=self._MKSWAP_TIMEOUT)
            error = None if result.success else result.error_text
        except (OSError, subprocess.TimeoutExpired) as e:
            error = str(e)
        if error is not None:
            raise ActivationError(
                f"mkswap failed for {path}: {error}",
                stage="format",
                hint=profile.format_hint,
            )

        logger.info("Enabling swap on %s", path)
        try:
            result = run_command(["swapon", str(path)], timeout=self._SWAPON_TIMEOUT)
            error = None if result.success else result.error_text
        except (OSError, subprocess.TimeoutExpired) as e:
            error = str(e)
        if error is not None:
            raise ActivationError(
                f"swapon failed for {path}: {error}",
                stage="enable",
                hint=ENABLE_HINT,
            )

    def set_swappiness(self, value: int) -> bool:
        """Apply a swappiness value to the running kernel, best-effort.

        Returns:
            True if sysctl accepted the value.
        """
        return self._sysctl(["sysctl", f"vm.swappiness={value}"])

    def reload_tuning(self, sysctl_path: Path) -> bool:
        """Re-apply a kernel tuning file, best-effort.

        Returns:
            True if sysctl -p succeeded.
        """
        return self._sysctl(["sysctl", "-p", str(sysctl_path)])

    def _sysctl(self, args: list[str]) -> bool:
        try:
            result = run_command(args, timeout=self._SYSCTL_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("%s failed: %s", " ".join(args), e)
            return False
        if not result.success:
            logger.warning("%s failed: %s", " ".join(args), result.error_text)
        return result.success

    def classify_existing_file(self, path: Path) -> FileClassification:
        """Classify what occupies the swap file path.

        Args:
            path: Swap file path.

        Returns:
            ABSENT, VALID_SWAP_FILE, or FOREIGN_FILE.
        """
        if not path.exists() and not path.is_symlink():
            return FileClassification.ABSENT
        if not path.is_file():
            return FileClassification.FOREIGN_FILE
        if has_swap_signature(path):
            return FileClassification.VALID_SWAP_FILE
        return FileClassification.FOREIGN_FILE


def has_swap_signature(path: Path) -> bool:
    """Check a file for the swap signature mkswap writes.

    The kernel expects the magic string in the last 10 bytes of the
    first page.

    Args:
        path: File to inspect.

    Returns:
        True if the file carries a swap signature.
    """
    offset = resource.getpagesize() - _MAGIC_LENGTH
    try:
        with path.open("rb") as f:
            f.seek(offset)
            magic = f.read(_MAGIC_LENGTH)
    except OSError as e:
        logger.debug("Cannot read swap signature from %s: %s", path, e)
        return False
    return magic in _SWAP_MAGICS


def _unescape(name: str) -> str:
    """Decode octal escapes (e.g. \\040 for space) used in /proc/swaps."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), name)
