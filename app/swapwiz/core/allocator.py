"""Swap file allocation.

Creates the backing file for a swap area without sparse holes, choosing
between fast extent preallocation (fallocate) and a sequential zero fill
according to the filesystem's capability profile.
"""

import logging
import os
import re
import subprocess
from collections.abc import Callable
from pathlib import Path

from swapwiz.core.errors import AllocationError, HoleVerificationError
from swapwiz.core.filesystem import FilesystemProfile
from swapwiz.models.target import MIB, AllocationMethod, AllocationOutcome
from swapwiz.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# Called with (bytes_written, total_bytes) after every block.
ProgressCallback = Callable[[int, int], None]

SWAP_FILE_MODE = 0o600

_ZERO_BLOCK = bytes(MIB)

# filefrag -v header: "File size of <path> is <bytes> (<n> blocks of <size> bytes)"
_FILE_SIZE_LINE = re.compile(r"^File size of .* is \d+ \((\d+) blocks? of \d+ bytes\)\s*$")
# filefrag -v extent row: "<ext>: <lstart>.. <lend>: <pstart>.. <pend>: <len>: [<exp>:] <flags>"
_EXTENT_ROW = re.compile(
    r"^\s*\d+:\s*(\d+)\.\.\s*(\d+):\s*\d+\.\.\s*\d+:\s*\d+:\s*(?:\d+:)?\s*(\S*)\s*$"
)


class SwapFileAllocator:
    """Produces hole-free swap files.

    On copy-on-write filesystems the containing directory is marked NOCOW
    before the file is created and the file is always zero-filled, since
    fallocate there can still yield holes or shared extents. Elsewhere
    fallocate is preferred, with a zero fill as fallback.

    Attributes:
        progress: Optional callback reporting zero-fill progress.
    """

    _FALLOCATE_TIMEOUT: float = 120.0
    _ATTR_TIMEOUT: float = 15.0

    def __init__(self, progress: ProgressCallback | None = None) -> None:
        """Initialize the allocator.

        Args:
            progress: Optional callback invoked after each 1 MiB block.
        """
        self._progress = progress

    def allocate(
        self,
        path: Path,
        size_bytes: int,
        profile: FilesystemProfile,
    ) -> AllocationOutcome:
        """Create the swap file, replacing any file already at path.

        Args:
            path: Swap file path.
            size_bytes: Size in bytes; must be a whole number of MiB.
            profile: Capability profile of the containing filesystem.

        Returns:
            AllocationOutcome describing how the file was produced.

        Raises:
            AllocationError: If the file cannot be created.
            HoleVerificationError: If the file has holes on a CoW filesystem.
        """
        if size_bytes < MIB or size_bytes % MIB != 0:
            msg = f"Swap size must be a positive multiple of 1 MiB: {size_bytes}"
            raise AllocationError(msg)

        self._remove_existing(path)

        warnings: list[str] = []
        if profile.is_copy_on_write:
            warning = self.mark_nocow(path.parent)
            if warning:
                warnings.append(warning)

        method = AllocationMethod.ZERO_FILL
        if profile.allows_fast_allocate and self.fast_allocate(path, size_bytes):
            method = AllocationMethod.FAST_ALLOCATE

        if method is AllocationMethod.ZERO_FILL:
            self.zero_fill(path, size_bytes)

        verified = False
        if profile.is_copy_on_write:
            verified = self.verify_no_holes(path)
            if not verified:
                warnings.append(
                    "Could not verify that the swap file has no holes "
                    "(filefrag unavailable or failed)."
                )

        try:
            self.secure_permissions(path)
        except AllocationError:
            path.unlink(missing_ok=True)
            raise
        logger.info("Allocated %s (%d bytes) using %s", path, size_bytes, method.value)
        return AllocationOutcome(
            method=method,
            verified_hole_free=verified,
            warnings=tuple(warnings),
        )

    def mark_nocow(self, directory: Path) -> str | None:
        """Set the NOCOW attribute on a directory, best-effort.

        New files created in the directory inherit the attribute; it cannot
        be applied to an existing non-empty file.

        Args:
            directory: Directory that will contain the swap file.

        Returns:
            A warning message if the attribute could not be verified, else None.
        """
        if command_exists("chattr"):
            try:
                result = run_command(["chattr", "+C", str(directory)], timeout=self._ATTR_TIMEOUT)
                if not result.success:
                    logger.warning("chattr +C failed on %s: %s", directory, result.error_text)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning("chattr +C failed on %s: %s", directory, e)
        else:
            logger.warning("chattr not found; cannot set NOCOW on %s", directory)

        if not command_exists("lsattr"):
            return None

        try:
            result = run_command(["lsattr", "-d", str(directory)], timeout=self._ATTR_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("lsattr failed on %s: %s", directory, e)
            result = None

        if result is not None and result.success and _has_nocow_flag(result.stdout):
            logger.debug("NOCOW verified on %s", directory)
            return None

        return (
            f"Could not verify +C on {directory}. "
            "A non-sparse file will still be created with a zero fill."
        )

    def fast_allocate(self, path: Path, size_bytes: int) -> bool:
        """Preallocate the file with fallocate.

        Args:
            path: Swap file path.
            size_bytes: Size in bytes.

        Returns:
            True on success; False if fallocate is missing or failed, in
            which case any partial file has been removed.
        """
        if not command_exists("fallocate"):
            logger.info("fallocate not available; using zero fill")
            return False

        try:
            result = run_command(
                ["fallocate", "-l", str(size_bytes), str(path)],
                timeout=self._FALLOCATE_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("fallocate failed for %s: %s; falling back to zero fill", path, e)
            path.unlink(missing_ok=True)
            return False

        if not result.success:
            logger.warning(
                "fallocate failed for %s: %s; falling back to zero fill", path, result.error_text
            )
            path.unlink(missing_ok=True)
            return False
        return True

    def zero_fill(self, path: Path, size_bytes: int) -> None:
        """Write size_bytes of zeros in 1 MiB blocks and flush to storage.

        Args:
            path: Swap file path.
            size_bytes: Size in bytes; a whole number of MiB.

        Raises:
            AllocationError: If writing fails. The partial file is removed.
        """
        total_blocks = size_bytes // MIB
        written = 0
        try:
            with path.open("wb") as f:
                for _ in range(total_blocks):
                    f.write(_ZERO_BLOCK)
                    written += MIB
                    if self._progress is not None:
                        self._progress(written, size_bytes)
                f.flush()
                os.fsync(f.fileno())
            os.sync()
        except OSError as e:
            path.unlink(missing_ok=True)
            raise AllocationError(f"Failed to write swap file {path}: {e}") from e

    def verify_no_holes(self, path: Path) -> bool:
        """Check the file's extent map for holes.

        Args:
            path: Swap file path.

        Returns:
            True if filefrag ran and found no holes, False if the check
            could not be performed.

        Raises:
            HoleVerificationError: If holes were found. The file is removed.
        """
        if not command_exists("filefrag"):
            return False

        try:
            result = run_command(["filefrag", "-v", str(path)], timeout=self._ATTR_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("filefrag failed for %s: %s", path, e)
            return False

        if not result.success:
            logger.warning("filefrag failed for %s: %s", path, result.error_text)
            return False

        if _has_holes(result.stdout):
            path.unlink(missing_ok=True)
            msg = f"Swap file {path} contains holes, which are not allowed on btrfs."
            raise HoleVerificationError(msg)
        return True

    def secure_permissions(self, path: Path) -> None:
        """Restrict the swap file to owner read/write (0600).

        Raises:
            AllocationError: If the mode cannot be changed.
        """
        try:
            path.chmod(SWAP_FILE_MODE)
        except OSError as e:
            raise AllocationError(f"Cannot set permissions on {path}: {e}") from e

    def _remove_existing(self, path: Path) -> None:
        """Remove a file left at the target path before recreating it."""
        if path.is_dir():
            raise AllocationError(f"Swap file path is a directory: {path}")
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise AllocationError(f"Cannot remove existing file {path}: {e}") from e


def _has_nocow_flag(lsattr_output: str) -> bool:
    """Check lsattr -d output for the C (NOCOW) attribute."""
    for line in lsattr_output.splitlines():
        fields = line.split(maxsplit=1)
        if fields and "C" in fields[0]:
            return True
    return False


def _has_holes(filefrag_output: str) -> bool:
    """Check filefrag -v extent rows for gaps or hole flags.

    Only the extent table is inspected; the header and summary lines echo
    the file path and are ignored.
    """
    total_blocks: int | None = None
    next_block = 0
    for line in filefrag_output.splitlines():
        size_match = _FILE_SIZE_LINE.match(line)
        if size_match:
            total_blocks = int(size_match.group(1))
            continue
        row = _EXTENT_ROW.match(line)
        if row is None:
            continue
        start, end, flags = int(row.group(1)), int(row.group(2)), row.group(3)
        if start != next_block or "hole" in flags.split(","):
            return True
        next_block = end + 1
    return total_blocks is not None and next_block < total_blocks
