"""Filesystem capability detection.

Determines the filesystem type backing the directory that will hold the
swap file and maps it to a capability profile consumed by the allocator
and by activation-failure remediation hints.
"""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from swapwiz.core.errors import FilesystemInspectionError
from swapwiz.utils.shell import run_command

logger = logging.getLogger(__name__)


class FilesystemProfile(str, Enum):
    """Capability profile of the filesystem holding the swap file.

    Attributes:
        GENERIC: Regular filesystem; fast preallocation is safe.
        COPY_ON_WRITE: Copy-on-write filesystem (btrfs); needs NOCOW and no holes.
        ZVOL_PREFERRED: Pooled storage (ZFS); a dedicated volume is recommended.
        UNKNOWN: Type could not be determined; treated as GENERIC.
    """

    GENERIC = "generic"
    COPY_ON_WRITE = "copy-on-write"
    ZVOL_PREFERRED = "zvol-preferred"
    UNKNOWN = "unknown"

    @property
    def is_copy_on_write(self) -> bool:
        """Check if the file must be created NOCOW and hole-free."""
        return self is FilesystemProfile.COPY_ON_WRITE

    @property
    def allows_fast_allocate(self) -> bool:
        """Check if fallocate may be used to create the file."""
        return not self.is_copy_on_write

    @property
    def advisory(self) -> str | None:
        """Operator-facing note shown in the summary, if any."""
        if self is FilesystemProfile.ZVOL_PREFERRED:
            return "ZFS detected. A ZVOL is recommended for swap instead of a file."
        if self is FilesystemProfile.COPY_ON_WRITE:
            return "btrfs detected. Will set NOCOW (+C) on the directory BEFORE creating the file."
        return None

    @property
    def format_hint(self) -> str:
        """Remediation hint for a failed swap format step."""
        if self is FilesystemProfile.ZVOL_PREFERRED:
            return "On ZFS, consider creating a dedicated ZVOL for swap instead of a file."
        if self is FilesystemProfile.COPY_ON_WRITE:
            return "On btrfs, ensure the directory has NOCOW (+C) set and the file has no holes."
        return "If on ZFS, consider creating a ZVOL; if on btrfs, ensure NOCOW and no holes."


# Filesystem type strings mapped to specialized profiles; anything else is GENERIC.
_PROFILE_BY_TYPE: dict[str, FilesystemProfile] = {
    "btrfs": FilesystemProfile.COPY_ON_WRITE,
    "zfs": FilesystemProfile.ZVOL_PREFERRED,
}


def profile_for_type(fs_type: str | None) -> FilesystemProfile:
    """Map a filesystem type string to its capability profile.

    Args:
        fs_type: Type string as reported by df (e.g. "ext4", "btrfs").

    Returns:
        The matching profile; UNKNOWN for an empty or missing type.
    """
    if not fs_type:
        return FilesystemProfile.UNKNOWN
    return _PROFILE_BY_TYPE.get(fs_type.strip().lower(), FilesystemProfile.GENERIC)


@dataclass(frozen=True, slots=True)
class FilesystemInfo:
    """Inspection result for a swap file directory.

    Attributes:
        directory: Inspected directory.
        profile: Capability profile derived from the type.
        fs_type: Raw filesystem type string, None if unknown.
    """

    directory: Path
    profile: FilesystemProfile
    fs_type: str | None = None


class FilesystemInspector:
    """Inspects the filesystem that will hold a swap file.

    Inspection never blocks provisioning: any failure degrades to the
    UNKNOWN profile, which downstream code treats like GENERIC.
    """

    _DF_TIMEOUT: float = 15.0

    def query_type(self, directory: Path) -> str:
        """Query the filesystem type of the mount backing a directory.

        Args:
            directory: Existing directory to query.

        Returns:
            Filesystem type string.

        Raises:
            FilesystemInspectionError: If df fails or reports nothing usable.
        """
        try:
            result = run_command(["df", "-PT", str(directory)], timeout=self._DF_TIMEOUT)
        except (FileNotFoundError, OSError, subprocess.TimeoutExpired) as e:
            raise FilesystemInspectionError(f"Cannot run df for {directory}: {e}") from e

        if not result.success:
            raise FilesystemInspectionError(f"df failed for {directory}: {result.error_text}")

        lines = result.stdout.strip().splitlines()
        if len(lines) < 2:
            raise FilesystemInspectionError(f"Unexpected df output for {directory}")
        fields = lines[1].split()
        if len(fields) < 2 or not fields[1]:
            raise FilesystemInspectionError(f"Unexpected df output for {directory}")
        return fields[1]

    def describe(self, directory: Path) -> FilesystemInfo:
        """Inspect a directory, keeping the raw type string for display.

        The directory is created when missing.

        Args:
            directory: Directory that will hold the swap file.

        Returns:
            FilesystemInfo; profile is UNKNOWN if inspection failed.
        """
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fs_type = self.query_type(directory)
        except (FilesystemInspectionError, OSError) as e:
            logger.warning("Filesystem inspection failed for %s: %s", directory, e)
            return FilesystemInfo(directory=directory, profile=FilesystemProfile.UNKNOWN)

        profile = profile_for_type(fs_type)
        logger.debug("Filesystem for %s is %s (%s)", directory, fs_type, profile.value)
        return FilesystemInfo(directory=directory, profile=profile, fs_type=fs_type)

    def inspect(self, directory: Path) -> FilesystemProfile:
        """Determine the capability profile of a directory's filesystem.

        Args:
            directory: Directory that will hold the swap file.

        Returns:
            The capability profile.
        """
        return self.describe(directory).profile

