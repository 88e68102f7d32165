"""Swap target models.

This module defines the in-memory data structures built during a single
wizard run: the parsed size, the validated swap target, and the outcome of
allocating its backing file.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from swapwiz.core.errors import InvalidPathError, InvalidSwappinessError
from swapwiz.core.filesystem import FilesystemProfile

MIB = 1024 * 1024

SWAPPINESS_MIN = 0
SWAPPINESS_MAX = 100


@dataclass(frozen=True, slots=True)
class SizeSpec:
    """A parsed human-readable size.

    Attributes:
        raw: The token as entered by the operator (e.g. "2G").
        byte_count: Exact byte count the token denotes.
        rounded_bytes: byte_count rounded up to the next whole MiB.
    """

    raw: str
    byte_count: int
    rounded_bytes: int

    def __post_init__(self) -> None:
        """Validate the rounding invariant."""
        if self.rounded_bytes < MIB or self.rounded_bytes % MIB != 0:
            msg = f"Rounded size must be a positive multiple of 1 MiB: {self.rounded_bytes}"
            raise ValueError(msg)
        if self.rounded_bytes < self.byte_count:
            msg = "Rounded size cannot be smaller than the exact size"
            raise ValueError(msg)

    @property
    def mib(self) -> int:
        """Size in whole MiB blocks."""
        return self.rounded_bytes // MIB


@dataclass(frozen=True, slots=True)
class SwapTarget:
    """Validated description of the swap file to provision.

    Attributes:
        path: Absolute path of the swap file.
        size: Parsed and rounded size.
        swappiness: Kernel swappiness value (0-100).
        profile: Capability profile of the filesystem holding the file.
        fs_type: Raw filesystem type string, if it could be determined.
    """

    path: Path
    size: SizeSpec
    swappiness: int
    profile: FilesystemProfile = FilesystemProfile.UNKNOWN
    fs_type: str | None = None

    def __post_init__(self) -> None:
        """Validate path and swappiness after initialization."""
        validate_swap_path(self.path)
        validate_swappiness(self.swappiness)

    @property
    def fstab_line(self) -> str:
        """Mount-table entry that activates this file at boot."""
        return f"{self.path} none swap sw 0 0"

    @property
    def sysctl_line(self) -> str:
        """Kernel tuning entry that restores the swappiness at boot."""
        return f"vm.swappiness={self.swappiness}"


class AllocationMethod(Enum):
    """Primitive used to allocate the backing file.

    Attributes:
        FAST_ALLOCATE: Extent preallocation through fallocate.
        ZERO_FILL: Sequential write of zero bytes in 1 MiB blocks.
    """

    FAST_ALLOCATE = "fallocate"
    ZERO_FILL = "zero-fill"


@dataclass(frozen=True, slots=True)
class AllocationOutcome:
    """Result of allocating a swap file.

    Attributes:
        method: Allocation primitive that produced the file.
        verified_hole_free: True if the file was checked and has no holes.
        warnings: Non-fatal problems the operator should know about.
    """

    method: AllocationMethod
    verified_hole_free: bool = False
    warnings: tuple[str, ...] = ()


def parse_swappiness(value: str | int) -> int:
    """Parse and validate a swappiness value.

    Args:
        value: Operator input (digits only) or an int.

    Returns:
        The swappiness as int.

    Raises:
        InvalidSwappinessError: If the value is not an integer in 0-100.
    """
    if isinstance(value, int):
        return validate_swappiness(value)
    text = value.strip()
    if not (text.isascii() and text.isdigit()):
        raise InvalidSwappinessError(f"Invalid swappiness value '{value}'. Must be 0-100.")
    return validate_swappiness(int(text))


def validate_swappiness(value: int) -> int:
    """Ensure a swappiness value lies in the kernel's accepted range."""
    if isinstance(value, bool) or not SWAPPINESS_MIN <= value <= SWAPPINESS_MAX:
        raise InvalidSwappinessError(f"Invalid swappiness value '{value}'. Must be 0-100.")
    return value


def validate_swap_path(path: Path) -> Path:
    """Ensure a path can name a swap file in the mount table.

    fstab fields are whitespace-separated, so paths containing whitespace
    are rejected rather than written as a broken entry.

    Raises:
        InvalidPathError: If the path is relative, names no file, or
            contains whitespace.
    """
    if not path.is_absolute():
        raise InvalidPathError(f"Swap file path must be absolute: '{path}'")
    if path.name == "":
        raise InvalidPathError(f"Swap file path must name a file: '{path}'")
    if any(char.isspace() for char in str(path)):
        raise InvalidPathError(f"Swap file path must not contain whitespace: '{path}'")
    return path
