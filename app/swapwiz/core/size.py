"""Human-readable size parsing.

Converts tokens such as "2G", "2048M" or "512kb" into byte counts using
binary (1024-based) multipliers and rounds them up to whole MiB, the block
size the allocation primitives work in.
"""

import re

from swapwiz.core.errors import InvalidSizeError, MinimumSizeError
from swapwiz.models.target import MIB, SizeSpec

_SIZE_PATTERN = re.compile(r"^([0-9]+)([KMGT]?)B?$")

_MULTIPLIERS: dict[str, int] = {
    "": 1,
    "K": 1024,
    "M": 1024**2,
    "G": 1024**3,
    "T": 1024**4,
}

SIZE_EXAMPLES = "1G, 2048M, 512M, 262144K, 1T"


def parse_size(token: str) -> SizeSpec:
    """Parse a size token into a SizeSpec.

    Args:
        token: Integer with an optional K/M/G/T suffix and optional
            trailing "B", case-insensitive.

    Returns:
        SizeSpec with the exact and MiB-rounded byte counts.

    Raises:
        InvalidSizeError: If the token is empty or malformed.
        MinimumSizeError: If the size is below 1 MiB.
    """
    normalized = token.strip().upper()
    match = _SIZE_PATTERN.match(normalized)
    if match is None:
        raise InvalidSizeError(f"Invalid size format '{token}'. Examples: {SIZE_EXAMPLES}")

    number, unit = match.groups()
    byte_count = int(number) * _MULTIPLIERS[unit]
    if byte_count < MIB:
        raise MinimumSizeError(f"Swap size must be at least 1MiB (got {byte_count} bytes).")

    return SizeSpec(
        raw=token.strip(),
        byte_count=byte_count,
        rounded_bytes=round_up_to_mib(byte_count),
    )


def round_up_to_mib(byte_count: int) -> int:
    """Round a byte count up to the next whole MiB (ceiling division)."""
    return -(-byte_count // MIB) * MIB


def format_mib(byte_count: int) -> str:
    """Format a byte count as whole MiB for display."""
    return f"{byte_count // MIB} MiB"
