"""Data models for swapwiz.

This module exports the transient per-run models.
"""

from swapwiz.models.target import (
    MIB,
    AllocationMethod,
    AllocationOutcome,
    SizeSpec,
    SwapTarget,
    parse_swappiness,
    validate_swap_path,
)

__all__ = [
    "MIB",
    "AllocationMethod",
    "AllocationOutcome",
    "SizeSpec",
    "SwapTarget",
    "parse_swappiness",
    "validate_swap_path",
]
