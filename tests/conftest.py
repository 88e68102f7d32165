"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest

PROC_SWAPS_HEADER = "Filename\t\t\t\tType\t\tSize\t\tUsed\t\tPriority\n"


@pytest.fixture
def mock_df_output() -> str:
    """Sample df -PT output for an ext4 root filesystem."""
    return (
        "Filesystem     Type 1024-blocks     Used Available Capacity Mounted on\n"
        "/dev/nvme0n1p2 ext4   490617784 81234560 384363892      18% /\n"
    )


@pytest.fixture
def mock_proc_swaps() -> str:
    """Sample /proc/swaps content with a partition and a file."""
    return (
        PROC_SWAPS_HEADER
        + "/dev/dm-1                               partition\t8388604\t\t0\t\t-2\n"
        + "/swapfile                               file\t\t2097148\t\t1024\t\t-3\n"
    )


@pytest.fixture
def proc_swaps(tmp_path: Path) -> Path:
    """Empty kernel swap table (header only)."""
    path = tmp_path / "proc_swaps"
    path.write_text(PROC_SWAPS_HEADER)
    return path


@pytest.fixture
def missing_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point SWAPWIZ_CONFIG at a file that does not exist."""
    path = tmp_path / "config.toml"
    monkeypatch.setenv("SWAPWIZ_CONFIG", str(path))
    return path
