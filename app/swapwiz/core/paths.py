"""Well-known paths and defaults for swapwiz."""

import os
from pathlib import Path

APP_NAME = "swapwiz"

# System-wide configuration, overridable via SWAPWIZ_CONFIG
DEFAULT_CONFIG_PATH = Path("/etc") / APP_NAME / "config.toml"
CONFIG_ENV_VAR = "SWAPWIZ_CONFIG"

DEFAULT_FSTAB_PATH = Path("/etc/fstab")
DEFAULT_SYSCTL_PATH = Path("/etc/sysctl.conf")
DEFAULT_SWAP_FILE = Path("/swapfile")


def get_config_path() -> Path:
    """Get the configuration file path.

    Returns:
        Path from SWAPWIZ_CONFIG if set, else /etc/swapwiz/config.toml.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return DEFAULT_CONFIG_PATH
