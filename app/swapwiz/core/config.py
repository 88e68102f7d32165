"""Wizard configuration.

Optional system-wide settings that change the defaults offered by the
prompts and the locations of the persistent stores. Stored as TOML in
/etc/swapwiz/config.toml (or the file named by SWAPWIZ_CONFIG).

Example:
    default_size = "4G"
    default_path = "/var/swap/swapfile"
    default_swappiness = 20

    [colors]
    success = "#00ff00"
"""

import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from swapwiz.core.errors import InputValidationError, SwapWizardError
from swapwiz.core.paths import (
    DEFAULT_FSTAB_PATH,
    DEFAULT_SWAP_FILE,
    DEFAULT_SYSCTL_PATH,
    get_config_path,
)
from swapwiz.core.size import parse_size
from swapwiz.models.target import validate_swap_path


class WizardConfig(BaseModel):
    """Configuration for the swap wizard.

    Attributes:
        default_size: Size token offered at the size prompt.
        default_path: Swap file path offered at the path prompts.
        default_swappiness: Swappiness offered at the swappiness prompt.
        fstab_path: Mount-table file to persist the swap entry in.
        sysctl_path: Kernel tuning file to persist swappiness in.
        colors: Console color overrides (see ThemeColors).
    """

    model_config = ConfigDict(extra="forbid")

    default_size: Annotated[
        str,
        Field(description="Default swap size token (e.g. 2G)"),
    ] = "2G"
    default_path: Annotated[
        Path,
        Field(description="Default swap file path"),
    ] = DEFAULT_SWAP_FILE
    default_swappiness: Annotated[
        int,
        Field(ge=0, le=100, description="Default swappiness (0-100)"),
    ] = 10
    fstab_path: Annotated[
        Path,
        Field(description="Mount-table file"),
    ] = DEFAULT_FSTAB_PATH
    sysctl_path: Annotated[
        Path,
        Field(description="Kernel tuning file"),
    ] = DEFAULT_SYSCTL_PATH
    colors: Annotated[
        dict[str, str],
        Field(default_factory=dict, description="Console color overrides"),
    ]

    @field_validator("default_size")
    @classmethod
    def validate_default_size(cls, v: str) -> str:
        """Ensure the default size token parses."""
        try:
            parse_size(v)
        except InputValidationError as e:
            raise ValueError(str(e)) from None
        return v

    @field_validator("default_path")
    @classmethod
    def validate_default_path(cls, v: Path) -> Path:
        """Ensure the default swap file path can be written to the mount table."""
        try:
            return validate_swap_path(v)
        except InputValidationError as e:
            raise ValueError(str(e)) from None

    @field_validator("fstab_path", "sysctl_path")
    @classmethod
    def validate_absolute(cls, v: Path) -> Path:
        """Ensure configured paths are absolute."""
        if not v.is_absolute():
            msg = f"path must be absolute: {v}"
            raise ValueError(msg)
        return v


class ConfigError(SwapWizardError):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file is not valid TOML."""


def load_config(path: Path | None = None) -> WizardConfig:
    """Load the wizard configuration.

    A missing file yields the built-in defaults.

    Args:
        path: Config file path. If None, uses get_config_path().

    Returns:
        Validated WizardConfig.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or does not match the schema.
    """
    config_path = path or get_config_path()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return WizardConfig()
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    try:
        return WizardConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content in {config_path}: {e}") from e
