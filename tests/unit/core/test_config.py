"""Unit tests for the wizard configuration."""

from pathlib import Path

import pytest
from swapwiz.core.config import ConfigError, ConfigParseError, WizardConfig, load_config


class TestWizardConfig:
    """Tests for WizardConfig model."""

    def test_defaults(self) -> None:
        """Defaults match the interactive prompt defaults."""
        config = WizardConfig()

        assert config.default_size == "2G"
        assert config.default_path == Path("/swapfile")
        assert config.default_swappiness == 10
        assert config.fstab_path == Path("/etc/fstab")
        assert config.sysctl_path == Path("/etc/sysctl.conf")
        assert config.colors == {}

    def test_invalid_default_size(self) -> None:
        """An unparseable default size is rejected."""
        with pytest.raises(ValueError, match="Invalid size format"):
            WizardConfig(default_size="lots")

    def test_default_size_below_minimum(self) -> None:
        """A default size below 1 MiB is rejected."""
        with pytest.raises(ValueError, match="at least 1MiB"):
            WizardConfig(default_size="512K")

    @pytest.mark.parametrize("value", [-1, 101])
    def test_swappiness_range(self, value: int) -> None:
        """Default swappiness must be within 0-100."""
        with pytest.raises(ValueError):
            WizardConfig(default_swappiness=value)

    def test_relative_paths_rejected(self) -> None:
        """Configured paths must be absolute."""
        with pytest.raises(ValueError, match="must be absolute"):
            WizardConfig(fstab_path=Path("etc/fstab"))

    def test_default_path_with_whitespace_rejected(self) -> None:
        """The default swap path must be usable in the mount table."""
        with pytest.raises(ValueError, match="whitespace"):
            WizardConfig(default_path=Path("/var/my swap"))

    def test_unknown_keys_rejected(self) -> None:
        """Unknown settings are rejected."""
        with pytest.raises(ValueError):
            WizardConfig(swap_size="2G")  # type: ignore[call-arg]


class TestLoadConfig:
    """Tests for load_config function."""

    def test_missing_file_yields_defaults(self, missing_config: Path) -> None:
        """A missing config file is not an error."""
        assert load_config() == WizardConfig()

    def test_loads_values(self, tmp_path: Path) -> None:
        """Values from the file override the defaults."""
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            'default_size = "4G"\n'
            'default_path = "/var/swap/swapfile"\n'
            "default_swappiness = 20\n"
            "\n"
            "[colors]\n"
            'success = "#00ff00"\n'
        )

        config = load_config(config_file)

        assert config.default_size == "4G"
        assert config.default_path == Path("/var/swap/swapfile")
        assert config.default_swappiness == 20
        assert config.fstab_path == Path("/etc/fstab")
        assert config.colors == {"success": "#00ff00"}

    def test_env_var_selects_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """SWAPWIZ_CONFIG names the file when no path is given."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text("default_swappiness = 60\n")
        monkeypatch.setenv("SWAPWIZ_CONFIG", str(config_file))

        assert load_config().default_swappiness == 60

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        config_file = tmp_path / "config.toml"
        config_file.write_text("default_size = [")

        with pytest.raises(ConfigParseError, match="Invalid TOML syntax"):
            load_config(config_file)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise ConfigError."""
        config_file = tmp_path / "config.toml"
        config_file.write_text("default_swappiness = 300\n")

        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(config_file)

    def test_unreadable_path(self, tmp_path: Path) -> None:
        """A directory in place of the file raises ConfigError."""
        with pytest.raises(ConfigError, match="Failed to read config"):
            load_config(tmp_path)
