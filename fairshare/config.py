"""Configuration file management for fairshare."""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli_w

DEFAULT_CONFIG: dict[str, Any] = {
    "currency_symbol": "£",
    "decimals": 2,
    "log_level": "WARNING",
}


@dataclass(frozen=True)
class Settings:
    """Immutable settings read from the config file."""

    currency_symbol: str = "£"
    decimals: int = 2
    log_level: str = "WARNING"


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    """Get the config file path (XDG compliant).

    Returns:
        Path to the config file.
    """
    return get_xdg_config_home() / "fairshare" / "config.toml"


def create_default_config(config_path: Path | None = None) -> None:
    """Create default config file with secure permissions.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)
    save_config(dict(DEFAULT_CONFIG), config_path)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If config file is not valid TOML.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to TOML file.

    Args:
        config: Configuration dictionary.
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    os.chmod(config_path, 0o600)


def get_settings(config_path: Path | None = None) -> Settings:
    """Read settings, falling back to defaults when there is no config file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Settings with config values applied over the defaults.

    Raises:
        ValueError: If decimals is not a non-negative integer.
    """
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        config = {}

    merged = {**DEFAULT_CONFIG, **config}
    decimals = merged["decimals"]
    if not isinstance(decimals, int) or isinstance(decimals, bool) or decimals < 0:
        raise ValueError(f"decimals must be a non-negative integer, got {decimals!r}")

    return Settings(
        currency_symbol=str(merged["currency_symbol"]),
        decimals=decimals,
        log_level=str(merged["log_level"]).upper(),
    )


def set_option(key: str, value: Any, config_path: Path | None = None) -> None:
    """Set a single config option, creating the file if needed.

    Args:
        key: Option name (must be a known setting).
        value: New value.
        config_path: Path to config file. If None, uses default location.

    Raises:
        KeyError: If key is not a known setting.
    """
    if key not in DEFAULT_CONFIG:
        raise KeyError(key)

    if config_path is None:
        config_path = get_config_path()

    try:
        config = load_config(config_path)
    except FileNotFoundError:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config = dict(DEFAULT_CONFIG)

    config[key] = value
    save_config(config, config_path)
