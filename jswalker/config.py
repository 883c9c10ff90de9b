"""
Configuration management for jswalker.

This module provides configuration loading with sensible defaults for the
parse options and the scope tracker.
"""

import logging
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import yaml

from .parser import SUPPORTED_LANGS

logger = logging.getLogger(__name__)


CONFIG_NAMES = [".jswalker.yml", ".jswalker.yaml", "jswalker.yml", "jswalker.yaml"]

SOURCE_TYPES = ("module", "script")


@dataclass
class WalkerConfig:
    """Configuration for parsing and scope tracking."""

    # Parse settings
    source_type: str = "module"  # "module" or "script"
    default_lang: str = "js"  # used when the filename has no known extension

    # Scope tracker settings
    preserve_exited_scopes: bool = False


def _defaults() -> Dict[str, Any]:
    return {
        "source_type": "module",
        "default_lang": "js",
        "preserve_exited_scopes": False,
    }


def _validate(config: Dict[str, Any]) -> Dict[str, Any]:
    """Replace invalid values with their defaults."""
    defaults = _defaults()
    if config.get("source_type") not in SOURCE_TYPES:
        logger.warning(f"Invalid source_type {config.get('source_type')!r}, using {defaults['source_type']!r}")
        config["source_type"] = defaults["source_type"]
    if config.get("default_lang") not in SUPPORTED_LANGS:
        logger.warning(f"Invalid default_lang {config.get('default_lang')!r}, using {defaults['default_lang']!r}")
        config["default_lang"] = defaults["default_lang"]
    if not isinstance(config.get("preserve_exited_scopes"), bool):
        logger.warning("preserve_exited_scopes must be a boolean, using False")
        config["preserve_exited_scopes"] = defaults["preserve_exited_scopes"]
    return config


def load_config(config_path: Optional[str] = None) -> WalkerConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to config file (YAML). If None, uses defaults.

    Returns:
        WalkerConfig instance
    """
    defaults = _defaults()

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}

            if not isinstance(file_config, dict):
                raise ValueError("top-level value must be a mapping")

            unknown = sorted(set(file_config) - set(defaults))
            if unknown:
                logger.warning(f"Ignoring unknown config keys in {config_path}: {', '.join(map(str, unknown))}")

            # Merge with defaults
            merged_config = defaults.copy()
            merged_config.update({key: value for key, value in file_config.items() if key in defaults})

            return WalkerConfig(**_validate(merged_config))

        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}. Using default configuration.")

    return WalkerConfig(**defaults)


def get_default_config() -> WalkerConfig:
    """Get default configuration without loading from file."""
    return load_config(None)


def save_config(config: WalkerConfig, config_path: str) -> None:
    """
    Save configuration to file.

    Args:
        config: WalkerConfig to save
        config_path: Path where to save the config
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.dump(asdict(config), f, default_flow_style=False, indent=2)


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find configuration file by walking up the directory tree.

    Looks for files in this order:
    1. .jswalker.yml
    2. .jswalker.yaml
    3. jswalker.yml
    4. jswalker.yaml

    Args:
        start_path: Directory to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)

    while True:
        for config_name in CONFIG_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            # Reached the root directory
            break
        current_path = parent_path

    return None
