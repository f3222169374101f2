# netbox_installer/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the installer.

Handles loading settings from Pydantic model defaults, environment
variables, a YAML file, and command-line arguments, applying this order of
precedence (lowest first):
1. Pydantic Model Defaults
2. Environment Variables (read by BaseSettings on construction)
3. YAML Configuration File
4. Command-Line Arguments
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .config_models import AppSettings

module_logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"

# argparse destination -> dotted settings path
CLI_SETTING_PATHS: Dict[str, str] = {
    "netbox_version": "netbox.version",
    "domain": "domain",
    "install_dir": "install_dir",
}


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates `source` with values from `overrides`.

    Nested dictionaries are merged key by key. A None in `overrides` never
    replaces an existing value.

    Returns:
        The updated `source` dictionary.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def _read_yaml_file(
    yaml_config_path: Path, logger_to_use: logging.Logger
) -> Dict[str, Any]:
    if not yaml_config_path.is_file():
        logger_to_use.info(
            f"Configuration file '{yaml_config_path}' not found. Using defaults, environment variables, and CLI args."
        )
        return {}
    try:
        with open(yaml_config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger_to_use.warning(
            f"Could not parse YAML config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}
    except OSError as e:
        logger_to_use.warning(
            f"Could not read config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}

    if yaml_data and isinstance(yaml_data, dict):
        logger_to_use.info(f"Loaded configuration from {yaml_config_path}")
        return yaml_data
    if yaml_data is not None:
        logger_to_use.warning(
            f"Config file '{yaml_config_path}' does not contain a valid YAML dictionary. Ignoring."
        )
    return {}


def _cli_overrides(cli_args: argparse.Namespace) -> Dict[str, Any]:
    """Turn the recognised CLI flags into a nested settings dictionary."""
    overrides: Dict[str, Any] = {}
    for cli_key, cli_value in vars(cli_args).items():
        if cli_value is None or cli_key not in CLI_SETTING_PATHS:
            continue
        *parents, leaf = CLI_SETTING_PATHS[cli_key].split(".")
        target = overrides
        for parent in parents:
            target = target.setdefault(parent, {})
        target[leaf] = cli_value
    return overrides


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Load the installer settings.

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        config_file_path: Path to the YAML configuration file. Defaults to
            `config.yaml` in the current working directory; a missing file
            is not an error.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        SystemExit: If the merged configuration fails validation.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        settings_after_env_and_defaults = AppSettings()
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e
    current_values_dict = settings_after_env_and_defaults.model_dump()

    yaml_config_path = Path(config_file_path or DEFAULT_CONFIG_FILE)
    current_values_dict = _deep_update(
        current_values_dict, _read_yaml_file(yaml_config_path, logger_to_use)
    )

    if cli_args:
        current_values_dict = _deep_update(
            current_values_dict, _cli_overrides(cli_args)
        )

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e

    logger_to_use.debug(
        "Successfully loaded and validated application settings"
    )
    return final_settings
