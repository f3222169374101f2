# netbox_installer/steps/packages.py
# -*- coding: utf-8 -*-
"""
Installs the system packages NetBox and its services need.
"""

import logging
from typing import List, Optional

from common.command_utils import get_symbols, log_message
from common.debian.apt_manager import AptManager
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def required_packages(app_settings: AppSettings) -> List[str]:
    """The full apt package list, including the configured Python's packages."""
    python_packages = [
        f"{app_settings.python_bin}{suffix}"
        for suffix in static_config.PYTHON_PACKAGE_SUFFIXES
    ]
    return (
        static_config.CORE_PACKAGES
        + python_packages
        + static_config.SERVICE_PACKAGES
    )


def install_system_packages(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Install every required package with apt.

    Raises:
        subprocess.CalledProcessError: If `apt-get update` or
            `apt-get install` fail.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    packages = required_packages(app_settings)

    log_message(
        f"{symbols.get('package', '📦')} Installing {len(packages)} system packages...",
        "info",
        logger_to_use,
        app_settings,
    )
    apt_manager = AptManager(logger=logger_to_use)
    apt_manager.install(
        packages, app_settings, update_first=True, raise_error=True
    )
    log_message(
        f"{symbols.get('success', '✅')} System packages are installed.",
        "success",
        logger_to_use,
        app_settings,
    )
