# netbox_installer/steps/system_user.py
# -*- coding: utf-8 -*-
"""
Creates the system group and user NetBox runs as.
"""

import logging
from typing import Optional

from common.command_utils import get_symbols, log_message, run_elevated_command
from common.system_utils import system_group_exists, system_user_exists
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def create_system_user(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Ensure the service group and user exist.

    The user's home is the install directory, but it is not created here:
    the source fetcher clones into it and needs it absent or empty.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    user = app_settings.netbox.user
    group = app_settings.netbox.group

    if system_group_exists(group, app_settings, logger_to_use):
        log_message(
            f"{symbols.get('info', 'ℹ️')} System group '{group}' exists.",
            "info",
            logger_to_use,
            app_settings,
        )
    else:
        log_message(
            f"{symbols.get('gear', '⚙️')} Creating system group '{group}'...",
            "info",
            logger_to_use,
            app_settings,
        )
        run_elevated_command(
            ["groupadd", "--system", group],
            app_settings,
            current_logger=logger_to_use,
        )

    if system_user_exists(user, app_settings, logger_to_use):
        log_message(
            f"{symbols.get('info', 'ℹ️')} System user '{user}' exists.",
            "info",
            logger_to_use,
            app_settings,
        )
        return

    log_message(
        f"{symbols.get('gear', '⚙️')} Creating system user '{user}'...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        [
            "useradd",
            "--system",
            "--gid",
            group,
            "--home-dir",
            app_settings.install_dir,
            "--no-create-home",
            "--shell",
            static_config.NOLOGIN_SHELL,
            user,
        ],
        app_settings,
        current_logger=logger_to_use,
    )
    log_message(
        f"{symbols.get('success', '✅')} System user '{user}' created.",
        "success",
        logger_to_use,
        app_settings,
    )
