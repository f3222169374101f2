# netbox_installer/steps/permissions.py
# -*- coding: utf-8 -*-
"""
Hands the NetBox tree and the gunicorn socket directory to the service
account.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from common.command_utils import get_symbols, log_message
from common.file_utils import ensure_directory_owned_by
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def is_protected_directory(path: str) -> bool:
    """True for shared system directories that must never change owner."""
    normalized = os.path.normpath(path) if path else "/"
    return normalized in static_config.PROTECTED_DIRECTORIES


def fix_permissions(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Recursively chown the install directory, then create the socket
    directory and chown it. Shared system directories are skipped with a
    warning.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    owner = f"{app_settings.netbox.user}:{app_settings.netbox.group}"

    if is_protected_directory(app_settings.install_dir):
        log_message(
            f"{symbols.get('warning', '!')} Refusing to chown system directory {app_settings.install_dir}.",
            "warning",
            logger_to_use,
            app_settings,
        )
    else:
        log_message(
            f"{symbols.get('gear', '⚙️')} Fixing ownership of {app_settings.install_dir}...",
            "info",
            logger_to_use,
            app_settings,
        )
        ensure_directory_owned_by(
            Path(app_settings.install_dir),
            owner,
            app_settings,
            logger_to_use,
            recursive=True,
        )

    socket_dir = os.path.dirname(app_settings.gunicorn.socket)
    if is_protected_directory(socket_dir):
        log_message(
            f"{symbols.get('warning', '!')} Socket directory {socket_dir or '/'} is a shared system directory. "
            "Leaving its ownership alone; use a dedicated directory such as /run/netbox.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return

    ensure_directory_owned_by(
        Path(socket_dir), owner, app_settings, logger_to_use
    )
    log_message(
        f"{symbols.get('success', '✅')} {socket_dir} belongs to {owner}.",
        "success",
        logger_to_use,
        app_settings,
    )
