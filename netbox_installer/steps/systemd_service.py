# netbox_installer/steps/systemd_service.py
# -*- coding: utf-8 -*-
"""
Installs and starts the systemd unit that runs NetBox under gunicorn.
"""

import logging
from pathlib import PurePosixPath
from typing import Optional

from common.command_utils import get_symbols, log_message, run_elevated_command
from common.file_utils import read_text_file, write_file_elevated
from common.system_utils import (
    enable_and_start_service,
    get_current_script_hash,
    is_service_active,
    systemd_reload,
)
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

RUNTIME_PARENT_DIRECTORIES = ("/run", "/var/run")


def runtime_directory_for(socket_path: str) -> Optional[str]:
    """
    The systemd RuntimeDirectory= name for a socket in a dedicated directory
    directly under /run (e.g. /run/netbox/netbox.sock -> "netbox"), else None.
    """
    socket_dir = PurePosixPath(socket_path).parent
    if str(socket_dir) in static_config.PROTECTED_DIRECTORIES:
        return None
    if str(socket_dir.parent) in RUNTIME_PARENT_DIRECTORIES:
        return socket_dir.name
    return None


def render_service_unit(
    app_settings: AppSettings, script_hash: Optional[str] = None
) -> str:
    """
    Render the unit file from the configured template.

    Raises:
        KeyError: If the template uses an unknown placeholder.
    """
    runtime_directory = runtime_directory_for(app_settings.gunicorn.socket)
    runtime_directory_line = (
        f"RuntimeDirectory={runtime_directory}\n" if runtime_directory else ""
    )
    format_vars = {
        "script_hash": script_hash or "UNKNOWN_HASH",
        "netbox_user": app_settings.netbox.user,
        "netbox_group": app_settings.netbox.group,
        "working_dir": str(
            PurePosixPath(app_settings.install_dir) / static_config.NETBOX_APP_DIR
        ),
        "runtime_directory_line": runtime_directory_line,
        "gunicorn_bin": str(app_settings.effective_venv_dir / "bin" / "gunicorn"),
        "workers": app_settings.gunicorn.workers,
        "socket_path": app_settings.gunicorn.socket,
    }
    return app_settings.gunicorn.service_template.format(**format_vars)


def install_systemd_service(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Write the unit, reload systemd, and enable and start the service. A
    service that was already running is restarted so it picks up new code,
    settings and unit changes.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    service_name = app_settings.gunicorn.service_name
    unit_path = PurePosixPath(static_config.SYSTEMD_UNIT_DIR) / service_name

    script_hash = get_current_script_hash(
        project_root_dir=static_config.PROJECT_ROOT,
        app_settings=app_settings,
        logger_instance=logger_to_use,
    )
    unit_content = render_service_unit(app_settings, script_hash)
    was_active = is_service_active(service_name, app_settings, logger_to_use)

    if read_text_file(unit_path, app_settings, logger_to_use) == unit_content:
        log_message(
            f"{symbols.get('info', 'ℹ️')} {unit_path} is up to date.",
            "info",
            logger_to_use,
            app_settings,
        )
    else:
        write_file_elevated(
            unit_path, unit_content, app_settings, logger_to_use, mode="644"
        )
        log_message(
            f"{symbols.get('success', '✅')} Wrote {unit_path}.",
            "success",
            logger_to_use,
            app_settings,
        )

    systemd_reload(app_settings, logger_to_use)
    enable_and_start_service(service_name, app_settings, logger_to_use)
    if was_active:
        run_elevated_command(
            ["systemctl", "restart", service_name],
            app_settings,
            current_logger=logger_to_use,
        )
