# netbox_installer/cli_handler.py
# -*- coding: utf-8 -*-
"""
Handles Command Line Interface (CLI) output for the NetBox installer.
"""

import datetime
import logging
from typing import Optional

from common.command_utils import get_symbols, log_message
from common.system_utils import get_current_script_hash
from netbox_installer import config as static_config
from netbox_installer.config_models import (
    ADMIN_PASSWORD_DEFAULT,
    DB_PASSWORD_DEFAULT,
    AppSettings,
)
from netbox_installer.state_manager import view_completed_steps

module_logger = logging.getLogger(__name__)


def _password_display(value: str, default: str) -> str:
    if not value:
        return "[NOT SET or EMPTY - Check Configuration]"
    if value == default:
        return "[DEFAULT - Insecure! Override via ENV or YAML]"
    return "[FROM CONFIGURATION (ENV/YAML)]"


def view_configuration(
    app_config: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Displays the current effective configuration values. Passwords are never
    printed, only whether they still hold their insecure defaults.

    Parameters:
        app_config (AppSettings): The resolved installer settings.
        current_logger (Optional[logging.Logger]): A logger instance to use
            for output. If not provided, the module's default logger is used.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_config)

    config_text = f"{symbols.get('info', 'ℹ️')} Current effective configuration values (CLI > YAML > ENV > Defaults):\n\n"
    config_text += f"  NetBox Version:                {app_config.netbox.version}\n"
    config_text += f"  NetBox Repository:             {app_config.netbox.repo_url}\n"
    config_text += f"  Service User:Group:            {app_config.netbox.user}:{app_config.netbox.group}\n"
    config_text += f"  Install Directory:             {app_config.install_dir}\n"
    config_text += f"  Python Interpreter:            {app_config.python_bin}\n"
    config_text += f"  Virtualenv Directory:          {app_config.effective_venv_dir}\n"
    config_text += f"  Domain:                        {app_config.domain}\n"
    config_text += f"  Allowed Hosts:                 {', '.join(app_config.allowed_hosts_list)}\n"
    config_text += f"  Redis Configuration File:      {app_config.redis_conf}\n"
    config_text += f"  Log Prefix (installer):        {app_config.log_prefix}\n\n"

    config_text += "  PostgreSQL Settings (db.*):\n"
    config_text += f"    Database:                    {app_config.db.name}\n"
    config_text += f"    User:                        {app_config.db.user}\n"
    config_text += f"    Host:                        {app_config.db.host}\n"
    config_text += f"    Port:                        {app_config.db.port or '[default]'}\n"
    config_text += f"    Password:                    {_password_display(app_config.db.password, DB_PASSWORD_DEFAULT)}\n\n"

    config_text += "  NetBox Superuser (admin.*):\n"
    config_text += f"    User:                        {app_config.admin.user}\n"
    config_text += f"    E-mail:                      {app_config.admin.email}\n"
    config_text += f"    Password:                    {_password_display(app_config.admin.password, ADMIN_PASSWORD_DEFAULT)}\n\n"

    config_text += "  gunicorn (gunicorn.*):\n"
    config_text += f"    Socket:                      {app_config.gunicorn.socket}\n"
    config_text += f"    Workers:                     {app_config.gunicorn.workers}\n"
    config_text += f"    Service Name:                {app_config.gunicorn.service_name}\n\n"

    config_text += f"  nginx Site Name:               {app_config.nginx.site_name}\n\n"

    config_text += (
        f"  State File Path (static):      {static_config.STATE_FILE_PATH}\n"
    )
    current_hash = (
        get_current_script_hash(
            project_root_dir=static_config.PROJECT_ROOT,
            app_settings=app_config,
            logger_instance=logger_to_use,
        )
        or "N/A"
    )
    config_text += f"  Script Hash:                   {current_hash}\n"
    config_text += (
        f"  Script Version (static):       {static_config.SCRIPT_VERSION}\n"
    )
    config_text += f"  Timestamp (current view):      {datetime.datetime.now().strftime('%Y-%m-%d-%H%M%S')}\n"

    log_message(
        "Displaying current configuration:", "info", logger_to_use, app_config
    )
    log_message(f"\n{config_text}", "info", logger_to_use, app_config)

    for label, value, default in (
        ("DB_PASSWORD", app_config.db.password, DB_PASSWORD_DEFAULT),
        ("ADMIN_PASSWORD", app_config.admin.password, ADMIN_PASSWORD_DEFAULT),
    ):
        if value == default:
            log_message(
                f"{symbols.get('warning', '!')} {label} still has its default value. Set it before installing on a reachable host.",
                "warning",
                logger_to_use,
                app_config,
            )


def view_state(
    app_config: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Log the steps the state file records as completed."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_config)
    completed = view_completed_steps(app_config, logger_to_use)
    if not completed:
        log_message(
            f"{symbols.get('info', 'ℹ️')} No steps have been marked as completed yet.",
            "info",
            logger_to_use,
            app_config,
        )
        return
    log_message(
        f"{symbols.get('info', 'ℹ️')} Completed steps ({static_config.STATE_FILE_PATH}):",
        "info",
        logger_to_use,
        app_config,
    )
    for index, step_tag in enumerate(completed, 1):
        log_message(f"  {index}. {step_tag}", "info", logger_to_use, app_config)
