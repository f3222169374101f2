# netbox_installer/steps/nginx.py
# -*- coding: utf-8 -*-
"""
Configures nginx as the reverse proxy in front of gunicorn.
"""

import logging
import os
from pathlib import PurePosixPath
from typing import Optional

from common.command_utils import get_symbols, log_message, run_elevated_command
from common.file_utils import write_file_elevated
from common.system_utils import (
    enable_and_start_service,
    get_current_script_hash,
    is_service_active,
)
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

DEFAULT_SITE_NAME = "default"


def render_site_config(
    app_settings: AppSettings, script_hash: Optional[str] = None
) -> str:
    """
    Render the nginx server block from the configured template.

    Raises:
        KeyError: If the template uses an unknown placeholder.
    """
    format_vars = {
        "script_hash": script_hash or "UNKNOWN_HASH",
        "server_name": app_settings.domain,
        "static_root": str(
            PurePosixPath(app_settings.install_dir) / static_config.STATIC_DIR
        ),
        "socket_path": app_settings.gunicorn.socket,
    }
    return app_settings.nginx.site_template.format(**format_vars)


def validate_nginx_configuration(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Validate the whole nginx configuration with `nginx -t`.

    Raises:
        subprocess.CalledProcessError: If nginx rejects the configuration.
    """
    run_elevated_command(
        ["nginx", "-t"],
        app_settings,
        capture_output=True,
        current_logger=current_logger,
    )


def configure_nginx(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Install the NetBox site, enable it, validate, then start or reload nginx.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    site_name = app_settings.nginx.site_name
    site_path = os.path.join(static_config.NGINX_SITES_AVAILABLE_DIR, site_name)
    enabled_path = os.path.join(static_config.NGINX_SITES_ENABLED_DIR, site_name)

    script_hash = get_current_script_hash(
        project_root_dir=static_config.PROJECT_ROOT,
        app_settings=app_settings,
        logger_instance=logger_to_use,
    )
    write_file_elevated(
        site_path,
        render_site_config(app_settings, script_hash),
        app_settings,
        logger_to_use,
        mode="644",
    )
    log_message(
        f"{symbols.get('success', '✅')} Wrote nginx site {site_path}.",
        "success",
        logger_to_use,
        app_settings,
    )

    run_elevated_command(
        ["ln", "-sf", site_path, enabled_path],
        app_settings,
        current_logger=logger_to_use,
    )

    default_link = os.path.join(
        static_config.NGINX_SITES_ENABLED_DIR, DEFAULT_SITE_NAME
    )
    if (
        app_settings.nginx.disable_default_site
        and site_name != DEFAULT_SITE_NAME
        and os.path.lexists(default_link)
    ):
        log_message(
            f"{symbols.get('info', 'ℹ️')} Disabling the stock nginx site {default_link}.",
            "info",
            logger_to_use,
            app_settings,
        )
        run_elevated_command(
            ["rm", "-f", default_link],
            app_settings,
            current_logger=logger_to_use,
        )

    validate_nginx_configuration(app_settings, logger_to_use)

    was_active = is_service_active(
        static_config.NGINX_SERVICE, app_settings, logger_to_use
    )
    enable_and_start_service(
        static_config.NGINX_SERVICE, app_settings, logger_to_use
    )
    if was_active:
        run_elevated_command(
            ["systemctl", "reload", static_config.NGINX_SERVICE],
            app_settings,
            current_logger=logger_to_use,
        )
