# netbox_installer/steps/virtualenv.py
# -*- coding: utf-8 -*-
"""
Builds the Python virtual environment NetBox and gunicorn run from.
"""

import logging
from pathlib import Path
from typing import Optional

from common.command_utils import get_symbols, log_message, run_as_user
from common.file_utils import ensure_directory_owned_by
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def setup_virtualenv(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Create the venv as the service user unless it already has an
    interpreter, then install pip/wheel upgrades, NetBox's requirements
    and gunicorn into it.

    Raises:
        subprocess.CalledProcessError: If venv creation or a pip install fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    user = app_settings.netbox.user
    install_dir = Path(app_settings.install_dir)
    venv_dir = app_settings.effective_venv_dir
    pip_bin = str(venv_dir / "bin" / "pip")
    venv_python = venv_dir / "bin" / "python"

    # A directory left behind by a failed `-m venv` has no interpreter.
    if venv_python.exists():
        log_message(
            f"{symbols.get('info', 'ℹ️')} Virtualenv {venv_dir} exists.",
            "info",
            logger_to_use,
            app_settings,
        )
    else:
        log_message(
            f"{symbols.get('gear', '⚙️')} Creating virtualenv {venv_dir}...",
            "info",
            logger_to_use,
            app_settings,
        )
        ensure_directory_owned_by(
            venv_dir,
            f"{user}:{app_settings.netbox.group}",
            app_settings,
            logger_to_use,
        )
        run_as_user(
            [app_settings.python_bin, "-m", "venv", str(venv_dir)],
            user,
            app_settings,
            current_logger=logger_to_use,
            cwd=str(install_dir),
        )

    run_as_user(
        [pip_bin, "install", "--upgrade", "pip", "wheel"],
        user,
        app_settings,
        current_logger=logger_to_use,
        cwd=str(install_dir),
    )

    requirements = install_dir / static_config.REQUIREMENTS_FILE
    if requirements.is_file():
        run_as_user(
            [pip_bin, "install", "-r", str(requirements)],
            user,
            app_settings,
            current_logger=logger_to_use,
            cwd=str(install_dir),
        )
    else:
        log_message(
            f"{symbols.get('warning', '!')} {requirements} not found. Skipping NetBox requirements.",
            "warning",
            logger_to_use,
            app_settings,
        )

    run_as_user(
        [pip_bin, "install", "gunicorn"],
        user,
        app_settings,
        current_logger=logger_to_use,
        cwd=str(install_dir),
    )
    log_message(
        f"{symbols.get('success', '✅')} Virtualenv {venv_dir} is ready.",
        "success",
        logger_to_use,
        app_settings,
    )
