# netbox_installer/steps/django_manage.py
# -*- coding: utf-8 -*-
"""
Runs NetBox's Django management commands: schema migrations, static file
collection, and the initial superuser.
"""

import logging
from typing import List, Optional

from common.command_utils import get_symbols, log_message, run_as_user
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

SUPERUSER_CREATED = "created"
SUPERUSER_EXISTS = "exists"


def _manage_command(app_settings: AppSettings, *args: str) -> List[str]:
    python_bin = str(app_settings.effective_venv_dir / "bin" / "python")
    return [python_bin, static_config.MANAGE_PY] + list(args)


def superuser_script(app_settings: AppSettings) -> str:
    """
    Django shell script that creates the superuser unless one with that name
    exists, printing 'created' or 'exists'.
    """
    admin = app_settings.admin
    return (
        "from django.contrib.auth import get_user_model\n"
        "User = get_user_model()\n"
        f"if not User.objects.filter(username={admin.user!r}).exists():\n"
        f"    User.objects.create_superuser({admin.user!r}, {admin.email!r}, {admin.password!r})\n"
        f"    print({SUPERUSER_CREATED!r})\n"
        "else:\n"
        f"    print({SUPERUSER_EXISTS!r})\n"
    )


def ensure_superuser(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> str:
    """
    Create the NetBox superuser if missing.

    Returns:
        'created' or 'exists'.

    Raises:
        RuntimeError: If the shell printed neither.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    result = run_as_user(
        _manage_command(app_settings, "shell"),
        app_settings.netbox.user,
        app_settings,
        capture_output=True,
        cmd_input=superuser_script(app_settings),
        current_logger=logger_to_use,
        cwd=app_settings.install_dir,
    )
    output_lines = (result.stdout or "").strip().splitlines()
    outcome = output_lines[-1].strip() if output_lines else ""
    if outcome not in (SUPERUSER_CREATED, SUPERUSER_EXISTS):
        raise RuntimeError(
            f"Unexpected output while creating superuser '{app_settings.admin.user}': {outcome!r}"
        )
    if outcome == SUPERUSER_CREATED:
        message = f"{symbols.get('success', '✅')} Superuser '{app_settings.admin.user}' created."
    else:
        message = f"{symbols.get('info', 'ℹ️')} Superuser '{app_settings.admin.user}' exists."
    log_message(message, "info", logger_to_use, app_settings)
    return outcome


def run_django_manage(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Migrate, collect static files and bootstrap the superuser."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    user = app_settings.netbox.user

    log_message(
        f"{symbols.get('gear', '⚙️')} Running Django migrations...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_as_user(
        _manage_command(app_settings, "migrate", "--noinput"),
        user,
        app_settings,
        current_logger=logger_to_use,
        cwd=app_settings.install_dir,
    )

    log_message(
        f"{symbols.get('gear', '⚙️')} Collecting static files...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_as_user(
        _manage_command(app_settings, "collectstatic", "--no-input"),
        user,
        app_settings,
        current_logger=logger_to_use,
        cwd=app_settings.install_dir,
    )

    ensure_superuser(app_settings, logger_to_use)
