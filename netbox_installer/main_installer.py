# netbox_installer/main_installer.py
# -*- coding: utf-8 -*-
"""
Main entry point and orchestrator for the NetBox installer.

Handles argument parsing, logging setup, and runs the installation steps
in their fixed order.
"""

import argparse
import logging
import os
import sys
from typing import Callable, List, Optional, Sequence, Tuple

from common.command_utils import get_symbols, log_message
from common.core_utils import setup_logging
from common.system_utils import get_current_script_hash
from netbox_installer import config as static_config
from netbox_installer.cli_handler import view_configuration, view_state
from netbox_installer.config_loader import load_app_settings
from netbox_installer.config_models import LOG_PREFIX_DEFAULT, AppSettings
from netbox_installer.state_manager import (
    clear_state_file,
    initialize_state_system,
    view_completed_steps,
)
from netbox_installer.step_executor import StepFailedError, execute_step
from netbox_installer.steps.django_manage import run_django_manage
from netbox_installer.steps.netbox_config import configure_netbox
from netbox_installer.steps.nginx import configure_nginx
from netbox_installer.steps.packages import install_system_packages
from netbox_installer.steps.permissions import fix_permissions
from netbox_installer.steps.postgres import setup_postgres
from netbox_installer.steps.redis import setup_redis
from netbox_installer.steps.source import fetch_source
from netbox_installer.steps.system_user import create_system_user
from netbox_installer.steps.systemd_service import install_systemd_service
from netbox_installer.steps.virtualenv import setup_virtualenv

logger = logging.getLogger(__name__)

Step = Tuple[str, str, Callable[[AppSettings, Optional[logging.Logger]], None]]

PIPELINE: List[Step] = [
    ("PACKAGES", "Install system packages", install_system_packages),
    ("POSTGRES", "Provision PostgreSQL role and database", setup_postgres),
    ("REDIS", "Enable Redis", setup_redis),
    ("SYSTEM_USER", "Create NetBox system user", create_system_user),
    ("SOURCE", "Fetch NetBox source", fetch_source),
    ("VIRTUALENV", "Build Python virtualenv", setup_virtualenv),
    ("CONFIGURATION", "Write NetBox configuration", configure_netbox),
    ("PERMISSIONS", "Fix ownership and permissions", fix_permissions),
    ("DJANGO_MANAGE", "Migrate, collect static files, create superuser", run_django_manage),
    ("SYSTEMD_SERVICE", "Install gunicorn systemd service", install_systemd_service),
    ("NGINX", "Configure nginx reverse proxy", configure_nginx),
]

STEP_TAGS: List[str] = [tag for tag, _, _ in PIPELINE]


def select_steps(only: Optional[Sequence[str]] = None) -> List[Step]:
    """
    The steps to run, in pipeline order. With `only`, just those tags
    (case-insensitive).

    Raises:
        ValueError: If `only` names an unknown step.
    """
    if not only:
        return list(PIPELINE)
    wanted = {tag.upper() for tag in only}
    unknown = sorted(wanted - set(STEP_TAGS))
    if unknown:
        raise ValueError(
            f"Unknown step(s): {', '.join(unknown)}. Valid steps: {', '.join(STEP_TAGS)}"
        )
    return [step for step in PIPELINE if step[0] in wanted]


def run_pipeline(
    steps: Sequence[Step],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    skip_completed: bool = False,
) -> None:
    """
    Run the steps in order, stopping at the first failure.

    Raises:
        StepFailedError: From the first step that fails.
    """
    logger_to_use = current_logger if current_logger else logger
    for tag, description, step_function in steps:
        execute_step(
            tag,
            description,
            step_function,
            app_settings,
            logger_to_use,
            skip_completed=skip_completed,
        )


def show_plan(
    steps: Sequence[Step],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    skip_completed: bool = False,
) -> None:
    logger_to_use = current_logger if current_logger else logger
    symbols = get_symbols(app_settings)
    completed = set(view_completed_steps(app_settings, logger_to_use))
    log_message(
        f"{symbols.get('info', 'ℹ️')} Installation plan:",
        "info",
        logger_to_use,
        app_settings,
    )
    for index, (tag, description, _) in enumerate(steps, 1):
        if tag in completed:
            state = "completed, will be skipped" if skip_completed else "completed, will re-run"
        else:
            state = "pending"
        log_message(
            f"  {index}. {tag:<16} {description} [{state}]",
            "info",
            logger_to_use,
            app_settings,
        )


def log_summary(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    logger_to_use = current_logger if current_logger else logger
    symbols = get_symbols(app_settings)
    log_message(
        f"{symbols.get('rocket', '🚀')} NetBox should be available at http://{app_settings.domain}/ "
        "(it may take a few seconds to be ready).",
        "success",
        logger_to_use,
        app_settings,
    )
    log_message(
        f"{symbols.get('info', 'ℹ️')} Admin user: {app_settings.admin.user}  Email: {app_settings.admin.email}",
        "info",
        logger_to_use,
        app_settings,
    )
    log_message(
        f"{symbols.get('info', 'ℹ️')} If you changed passwords, make sure to store them securely.",
        "info",
        logger_to_use,
        app_settings,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="NetBox installer. Provisions NetBox with PostgreSQL, Redis, gunicorn and nginx on this host.",
        epilog="Example: sudo netbox-install --version v4.1.0 --domain netbox.example.com",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", dest="config_file", default=None,
                        help="YAML configuration file (default: ./config.yaml if present).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", default=None, help="Also append log output to this file.")
    parser.add_argument("--skip-completed", action="store_true",
                        help="Skip steps the state file records as completed.")
    parser.add_argument("--only", nargs="+", metavar="TAG", default=None,
                        help=f"Run only these steps, in pipeline order. One or more of: {', '.join(STEP_TAGS)}.")
    parser.add_argument("--plan", action="store_true", help="Show the steps that would run and exit.")
    parser.add_argument("--view-config", action="store_true", help="View current configuration settings and exit.")
    parser.add_argument("--view-state", action="store_true",
                        help="View completed installation steps from state file and exit.")
    parser.add_argument("--clear-state", action="store_true", help="Clear all progress state from state file and exit.")

    config_group = parser.add_argument_group("Configuration Overrides")
    config_group.add_argument("--version", dest="netbox_version", default=None,
                              help="NetBox git tag/branch, or 'latest' for the default branch.")
    config_group.add_argument("--domain", default=None, help="Domain nginx serves NetBox on.")
    config_group.add_argument("--install-dir", default=None, help="Directory NetBox is cloned into.")
    return parser


def _log_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    level_str = os.environ.get("LOGLEVEL", "INFO").upper()
    level = getattr(logging, level_str, None)
    if not isinstance(level, int):
        print(f"Warning: Invalid LOGLEVEL string '{level_str}'. Defaulting to INFO.", file=sys.stderr)
        return logging.INFO
    return level


def main(args: Optional[List[str]] = None) -> int:
    """
    Run the installer.

    Returns:
        0 on success, the failing command's exit code when a step fails,
        2 for usage errors and 1 for configuration errors.
    """
    parser = build_arg_parser()
    try:
        parsed_args = parser.parse_args(args)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 2

    log_level = _log_level(parsed_args.verbose)
    setup_logging(log_level=log_level, log_file=parsed_args.log_file, log_prefix=LOG_PREFIX_DEFAULT)

    try:
        app_settings = load_app_settings(
            cli_args=parsed_args,
            config_file_path=parsed_args.config_file,
            current_logger=logger,
        )
    except SystemExit as e:
        log_message(f"{e}", "critical", logger)
        return 1

    setup_logging(
        log_level=log_level,
        log_file=parsed_args.log_file,
        log_prefix=app_settings.log_prefix,
        symbols=app_settings.symbols,
    )
    symbols = get_symbols(app_settings)

    try:
        steps = select_steps(parsed_args.only)
    except ValueError as e:
        log_message(f"{symbols.get('error', '❌')} {e}", "error", logger, app_settings)
        return 2

    if parsed_args.view_config:
        view_configuration(app_settings, logger)
        return 0
    if parsed_args.view_state:
        view_state(app_settings, logger)
        return 0
    if parsed_args.plan:
        show_plan(steps, app_settings, logger, skip_completed=parsed_args.skip_completed)
        return 0

    log_message(
        f"{symbols.get('sparkles', '✨')} Starting NetBox installer (Script Version: {static_config.SCRIPT_VERSION})...",
        "info",
        logger,
        app_settings,
    )
    current_hash = get_current_script_hash(
        project_root_dir=static_config.PROJECT_ROOT,
        app_settings=app_settings,
        logger_instance=logger,
    )
    log_message(f"Current SCRIPT_HASH: {current_hash or 'Could not determine'}", "debug", logger, app_settings)
    if os.geteuid() == 0:
        log_message(f"{symbols.get('info', 'ℹ️')} Script is running as root.", "info", logger, app_settings)
    else:
        log_message(f"{symbols.get('info', 'ℹ️')} Script not run as root. 'sudo' will be used.", "info", logger,
                    app_settings)

    try:
        initialize_state_system(app_settings, logger)
        if parsed_args.clear_state:
            clear_state_file(app_settings, current_logger=logger)
            return 0
        run_pipeline(steps, app_settings, logger, skip_completed=parsed_args.skip_completed)
    except StepFailedError as e:
        log_message(f"{symbols.get('critical', '🔥')} {e}", "critical", logger, app_settings)
        return e.exit_code
    except Exception as e:
        log_message(f"{symbols.get('critical', '🔥')} Installer error: {e}", "critical", logger, app_settings,
                    exc_info=True)
        return 1

    log_summary(app_settings, logger)
    return 0


if __name__ == "__main__":
    sys.exit(main())
