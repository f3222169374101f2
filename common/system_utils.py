# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the NetBox installer.

This module includes functions for systemd service management, system
account lookups, and calculating a hash of the installer's own sources.
"""

import hashlib
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from common.command_utils import (
    get_symbols,
    log_message,
    run_command,
    run_elevated_command,
)
from netbox_installer.config import HASHED_PACKAGES
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

CACHED_SCRIPT_HASH: Optional[str] = None


def calculate_project_hash(
    project_root_dir: Path,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    package_names: Optional[Sequence[str]] = None,
) -> Optional[str]:
    """
    Calculate a SHA256 hash of the installer's .py files.

    The hash covers relative file paths (POSIX style) and file contents, so
    additions, deletions, renames and edits all change it. The tests
    directory is not part of the installer and is skipped.

    Args:
        project_root_dir: The root directory of the project.
        app_settings: The installer settings, for logging symbols.
        current_logger: Optional logger instance.
        package_names: Only hash files inside these top-level directories
            of the root. The root of an installed copy is site-packages, so
            callers restrict the hash to the installer's own packages.

    Returns:
        The hex digest, or None if the tree could not be read.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    hasher = hashlib.sha256()

    project_root = Path(project_root_dir)
    if not project_root.is_dir():
        log_message(
            f"{symbols.get('error', '❌')} Project root directory '{project_root}' not found for hashing.",
            "error",
            logger_to_use,
            app_settings,
        )
        return None

    search_roots = (
        [project_root / name for name in package_names]
        if package_names is not None
        else [project_root]
    )
    py_files_found: List[Path] = [
        path_object
        for search_root in search_roots
        if search_root.is_dir()
        for path_object in search_root.rglob("*.py")
        if path_object.is_file()
        and "tests" not in path_object.relative_to(project_root).parts
    ]

    sorted_files = sorted(
        py_files_found,
        key=lambda p: p.relative_to(project_root).as_posix(),
    )

    for file_path in sorted_files:
        try:
            hasher.update(
                file_path.relative_to(project_root).as_posix().encode("utf-8")
            )
            hasher.update(file_path.read_bytes())
        except OSError as e_file:
            log_message(
                f"{symbols.get('error', '❌')} Error reading file {file_path} for hashing: {e_file}",
                "error",
                logger_to_use,
                app_settings,
            )
            return None

    final_hash = hasher.hexdigest()
    log_message(
        f"{symbols.get('debug', '🐛')} Calculated SCRIPT_HASH: {final_hash} from {len(sorted_files)} .py files in {project_root}.",
        "debug",
        logger_to_use,
        app_settings,
    )
    return final_hash


def get_current_script_hash(
    project_root_dir: Path,
    app_settings: AppSettings,
    logger_instance: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Get the current script hash, calculating it if not already cached.
    Only the installer's own packages under `project_root_dir` are hashed.
    """
    global CACHED_SCRIPT_HASH
    if CACHED_SCRIPT_HASH is None:
        CACHED_SCRIPT_HASH = calculate_project_hash(
            project_root_dir,
            app_settings,
            current_logger=logger_instance,
            package_names=HASHED_PACKAGES,
        )
    return CACHED_SCRIPT_HASH


def systemd_reload(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Reload the systemd manager configuration.

    Raises:
        subprocess.CalledProcessError: If `systemctl daemon-reload` fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_message(
        f"{symbols.get('gear', '⚙️')} Reloading systemd daemon...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        ["systemctl", "daemon-reload"],
        app_settings,
        current_logger=logger_to_use,
    )
    log_message(
        f"{symbols.get('success', '✅')} Systemd daemon reloaded.",
        "success",
        logger_to_use,
        app_settings,
    )


def enable_and_start_service(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Enable a systemd service and start it now (`systemctl enable --now`)."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    run_elevated_command(
        ["systemctl", "enable", "--now", service_name],
        app_settings,
        current_logger=logger_to_use,
    )
    log_message(
        f"{symbols.get('success', '✅')} Service '{service_name}' enabled and started.",
        "success",
        logger_to_use,
        app_settings,
    )


def is_service_active(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Return True if `systemctl is-active` reports the service running."""
    result = run_elevated_command(
        ["systemctl", "is-active", "--quiet", service_name],
        app_settings,
        check=False,
        current_logger=current_logger,
    )
    return result.returncode == 0


def system_user_exists(
    user_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Check for an OS account with `id <user>`."""
    result = run_command(
        ["id", user_name],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
    )
    return result.returncode == 0


def system_group_exists(
    group_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Check for an OS group with `getent group <group>`."""
    result = run_command(
        ["getent", "group", group_name],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
    )
    return result.returncode == 0
