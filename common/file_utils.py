# common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions: reading and writing root-owned files,
backups, and directory ownership.
"""

import datetime
import logging
import subprocess
from pathlib import Path
from typing import Optional, Union

from netbox_installer.config_models import AppSettings

from .command_utils import get_symbols, log_message, run_elevated_command

module_logger = logging.getLogger(__name__)


def read_text_file(
    file_path: Union[str, Path],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Read a text file, falling back to an elevated `cat` when the installer
    lacks read permission.

    Returns:
        The file content, or None if the file does not exist.
    """
    path = Path(file_path)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except PermissionError:
        result = run_elevated_command(
            ["cat", str(path)],
            app_settings,
            capture_output=True,
            current_logger=current_logger,
            log_output=False,
        )
        return result.stdout


def write_file_elevated(
    file_path: Union[str, Path],
    content: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    mode: Optional[str] = None,
    owner: Optional[str] = None,
) -> None:
    """
    Write (overwrite) a file as root by piping the content into `tee`.

    Args:
        file_path: Destination path.
        content: Full file content.
        app_settings: Installer settings.
        current_logger: Optional logger instance.
        mode: Optional chmod mode, e.g. "644".
        owner: Optional "user:group" to chown to, e.g. "netbox:netbox".

    Raises:
        subprocess.CalledProcessError: If any of the commands fail.
    """
    logger_to_use = current_logger if current_logger else module_logger
    run_elevated_command(
        ["tee", str(file_path)],
        app_settings,
        cmd_input=content,
        capture_output=True,
        current_logger=logger_to_use,
        log_output=False,
    )
    if mode:
        run_elevated_command(
            ["chmod", mode, str(file_path)],
            app_settings,
            current_logger=logger_to_use,
        )
    if owner:
        run_elevated_command(
            ["chown", owner, str(file_path)],
            app_settings,
            current_logger=logger_to_use,
        )


def backup_file(
    file_path: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Backup a file to `<file>.bak.<timestamp>` with `cp -a`.

    Returns:
        bool: True if the backup was made or none was needed (the file does
            not exist). False if the copy failed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    if not Path(file_path).is_file():
        log_message(
            f"{symbols.get('info', 'ℹ️')} File {file_path} does not exist or is not a regular file. No backup needed.",
            "info",
            logger_to_use,
            app_settings,
        )
        return True

    timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = f"{file_path}.bak.{timestamp}"
    try:
        run_elevated_command(
            ["cp", "-a", file_path, backup_path],
            app_settings,
            current_logger=logger_to_use,
        )
        log_message(
            f"{symbols.get('success', '✅')} Backed up {file_path} to {backup_path}",
            "success",
            logger_to_use,
            app_settings,
        )
        return True
    except subprocess.CalledProcessError as e:
        log_message(
            f"{symbols.get('error', '❌')} Failed to backup {file_path} to {backup_path}: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        return False


def ensure_directory_owned_by(
    dir_path: Path,
    owner: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    recursive: bool = False,
) -> None:
    """
    Ensure a directory exists and is owned by `owner` ("user:group").

    Raises:
        subprocess.CalledProcessError: If mkdir or chown fail.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    if not dir_path.exists():
        log_message(
            f"{symbols.get('info', 'ℹ️')} Directory not found: {dir_path}. Creating it.",
            "info",
            logger_to_use,
            app_settings,
        )
        run_elevated_command(
            ["mkdir", "-p", str(dir_path)],
            app_settings,
            current_logger=logger_to_use,
        )

    chown_cmd = ["chown"]
    if recursive:
        chown_cmd.append("-R")
    chown_cmd += [owner, str(dir_path)]
    run_elevated_command(chown_cmd, app_settings, current_logger=logger_to_use)
