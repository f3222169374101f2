# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Utilities for executing shell commands and logging their output.
"""

import logging
import os
import shutil
import subprocess
from typing import Dict, List, Optional, Union

from netbox_installer.config_models import SYMBOLS_DEFAULT, AppSettings

module_logger = logging.getLogger(__name__)


def get_symbols(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    """Return the logging symbols of the settings, or the defaults."""
    if app_settings and app_settings.symbols:
        return app_settings.symbols
    return SYMBOLS_DEFAULT


def log_message(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
    exc_info: bool = False,
) -> None:
    """
    Logs a message at the given level.

    Args:
        message (str): The log message to be recorded.
        level (str): "debug", "info", "success", "warning", "error" or
            "critical". Unknown levels (including "success") log at INFO.
        current_logger (Optional[logging.Logger]): Logger to use. Falls back
            to the module logger.
        app_settings (Optional[AppSettings]): Installer settings, accepted for
            a uniform call signature across the installer.
        exc_info (bool): Include exception details in the record.
    """
    effective_logger = current_logger if current_logger else module_logger

    if level == "warning":
        effective_logger.warning(message, exc_info=exc_info)
    elif level == "error":
        effective_logger.error(message, exc_info=exc_info)
    elif level == "critical":
        effective_logger.critical(message, exc_info=exc_info)
    elif level == "debug":
        effective_logger.debug(message, exc_info=exc_info)
    else:
        effective_logger.info(message, exc_info=exc_info)


def _get_elevated_command_prefix() -> List[str]:
    """
    Returns ["sudo"] when the process is not running as root, else [].
    """
    return [] if os.geteuid() == 0 else ["sudo"]


def run_command(
    command: Union[List[str], str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    shell: bool = False,
    capture_output: bool = False,
    text: bool = True,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    log_output: bool = True,
) -> subprocess.CompletedProcess:
    """
    Executes a system command, logging the command line before it runs and,
    when output is captured, its stdout and stderr afterwards.

    Args:
        command (Union[List[str], str]): The command to execute. A list is
            preferred; with shell=True a list is joined into one string.
        app_settings (Optional[AppSettings]): Installer settings, used for
            logging symbols.
        check (bool): Raise CalledProcessError on a non-zero exit code.
        shell (bool): Run the command through the shell.
        capture_output (bool): Capture stdout and stderr.
        text (bool): Decode the output streams as text.
        cmd_input (Optional[str]): Data passed to the command's stdin. Never
            logged.
        current_logger (Optional[logging.Logger]): Logger to use.
        cwd (Optional[str]): Working directory for the command.
        env (Optional[Dict[str, str]]): Environment for the command. Defaults
            to the inherited environment.
        log_output (bool): Log captured stdout/stderr. Pass False for output
            that may contain secrets.

    Returns:
        subprocess.CompletedProcess: The completed process.

    Raises:
        subprocess.CalledProcessError: The command exited non-zero and check
            is True.
        FileNotFoundError: The executable was not found.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    command_to_log_str: str
    command_to_run: Union[List[str], str]

    if shell:
        if isinstance(command, list):
            command_to_run = " ".join(command)
        else:
            command_to_run = command
        command_to_log_str = str(command_to_run)
    else:
        if isinstance(command, str):
            log_message(
                f"{symbols.get('warning', '!')} Running string command '{command}' without shell=True. Consider list format.",
                "warning",
                effective_logger,
                app_settings,
            )
            command_to_run = command.split()
            command_to_log_str = command
        else:
            command_to_run = command
            command_to_log_str = subprocess.list2cmdline(command)

    log_message(
        f"{symbols.get('gear', '⚙️')} Executing: {command_to_log_str} {f'(in {cwd})' if cwd else ''}",
        "info",
        effective_logger,
        app_settings,
    )
    try:
        result = subprocess.run(
            command_to_run,
            check=check,
            shell=shell,
            capture_output=capture_output,
            text=text,
            input=cmd_input,
            cwd=cwd,
            env=env,
        )
        if capture_output and log_output:
            if result.stdout and result.stdout.strip():
                log_message(
                    f"   stdout: {result.stdout.strip()}",
                    "info",
                    effective_logger,
                    app_settings,
                )
            if (
                result.stderr
                and result.stderr.strip()
                and (not check or result.returncode == 0)
            ):
                log_message(
                    f"   stderr: {result.stderr.strip()}",
                    "info",
                    effective_logger,
                    app_settings,
                )
        return result
    except subprocess.CalledProcessError as e:
        cmd_executed_str = (
            subprocess.list2cmdline(e.cmd)
            if isinstance(e.cmd, list)
            else str(e.cmd)
        )
        log_message(
            f"{symbols.get('error', '❌')} Command `{cmd_executed_str}` failed (rc {e.returncode}).",
            "error",
            effective_logger,
            app_settings,
        )
        if log_output:
            if e.stdout and hasattr(e.stdout, "strip") and e.stdout.strip():
                log_message(
                    f"   stdout: {e.stdout.strip()}",
                    "error",
                    effective_logger,
                    app_settings,
                )
            if e.stderr and hasattr(e.stderr, "strip") and e.stderr.strip():
                log_message(
                    f"   stderr: {e.stderr.strip()}",
                    "error",
                    effective_logger,
                    app_settings,
                )
        raise
    except FileNotFoundError as e:
        log_message(
            f"{symbols.get('error', '❌')} Command not found: {e.filename}. Ensure it's installed and in PATH.",
            "error",
            effective_logger,
            app_settings,
        )
        raise


def run_elevated_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    log_output: bool = True,
) -> subprocess.CompletedProcess:
    """
    Executes a command as root, prefixing it with sudo when the installer
    itself is not running as root. Arguments match run_command.
    """
    prefix = _get_elevated_command_prefix()
    elevated_command_list = prefix + list(command)
    return run_command(
        elevated_command_list,
        app_settings,
        check=check,
        shell=False,
        capture_output=capture_output,
        text=True,
        cmd_input=cmd_input,
        current_logger=current_logger,
        cwd=cwd,
        env=env,
        log_output=log_output,
    )


def run_as_user(
    command: List[str],
    user: str,
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    log_output: bool = True,
) -> subprocess.CompletedProcess:
    """
    Executes a command as another (usually unprivileged) user via
    `sudo -u <user> -H`.
    """
    return run_command(
        ["sudo", "-u", user, "-H"] + list(command),
        app_settings,
        check=check,
        capture_output=capture_output,
        cmd_input=cmd_input,
        current_logger=current_logger,
        cwd=cwd,
        log_output=log_output,
    )


def command_exists(command_name: str) -> bool:
    """
    Check if a command exists in the system's PATH.
    """
    return shutil.which(command_name) is not None
