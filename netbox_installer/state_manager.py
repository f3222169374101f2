# netbox_installer/state_manager.py
# -*- coding: utf-8 -*-
"""
Manages the state file for tracking installation progress.

The state file is plain text: two header lines carrying the installer's
source hash and version, followed by one completed step tag per line. When
the installer's sources change, the recorded progress is discarded.
"""

import datetime
import logging
import re
from typing import List, Optional

from common.command_utils import get_symbols, log_message, run_elevated_command
from common.file_utils import read_text_file, write_file_elevated
from common.system_utils import get_current_script_hash
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

HASH_HEADER_PATTERN = re.compile(r"^# SCRIPT_HASH:\s*(\S+)", re.MULTILINE)


def _state_header(script_hash: Optional[str]) -> str:
    return (
        f"# SCRIPT_HASH: {script_hash or 'UNKNOWN_HASH'}\n"
        f"# Human-readable Script Version: {static_config.SCRIPT_VERSION}\n"
    )


def initialize_state_system(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Ensure the state directory and file exist, and clear the recorded
    progress if it was written by a different version of the installer.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    state_dir = static_config.STATE_FILE_PATH.parent

    current_hash = get_current_script_hash(
        project_root_dir=static_config.PROJECT_ROOT,
        app_settings=app_settings,
        logger_instance=logger_to_use,
    )

    if not state_dir.is_dir():
        log_message(
            f"{symbols.get('info', 'ℹ️')} Creating state directory: {state_dir}",
            "info",
            logger_to_use,
            app_settings,
        )
        run_elevated_command(
            ["mkdir", "-p", str(state_dir)],
            app_settings,
            current_logger=logger_to_use,
        )
        run_elevated_command(
            ["chmod", "755", str(state_dir)],
            app_settings,
            current_logger=logger_to_use,
        )

    content = read_text_file(
        static_config.STATE_FILE_PATH, app_settings, logger_to_use
    )
    if content is None:
        log_message(
            f"{symbols.get('info', 'ℹ️')} State file {static_config.STATE_FILE_PATH} does not exist. Initializing.",
            "info",
            logger_to_use,
            app_settings,
        )
        write_file_elevated(
            static_config.STATE_FILE_PATH,
            _state_header(current_hash),
            app_settings,
            logger_to_use,
            mode="644",
        )
        return

    stored_match = HASH_HEADER_PATTERN.search(content)
    stored_hash = stored_match.group(1) if stored_match else None
    if not current_hash or stored_hash != current_hash:
        log_message(
            f"{symbols.get('warning', '!')} SCRIPT_HASH mismatch. Stored: {stored_hash}, Current: {current_hash}. "
            "Clearing recorded progress.",
            "warning",
            logger_to_use,
            app_settings,
        )
        clear_state_file(
            app_settings,
            script_hash_to_write=current_hash,
            current_logger=logger_to_use,
        )


def clear_state_file(
    app_settings: AppSettings,
    script_hash_to_write: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Rewrite the state file with only its header lines."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    effective_hash = script_hash_to_write or get_current_script_hash(
        project_root_dir=static_config.PROJECT_ROOT,
        app_settings=app_settings,
        logger_instance=logger_to_use,
    )
    content_to_write = _state_header(effective_hash)
    content_to_write += f"# State cleared/re-initialized on {datetime.datetime.now().isoformat()}\n"
    write_file_elevated(
        static_config.STATE_FILE_PATH,
        content_to_write,
        app_settings,
        logger_to_use,
        mode="644",
    )
    log_message(
        f"{symbols.get('success', '✅')} State file re-initialized with SCRIPT_HASH: {effective_hash}.",
        "success",
        logger_to_use,
        app_settings,
    )


def view_completed_steps(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> List[str]:
    """Return the step tags recorded as completed, in completion order."""
    logger_to_use = current_logger if current_logger else module_logger
    content = read_text_file(
        static_config.STATE_FILE_PATH, app_settings, logger_to_use
    )
    if not content:
        return []
    return [
        line.strip()
        for line in content.splitlines()
        if line.strip() and not line.startswith("#")
    ]


def is_step_completed(
    step_tag: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    return step_tag in view_completed_steps(app_settings, current_logger)


def mark_step_completed(
    step_tag: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    if is_step_completed(step_tag, app_settings, logger_to_use):
        log_message(
            f"{symbols.get('info', 'ℹ️')} Step '{step_tag}' was already marked as completed.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return
    log_message(
        f"{symbols.get('info', 'ℹ️')} Marking step '{step_tag}' as completed.",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        ["tee", "-a", str(static_config.STATE_FILE_PATH)],
        app_settings,
        cmd_input=f"{step_tag}\n",
        capture_output=True,
        current_logger=logger_to_use,
        log_output=False,
    )
