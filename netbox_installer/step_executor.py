# netbox_installer/step_executor.py
# -*- coding: utf-8 -*-
"""
Provides functionality to execute individual installation steps.

A step is run, logged, and recorded as completed in the state file when it
succeeds. Any exception from the step aborts the pipeline as a
StepFailedError carrying the exit code the installer should return.
"""

import logging
import subprocess
from typing import Any, Callable, Optional

from common.command_utils import get_symbols, log_message
from netbox_installer.config_models import AppSettings
from netbox_installer.state_manager import (
    is_step_completed,
    mark_step_completed,
)

module_logger = logging.getLogger(__name__)

StepFunction = Callable[[AppSettings, Optional[logging.Logger]], Any]


class StepFailedError(Exception):
    """Raised when an installation step fails."""

    def __init__(self, step_tag: str, exit_code: int = 1, message: str = ""):
        self.step_tag = step_tag
        self.exit_code = exit_code
        super().__init__(
            message or f"Step '{step_tag}' failed with exit code {exit_code}"
        )


def exit_code_for(error: BaseException) -> int:
    """
    Map a step's exception to a process exit code: the failing command's
    return code when there is one (kept within 1..255), otherwise 1.
    """
    if isinstance(error, subprocess.CalledProcessError):
        return min(max(int(error.returncode), 1), 255)
    return 1


def execute_step(
    step_tag: str,
    step_description: str,
    step_function: StepFunction,
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger] = None,
    skip_completed: bool = False,
) -> bool:
    """
    Execute a single installation step.

    Args:
        step_tag: A unique string identifier for the step.
        step_description: A human-readable description of the step.
        step_function: The function to call to execute the step.
                       Expected signature: (app_settings, current_logger) -> Any
        app_settings: The application settings object.
        current_logger_instance: The logger instance to use.
        skip_completed: Skip the step if the state file already records it.

    Returns:
        True if the step ran, False if it was skipped.

    Raises:
        StepFailedError: If the step function raised.
    """
    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    symbols = get_symbols(app_settings)

    if skip_completed and is_step_completed(
        step_tag, app_settings=app_settings, current_logger=logger_to_use
    ):
        log_message(
            f"{symbols.get('info', 'ℹ️')} Step '{step_description}' ({step_tag}) is already marked as completed. Skipping.",
            "info",
            logger_to_use,
            app_settings,
        )
        return False

    log_message(
        f"--- {symbols.get('step', '➡️')} Executing: {step_description} ({step_tag}) ---",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        step_function(app_settings, logger_to_use)
    except Exception as e:
        exit_code = exit_code_for(e)
        log_message(
            f"{symbols.get('error', '❌')} FAILED: {step_description} ({step_tag})",
            "error",
            logger_to_use,
            app_settings,
        )
        log_message(
            f"   Error details: {str(e)}",
            "error",
            logger_to_use,
            app_settings,
            exc_info=True,
        )
        raise StepFailedError(step_tag, exit_code, str(e)) from e

    mark_step_completed(
        step_tag,
        app_settings=app_settings,
        current_logger=logger_to_use,
    )
    log_message(
        f"--- {symbols.get('success', '✅')} Successfully completed: {step_description} ({step_tag}) ---",
        "success",
        logger_to_use,
        app_settings,
    )
    return True
