#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logging setup for the NetBox installer.

Every record carries a per-level symbol and the installer's log prefix, so
console output and an optional log file read the same way.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from netbox_installer.config_models import SYMBOLS_DEFAULT

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Keys into AppSettings.symbols, by logging level.
LEVEL_SYMBOL_KEYS: Dict[int, str] = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
}


class SymbolFormatter(logging.Formatter):
    """Formatter that exposes the level's symbol as %(symbol)s."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        style: str = "%",
        validate: bool = True,
        symbols: Optional[Dict[str, str]] = None,
    ):
        super().__init__(fmt, datefmt, style, validate)
        self.symbols = symbols or SYMBOLS_DEFAULT

    def format(self, record: logging.LogRecord) -> str:
        symbol_key = LEVEL_SYMBOL_KEYS.get(record.levelno)
        record.symbol = self.symbols.get(symbol_key, "") if symbol_key else ""
        return super().format(record)


def _resolve_format(log_format_str: Optional[str], log_prefix: Optional[str]) -> str:
    """
    Put the prefix in front of the format, or into its {log_prefix}
    placeholder when it has one.
    """
    prefix = f"{log_prefix.strip()} " if log_prefix and log_prefix.strip() else ""
    base_format = log_format_str or LOG_FORMAT
    if "{log_prefix}" in base_format:
        return base_format.format(log_prefix=prefix)
    return prefix + base_format


def _build_handlers(log_file: Optional[str], log_to_console: bool) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if log_file:
        log_file_path = Path(log_file)
        try:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file_path, mode="a"))
        except OSError as e:
            print(
                f"Warning: Could not open log file {log_file}: {e}. Logging to the console only.",
                file=sys.stderr,
            )
    if log_to_console or not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))
    return handlers


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    log_format_str: Optional[str] = None,
    log_prefix: Optional[str] = None,
    symbols: Optional[Dict[str, str]] = None,
) -> None:
    """
    Point the root logger at stdout and, with `log_file`, at that file too.

    The installer calls this twice: once with defaults so settings loading
    can log, then again with the prefix and symbols from the loaded
    settings. Handlers from an earlier call are replaced.
    """
    formatter = SymbolFormatter(
        fmt=_resolve_format(log_format_str, log_prefix),
        datefmt=LOG_DATE_FORMAT,
        symbols=symbols,
    )
    handlers = _build_handlers(log_file, log_to_console)
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for old_handler in list(root_logger.handlers):
        root_logger.removeHandler(old_handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger(__name__).debug(
        "Logging configured at %s%s.",
        logging.getLevelName(log_level),
        f", also writing to {log_file}" if log_file else "",
    )
