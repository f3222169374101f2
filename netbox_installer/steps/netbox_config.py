# netbox_installer/steps/netbox_config.py
# -*- coding: utf-8 -*-
"""
Writes NetBox's configuration.py.

The installer owns a single block of settings delimited by marker comments.
Each run regenerates that block and replaces it in place, or appends it when
the file has none yet. Everything outside the markers is left untouched.
"""

import ast
import logging
import re
import secrets
from pathlib import Path
from typing import List, Optional, Tuple

from common.command_utils import get_symbols, log_message
from common.file_utils import backup_file, read_text_file, write_file_elevated
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings, CacheParameters
from netbox_installer.steps.redis import read_cache_parameters

module_logger = logging.getLogger(__name__)

CONFIG_FILE_MODE = "640"
REDIS_TASKS_DATABASE = 0
REDIS_CACHING_DATABASE = 1
POSTGRES_ENGINE = "django.db.backends.postgresql"

# NetBox 4.3 replaced DATABASE with Django's DATABASES and rejects both being set.
DATABASES_ASSIGNMENT = re.compile(r"^DATABASES\s*=", re.MULTILINE)


def generate_secret_key() -> str:
    """64 hex characters, comfortably above Django's 50 character minimum."""
    return secrets.token_hex(32)


def find_managed_block(lines: List[str]) -> Optional[Tuple[int, int]]:
    """
    Locate the managed block in a list of lines.

    Returns:
        (begin, end) line indexes of the two markers, or None if there is no
        begin marker.

    Raises:
        RuntimeError: If the begin marker has no matching end marker.
    """
    begin = None
    for index, line in enumerate(lines):
        stripped = line.strip()
        if begin is None and stripped == static_config.MANAGED_BLOCK_BEGIN:
            begin = index
        elif begin is not None and stripped == static_config.MANAGED_BLOCK_END:
            return begin, index
    if begin is not None:
        raise RuntimeError(
            f"Found '{static_config.MANAGED_BLOCK_BEGIN}' without a matching end marker. "
            "Fix the configuration file by hand."
        )
    return None


def existing_secret_key(content: str) -> Optional[str]:
    """The SECRET_KEY assigned inside the managed block, if any."""
    lines = content.splitlines(keepends=True)
    bounds = find_managed_block(lines)
    if bounds is None:
        return None
    begin, end = bounds
    for line in lines[begin + 1:end]:
        name, sep, value = line.partition("=")
        if not sep or name.strip() != "SECRET_KEY":
            continue
        try:
            parsed = ast.literal_eval(value.strip())
        except (ValueError, SyntaxError):
            return None
        if isinstance(parsed, str) and parsed:
            return parsed
    return None


def uses_databases_setting(content: str) -> bool:
    """True if the configuration outside the managed block assigns DATABASES."""
    lines = content.splitlines(keepends=True)
    bounds = find_managed_block(lines)
    if bounds is not None:
        begin, end = bounds
        lines = lines[:begin] + lines[end + 1:]
    return bool(DATABASES_ASSIGNMENT.search("".join(lines)))


def _database_entry(app_settings: AppSettings, indent: str) -> List[str]:
    db = app_settings.db
    return [
        f"{indent}'NAME': {db.name!r},",
        f"{indent}'USER': {db.user!r},",
        f"{indent}'PASSWORD': {db.password!r},",
        f"{indent}'HOST': {db.host!r},",
        f"{indent}'PORT': {db.port!r},",
    ]


def _redis_entry(cache: CacheParameters, database: int) -> List[str]:
    return [
        f"        'HOST': {cache.host!r},",
        f"        'PORT': {cache.port!r},",
        f"        'PASSWORD': {cache.password!r},",
        f"        'DATABASE': {database!r},",
        "        'SSL': False,",
    ]


def render_managed_block(
    app_settings: AppSettings,
    cache: CacheParameters,
    secret_key: str,
    databases_layout: bool = False,
) -> str:
    """
    Render the managed settings block, markers included.

    With `databases_layout` the connection is written as Django's
    `DATABASES = {'default': {...}}` instead of NetBox's older `DATABASE`.
    """
    if databases_layout:
        database_lines = [
            "DATABASES = {",
            "    'default': {",
            f"        'ENGINE': {POSTGRES_ENGINE!r},",
            *_database_entry(app_settings, "        "),
            "    },",
            "}",
        ]
    else:
        database_lines = [
            "DATABASE = {",
            *_database_entry(app_settings, "    "),
            "}",
        ]
    lines = [
        static_config.MANAGED_BLOCK_BEGIN,
        f"SECRET_KEY = {secret_key!r}",
        f"ALLOWED_HOSTS = {app_settings.allowed_hosts_list!r}",
        "",
        *database_lines,
        "",
        "REDIS = {",
        "    'tasks': {",
        *_redis_entry(cache, REDIS_TASKS_DATABASE),
        "    },",
        "    'caching': {",
        *_redis_entry(cache, REDIS_CACHING_DATABASE),
        "    },",
        "}",
        static_config.MANAGED_BLOCK_END,
    ]
    return "\n".join(lines) + "\n"


def merge_managed_block(content: str, block: str) -> str:
    """Replace the managed block in `content`, or append it once."""
    lines = content.splitlines(keepends=True)
    bounds = find_managed_block(lines)
    if bounds is not None:
        begin, end = bounds
        return "".join(lines[:begin]) + block + "".join(lines[end + 1:])
    if content and not content.endswith("\n"):
        content += "\n"
    separator = "\n" if content else ""
    return content + separator + block


def _read_template(
    config_dir: Path,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    for filename in static_config.CONFIG_EXAMPLE_FILENAMES:
        content = read_text_file(config_dir / filename, app_settings, current_logger)
        if content is not None:
            return content
    raise FileNotFoundError(
        f"No NetBox configuration template ({', '.join(static_config.CONFIG_EXAMPLE_FILENAMES)}) in {config_dir}"
    )


def configure_netbox(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Create or update configuration.py with the installer's managed block.

    Raises:
        FileNotFoundError: If configuration.py is missing and no example
            template ships with the source tree.
        RuntimeError: If the file holds a half-deleted managed block.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    config_dir = Path(app_settings.install_dir) / static_config.CONFIG_DIR
    config_path = config_dir / static_config.CONFIG_FILENAME

    current_content = read_text_file(config_path, app_settings, logger_to_use)
    if current_content is None:
        log_message(
            f"{symbols.get('info', 'ℹ️')} {config_path} not found. Starting from the example configuration.",
            "info",
            logger_to_use,
            app_settings,
        )
        base_content = _read_template(config_dir, app_settings, logger_to_use)
    else:
        base_content = current_content

    secret_key = existing_secret_key(base_content) or generate_secret_key()
    cache = read_cache_parameters(app_settings, logger_to_use)
    block = render_managed_block(
        app_settings,
        cache,
        secret_key,
        databases_layout=uses_databases_setting(base_content),
    )
    new_content = merge_managed_block(base_content, block)

    if new_content == current_content:
        log_message(
            f"{symbols.get('info', 'ℹ️')} {config_path} is up to date.",
            "info",
            logger_to_use,
            app_settings,
        )
        return

    if current_content is not None:
        backup_file(str(config_path), app_settings, logger_to_use)
    write_file_elevated(
        config_path,
        new_content,
        app_settings,
        logger_to_use,
        mode=CONFIG_FILE_MODE,
        owner=f"{app_settings.netbox.user}:{app_settings.netbox.group}",
    )
    log_message(
        f"{symbols.get('success', '✅')} Wrote NetBox settings to {config_path}.",
        "success",
        logger_to_use,
        app_settings,
    )
