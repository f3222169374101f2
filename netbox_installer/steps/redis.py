# netbox_installer/steps/redis.py
# -*- coding: utf-8 -*-
"""
Enables the Redis server and reads the connection parameters NetBox needs
from its configuration file.
"""

import logging
from typing import Optional

from common.command_utils import get_symbols, log_message
from common.file_utils import read_text_file
from common.system_utils import enable_and_start_service
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings, CacheParameters

module_logger = logging.getLogger(__name__)


def parse_redis_conf(content: str, source: str = "redis.conf") -> CacheParameters:
    """
    Extract `port` and `requirepass` from redis.conf content.

    Later directives win, as they do for redis-server. Quoted values are
    unquoted.

    Raises:
        ValueError: If `port` is not an integer. The message names `source`.
    """
    values = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        if len(parts) != 2:
            continue
        directive, value = parts[0].lower(), parts[1].strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        if directive == "port":
            try:
                values["port"] = int(value)
            except ValueError as e:
                raise ValueError(
                    f"Invalid port {value!r} in Redis configuration {source}"
                ) from e
        elif directive == "requirepass":
            values["password"] = value
    return CacheParameters(**values)


def read_cache_parameters(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> CacheParameters:
    """
    Cache parameters from REDIS_CONF, or the defaults (localhost:6379, no
    password) when the file is absent.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    content = read_text_file(app_settings.redis_conf, app_settings, logger_to_use)
    if content is None:
        log_message(
            f"{symbols.get('warning', '!')} Redis configuration {app_settings.redis_conf} not found. Using default connection parameters.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return CacheParameters()
    return parse_redis_conf(content, source=app_settings.redis_conf)


def setup_redis(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    enable_and_start_service(
        static_config.REDIS_SERVICE, app_settings, logger_to_use
    )
    cache = read_cache_parameters(app_settings, logger_to_use)
    log_message(
        f"{symbols.get('success', '✅')} Redis is running on {cache.host}:{cache.port} "
        f"({'password protected' if cache.password else 'no password'}).",
        "success",
        logger_to_use,
        app_settings,
    )
