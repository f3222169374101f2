# netbox_installer/steps/postgres.py
# -*- coding: utf-8 -*-
"""
Provisions the PostgreSQL role and database NetBox connects with.

SQL is fed to psql on stdin. Identifiers travel as psql variables and are
quoted by psql itself (`:"name"`, `:'name'`). The password is embedded as a
quoted literal in the stdin script, so it never appears on a logged command
line.
"""

import logging
from typing import Dict, Optional

from common.command_utils import get_symbols, log_message, run_as_user
from common.system_utils import enable_and_start_service
from netbox_installer import config as static_config
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

POSTGRES_OS_USER = "postgres"
PSQL_BASE_COMMAND = ["psql", "-X", "-q", "-tA", "-v", "ON_ERROR_STOP=1"]


def quote_literal(value: str) -> str:
    """Quote a string as an SQL literal (standard_conforming_strings on)."""
    return "'" + value.replace("'", "''") + "'"


def run_psql(
    sql: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    variables: Optional[Dict[str, str]] = None,
    log_output: bool = True,
) -> str:
    """
    Run an SQL script as the postgres superuser and return its stripped
    stdout.

    Raises:
        subprocess.CalledProcessError: If psql reports an error.
    """
    command = list(PSQL_BASE_COMMAND)
    for name, value in (variables or {}).items():
        command += ["-v", f"{name}={value}"]
    result = run_as_user(
        command,
        POSTGRES_OS_USER,
        app_settings,
        capture_output=True,
        cmd_input=sql,
        current_logger=current_logger,
        cwd="/",
        log_output=log_output,
    )
    return (result.stdout or "").strip()


def role_exists(
    role_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    output = run_psql(
        "SELECT 1 FROM pg_catalog.pg_roles WHERE rolname = :'role_name';\n",
        app_settings,
        current_logger,
        variables={"role_name": role_name},
    )
    return output == "1"


def database_owner(
    db_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Return the owner of the database, or None if it does not exist."""
    output = run_psql(
        "SELECT pg_catalog.pg_get_userbyid(datdba) FROM pg_catalog.pg_database "
        "WHERE datname = :'db_name';\n",
        app_settings,
        current_logger,
        variables={"db_name": db_name},
    )
    return output or None


def ensure_role(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Create the login role, or reset the password and LOGIN attribute of an
    existing one so it matches the configuration.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    role_name = app_settings.db.user
    password_literal = quote_literal(app_settings.db.password)

    if role_exists(role_name, app_settings, logger_to_use):
        log_message(
            f"{symbols.get('info', 'ℹ️')} PostgreSQL role '{role_name}' exists. Updating its password.",
            "info",
            logger_to_use,
            app_settings,
        )
        sql = f'ALTER ROLE :"role_name" WITH LOGIN PASSWORD {password_literal};\n'
    else:
        log_message(
            f"{symbols.get('gear', '⚙️')} Creating PostgreSQL role '{role_name}'...",
            "info",
            logger_to_use,
            app_settings,
        )
        sql = f'CREATE ROLE :"role_name" WITH LOGIN PASSWORD {password_literal};\n'

    run_psql(
        sql,
        app_settings,
        logger_to_use,
        variables={"role_name": role_name},
        log_output=False,
    )


def ensure_database(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Create the database owned by the role, or fix the owner of an existing one."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    db_name = app_settings.db.name
    db_user = app_settings.db.user
    variables = {"db_name": db_name, "role_name": db_user}

    owner = database_owner(db_name, app_settings, logger_to_use)
    if owner is None:
        log_message(
            f"{symbols.get('gear', '⚙️')} Creating PostgreSQL database '{db_name}' owned by '{db_user}'...",
            "info",
            logger_to_use,
            app_settings,
        )
        run_psql(
            'CREATE DATABASE :"db_name" OWNER :"role_name";\n',
            app_settings,
            logger_to_use,
            variables=variables,
        )
    elif owner != db_user:
        log_message(
            f"{symbols.get('warning', '!')} Database '{db_name}' is owned by '{owner}'. Changing owner to '{db_user}'.",
            "warning",
            logger_to_use,
            app_settings,
        )
        run_psql(
            'ALTER DATABASE :"db_name" OWNER TO :"role_name";\n',
            app_settings,
            logger_to_use,
            variables=variables,
        )
    else:
        log_message(
            f"{symbols.get('info', 'ℹ️')} PostgreSQL database '{db_name}' exists and is owned by '{db_user}'.",
            "info",
            logger_to_use,
            app_settings,
        )


def setup_postgres(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Start PostgreSQL, then converge the NetBox role and database."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    enable_and_start_service(
        static_config.POSTGRES_SERVICE, app_settings, logger_to_use
    )
    ensure_role(app_settings, logger_to_use)
    ensure_database(app_settings, logger_to_use)
    log_message(
        f"{symbols.get('success', '✅')} PostgreSQL role and database are ready.",
        "success",
        logger_to_use,
        app_settings,
    )
