# netbox_installer/config.py
# -*- coding: utf-8 -*-
"""
Centralized static constants for the NetBox installer.

This module defines truly static values for the installer, such as the apt
package list, fixed system paths, and the state file location.

Mutable runtime configuration (database credentials, domain, versions)
is handled by 'netbox_installer/config_models.py' and
'netbox_installer/config_loader.py'.
"""

from pathlib import Path

SCRIPT_VERSION: str = "1.0"

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
# Top-level packages under PROJECT_ROOT whose sources make up SCRIPT_HASH.
HASHED_PACKAGES: tuple[str, ...] = ("common", "netbox_installer")

STATE_FILE_DIR: str = "/var/lib/netbox-installer"
STATE_FILE_PATH: Path = Path(STATE_FILE_DIR) / "progress_state.txt"

CORE_PACKAGES: list[str] = [
    "sudo",
    "git",
    "curl",
    "wget",
    "gnupg",
    "lsb-release",
    "ca-certificates",
    "openssl",
    "build-essential",
    "gcc",
    "libpq-dev",
]

SERVICE_PACKAGES: list[str] = [
    "postgresql",
    "postgresql-contrib",
    "redis-server",
    "nginx",
]

# Suffixes appended to the configured interpreter name, e.g. python3-venv.
PYTHON_PACKAGE_SUFFIXES: list[str] = ["", "-venv", "-dev"]

POSTGRES_SERVICE: str = "postgresql"
REDIS_SERVICE: str = "redis-server"
NGINX_SERVICE: str = "nginx"

SYSTEMD_UNIT_DIR: str = "/etc/systemd/system"
NGINX_SITES_AVAILABLE_DIR: str = "/etc/nginx/sites-available"
NGINX_SITES_ENABLED_DIR: str = "/etc/nginx/sites-enabled"
NOLOGIN_SHELL: str = "/usr/sbin/nologin"

# Relative to the install directory.
NETBOX_APP_DIR: str = "netbox"
MANAGE_PY: str = "netbox/manage.py"
CONFIG_DIR: str = "netbox/netbox"
CONFIG_FILENAME: str = "configuration.py"
CONFIG_EXAMPLE_FILENAMES: list[str] = [
    "configuration_example.py",
    "configuration.example.py",
]
STATIC_DIR: str = "netbox/static"
REQUIREMENTS_FILE: str = "requirements.txt"

MANAGED_BLOCK_BEGIN: str = "# --- netbox-installer managed block: begin ---"
MANAGED_BLOCK_END: str = "# --- netbox-installer managed block: end ---"

# Never chown these, whatever the socket path points at.
PROTECTED_DIRECTORIES: frozenset[str] = frozenset(
    {"/", "/run", "/var/run", "/tmp", "/var", "/etc", "/usr", "/opt", "/home"}
)
