# netbox_installer/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for installer configuration.

This module defines the structured settings for the installer,
including defaults, type annotations, and descriptions.
It utilizes Pydantic for data validation and settings management.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Default Static Values (can be overridden by config file/env/cli) ---
NETBOX_VERSION_DEFAULT: str = "latest"
NETBOX_REPO_URL_DEFAULT: str = "https://github.com/netbox-community/netbox.git"
NETBOX_USER_DEFAULT: str = "netbox"
NETBOX_GROUP_DEFAULT: str = "netbox"
INSTALL_DIR_DEFAULT: str = "/opt/netbox"
PYTHON_BIN_DEFAULT: str = "python3"
REDIS_CONF_DEFAULT: str = "/etc/redis/redis.conf"
DOMAIN_DEFAULT: str = "localhost"
LOG_PREFIX_DEFAULT: str = "[NETBOX-SETUP]"

DB_NAME_DEFAULT: str = "netbox"
DB_USER_DEFAULT: str = "netbox"
DB_PASSWORD_DEFAULT: str = "netboxpass"
DB_HOST_DEFAULT: str = "localhost"

ADMIN_USER_DEFAULT: str = "admin"
ADMIN_EMAIL_DEFAULT: str = "admin@example.com"
ADMIN_PASSWORD_DEFAULT: str = "adminpass"

GUNICORN_SOCKET_DEFAULT: str = "/run/netbox/netbox.sock"
GUNICORN_WORKERS_DEFAULT: int = 3

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅", "error": "❌", "warning": "⚠️", "info": "ℹ️",
    "step": "➡️", "gear": "⚙️", "package": "📦", "rocket": "🚀",
    "sparkles": "✨", "critical": "🔥", "debug": "🐛",
}

SYSTEMD_SERVICE_TEMPLATE_DEFAULT: str = """\
# netbox.service generated by netbox-installer V{script_hash}
[Unit]
Description=NetBox WSGI Service (gunicorn)
After=network.target postgresql.service redis-server.service

[Service]
User={netbox_user}
Group={netbox_group}
WorkingDirectory={working_dir}
{runtime_directory_line}ExecStart={gunicorn_bin} --workers {workers} --bind unix:{socket_path} netbox.wsgi
Restart=always

[Install]
WantedBy=multi-user.target
"""

NGINX_SITE_TEMPLATE_DEFAULT: str = """\
# nginx site generated by netbox-installer V{script_hash}
server {{
    listen 80;
    server_name {server_name};

    client_max_body_size 25m;
    access_log /var/log/nginx/netbox-access.log;
    error_log /var/log/nginx/netbox-error.log;

    location /static/ {{
        alias {static_root}/;
    }}

    location / {{
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_pass http://unix:{socket_path};
    }}
}}
"""


class NetboxSettings(BaseSettings):
    """NetBox source and service account settings."""
    model_config = SettingsConfigDict(env_prefix="NETBOX_", extra="ignore")

    version: str = Field(default=NETBOX_VERSION_DEFAULT,
                         description="Git tag/branch to check out, or 'latest' for the default branch.")
    repo_url: str = Field(default=NETBOX_REPO_URL_DEFAULT, description="NetBox git remote.")
    user: str = Field(default=NETBOX_USER_DEFAULT, description="System user that runs NetBox.")
    group: str = Field(default=NETBOX_GROUP_DEFAULT, description="System group that runs NetBox.")


class DatabaseSettings(BaseSettings):
    """PostgreSQL settings for the NetBox database."""
    model_config = SettingsConfigDict(env_prefix="DB_", extra="ignore")

    name: str = Field(default=DB_NAME_DEFAULT, description="PostgreSQL database name.")
    user: str = Field(default=DB_USER_DEFAULT, description="PostgreSQL role owning the database.")
    password: str = Field(default=DB_PASSWORD_DEFAULT, description="PostgreSQL role password.", repr=False)
    host: str = Field(default=DB_HOST_DEFAULT, description="Host NetBox connects to.")
    port: str = Field(default="", description="Port NetBox connects to (empty for the default).")


class AdminSettings(BaseSettings):
    """Initial NetBox superuser."""
    model_config = SettingsConfigDict(env_prefix="ADMIN_", extra="ignore")

    user: str = Field(default=ADMIN_USER_DEFAULT, description="Superuser name.")
    email: str = Field(default=ADMIN_EMAIL_DEFAULT, description="Superuser e-mail.")
    password: str = Field(default=ADMIN_PASSWORD_DEFAULT, description="Superuser password.", repr=False)


class GunicornSettings(BaseSettings):
    """gunicorn process server and its systemd unit."""
    model_config = SettingsConfigDict(env_prefix="GUNICORN_", extra="ignore")

    socket: str = Field(default=GUNICORN_SOCKET_DEFAULT, description="Unix socket gunicorn binds to.")
    workers: int = Field(default=GUNICORN_WORKERS_DEFAULT, ge=1, description="Number of gunicorn workers.")
    service_name: str = Field(default="netbox.service", description="systemd unit name.")
    service_template: str = Field(
        default=SYSTEMD_SERVICE_TEMPLATE_DEFAULT,
        description="Template for the systemd unit. Supports {netbox_user}, {netbox_group}, {working_dir}, "
                    "{gunicorn_bin}, {workers}, {socket_path}, {runtime_directory_line}, {script_hash}."
    )

    @field_validator("socket")
    @classmethod
    def _socket_must_be_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"gunicorn socket must be an absolute path, got '{value}'")
        return value


class NginxSettings(BaseSettings):
    """nginx reverse proxy site."""
    model_config = SettingsConfigDict(env_prefix="NGINX_", extra="ignore")

    site_name: str = Field(default="netbox", description="File name under sites-available/sites-enabled.")
    disable_default_site: bool = Field(default=True, description="Remove the stock 'default' site link.")
    site_template: str = Field(
        default=NGINX_SITE_TEMPLATE_DEFAULT,
        description="Template for the site definition. Supports {server_name}, {static_root}, "
                    "{socket_path}, {script_hash}."
    )


class CacheParameters(BaseModel):
    """Redis connection parameters written into the NetBox configuration."""

    host: str = "localhost"
    port: int = 6379
    password: str = Field(default="", repr=False)


class AppSettings(BaseSettings):
    """Main installer settings."""
    model_config = SettingsConfigDict(extra="ignore")

    install_dir: str = Field(default=INSTALL_DIR_DEFAULT, description="Where NetBox is cloned.")
    python_bin: str = Field(default=PYTHON_BIN_DEFAULT, description="Python interpreter used for the venv.")
    venv_dir: Optional[str] = Field(default=None, description="Virtualenv path (defaults to INSTALL_DIR/venv).")
    redis_conf: str = Field(default=REDIS_CONF_DEFAULT, description="Redis server configuration file.")
    domain: str = Field(default=DOMAIN_DEFAULT, description="Domain nginx serves NetBox on.")
    allowed_hosts: Optional[str] = Field(default=None,
                                         description="Comma or space separated ALLOWED_HOSTS (defaults to DOMAIN).")
    log_prefix: str = Field(default=LOG_PREFIX_DEFAULT, description="Prefix for installer log messages.")

    netbox: NetboxSettings = Field(default_factory=NetboxSettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)
    gunicorn: GunicornSettings = Field(default_factory=GunicornSettings)
    nginx: NginxSettings = Field(default_factory=NginxSettings)

    symbols: Dict[str, str] = Field(default_factory=lambda: dict(SYMBOLS_DEFAULT))

    @property
    def effective_venv_dir(self) -> Path:
        if self.venv_dir:
            return Path(self.venv_dir)
        return Path(self.install_dir) / "venv"

    @property
    def allowed_hosts_list(self) -> List[str]:
        raw = self.allowed_hosts if self.allowed_hosts else self.domain
        return [host for host in re.split(r"[,\s]+", raw) if host]
