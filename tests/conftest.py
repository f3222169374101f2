# tests/conftest.py
import logging
from unittest.mock import MagicMock

import pytest

from netbox_installer.config_models import SYMBOLS_DEFAULT, AppSettings

SETTINGS_ENV_VARS = [
    "NETBOX_VERSION", "NETBOX_REPO_URL", "NETBOX_USER", "NETBOX_GROUP",
    "INSTALL_DIR", "PYTHON_BIN", "VENV_DIR", "REDIS_CONF", "DOMAIN",
    "ALLOWED_HOSTS", "LOG_PREFIX", "DB_NAME", "DB_USER", "DB_PASSWORD",
    "DB_HOST", "DB_PORT", "ADMIN_USER", "ADMIN_EMAIL", "ADMIN_PASSWORD",
    "GUNICORN_SOCKET", "GUNICORN_WORKERS",
]


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    """Keep the host's environment out of AppSettings."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def app_settings():
    """AppSettings with the defaults, built without touching the host."""
    return AppSettings()


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def mock_app_settings():
    mock_settings = MagicMock(spec=AppSettings)
    mock_settings.symbols = dict(SYMBOLS_DEFAULT)
    return mock_settings
