from pathlib import Path

import pytest
from pydantic import ValidationError

from netbox_installer.config_models import (
    GUNICORN_SOCKET_DEFAULT,
    AppSettings,
    GunicornSettings,
)


def test_defaults(app_settings):
    assert app_settings.netbox.version == "latest"
    assert app_settings.netbox.user == "netbox"
    assert app_settings.install_dir == "/opt/netbox"
    assert app_settings.db.name == "netbox"
    assert app_settings.db.host == "localhost"
    assert app_settings.db.port == ""
    assert app_settings.admin.user == "admin"
    assert app_settings.gunicorn.socket == GUNICORN_SOCKET_DEFAULT
    assert app_settings.gunicorn.workers == 3
    assert app_settings.log_prefix == "[NETBOX-SETUP]"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("NETBOX_VERSION", "v4.1.0")
    monkeypatch.setenv("DB_PASSWORD", "s3cret")
    monkeypatch.setenv("INSTALL_DIR", "/srv/netbox")
    monkeypatch.setenv("GUNICORN_WORKERS", "5")

    settings = AppSettings()

    assert settings.netbox.version == "v4.1.0"
    assert settings.db.password == "s3cret"
    assert settings.install_dir == "/srv/netbox"
    assert settings.gunicorn.workers == 5


def test_effective_venv_dir_defaults_under_install_dir():
    assert AppSettings(install_dir="/srv/netbox").effective_venv_dir == Path("/srv/netbox/venv")
    assert AppSettings(venv_dir="/opt/venvs/nb").effective_venv_dir == Path("/opt/venvs/nb")


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, ["netbox.example.com"]),
        ("a.example.com,b.example.com", ["a.example.com", "b.example.com"]),
        ("a.example.com  b.example.com", ["a.example.com", "b.example.com"]),
        ("a.example.com, b.example.com,", ["a.example.com", "b.example.com"]),
    ],
)
def test_allowed_hosts_list(raw, expected):
    settings = AppSettings(domain="netbox.example.com", allowed_hosts=raw)
    assert settings.allowed_hosts_list == expected


def test_passwords_hidden_from_repr(app_settings):
    assert "netboxpass" not in repr(app_settings.db)
    assert "adminpass" not in repr(app_settings.admin)


def test_socket_must_be_absolute():
    with pytest.raises(ValidationError):
        GunicornSettings(socket="netbox.sock")


def test_workers_must_be_positive():
    with pytest.raises(ValidationError):
        GunicornSettings(workers=0)
