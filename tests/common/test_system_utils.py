# tests/common/test_system_utils.py
import hashlib
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

import common.system_utils as system_utils
from common.system_utils import (
    calculate_project_hash,
    enable_and_start_service,
    get_current_script_hash,
    is_service_active,
    system_group_exists,
    system_user_exists,
    systemd_reload,
)
from netbox_installer import config as static_config


@pytest.fixture(autouse=True)
def reset_cached_script_hash(monkeypatch):
    """Reset CACHED_SCRIPT_HASH around each test."""
    monkeypatch.setattr(system_utils, "CACHED_SCRIPT_HASH", None)


def _write(root: Path, relative: str, content: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_calculate_project_hash_covers_paths_and_content(tmp_path, app_settings, mock_logger):
    _write(tmp_path, "b.py", "B")
    _write(tmp_path, "pkg/a.py", "A")
    _write(tmp_path, "notes.txt", "ignored")

    expected = hashlib.sha256()
    for relative, content in (("b.py", b"B"), ("pkg/a.py", b"A")):
        expected.update(relative.encode("utf-8"))
        expected.update(content)

    assert calculate_project_hash(tmp_path, app_settings, mock_logger) == expected.hexdigest()


def test_calculate_project_hash_ignores_tests_dir(tmp_path, app_settings):
    _write(tmp_path, "a.py", "A")
    before = calculate_project_hash(tmp_path, app_settings)
    _write(tmp_path, "tests/test_a.py", "T")

    assert calculate_project_hash(tmp_path, app_settings) == before


def test_calculate_project_hash_changes_with_content(tmp_path, app_settings):
    _write(tmp_path, "a.py", "A")
    before = calculate_project_hash(tmp_path, app_settings)
    _write(tmp_path, "a.py", "A2")

    assert calculate_project_hash(tmp_path, app_settings) != before


def test_calculate_project_hash_missing_root(tmp_path, app_settings, mock_logger):
    assert calculate_project_hash(tmp_path / "missing", app_settings, mock_logger) is None
    mock_logger.error.assert_called_once()


def test_get_current_script_hash_is_cached(mocker, tmp_path, app_settings):
    mock_calc = mocker.patch(
        "common.system_utils.calculate_project_hash", return_value="abc"
    )

    assert get_current_script_hash(tmp_path, app_settings) == "abc"
    assert get_current_script_hash(tmp_path, app_settings) == "abc"
    mock_calc.assert_called_once()


def test_calculate_project_hash_limited_to_packages(tmp_path, app_settings):
    _write(tmp_path, "common/a.py", "A")
    _write(tmp_path, "netbox_installer/b.py", "B")
    _write(tmp_path, "requests/api.py", "third party")
    packages = ("common", "netbox_installer")
    before = calculate_project_hash(tmp_path, app_settings, package_names=packages)

    _write(tmp_path, "requests/api.py", "upgraded")
    _write(tmp_path, "yaml/__init__.py", "new dependency")

    assert calculate_project_hash(tmp_path, app_settings, package_names=packages) == before

    expected = hashlib.sha256()
    for relative, content in (("common/a.py", b"A"), ("netbox_installer/b.py", b"B")):
        expected.update(relative.encode("utf-8"))
        expected.update(content)
    assert before == expected.hexdigest()


def test_get_current_script_hash_only_hashes_installer_packages(tmp_path, app_settings):
    _write(tmp_path, "common/a.py", "A")
    _write(tmp_path, "netbox_installer/b.py", "B")
    _write(tmp_path, "site_package/c.py", "C")
    expected = calculate_project_hash(
        tmp_path, app_settings, package_names=("common", "netbox_installer")
    )

    assert get_current_script_hash(tmp_path, app_settings) == expected


def test_systemd_reload(mocker, app_settings, mock_logger):
    mock_elevated = mocker.patch("common.system_utils.run_elevated_command")

    systemd_reload(app_settings, mock_logger)

    mock_elevated.assert_called_once_with(
        ["systemctl", "daemon-reload"], app_settings, current_logger=mock_logger
    )


def test_systemd_reload_failure_propagates(mocker, app_settings):
    mocker.patch(
        "common.system_utils.run_elevated_command",
        side_effect=subprocess.CalledProcessError(1, ["systemctl"]),
    )

    with pytest.raises(subprocess.CalledProcessError):
        systemd_reload(app_settings)


def test_enable_and_start_service(mocker, app_settings, mock_logger):
    mock_elevated = mocker.patch("common.system_utils.run_elevated_command")

    enable_and_start_service("redis-server", app_settings, mock_logger)

    mock_elevated.assert_called_once_with(
        ["systemctl", "enable", "--now", "redis-server"],
        app_settings,
        current_logger=mock_logger,
    )


def test_is_service_active(mocker, app_settings):
    mocker.patch(
        "common.system_utils.run_elevated_command",
        side_effect=[MagicMock(returncode=0), MagicMock(returncode=3)],
    )

    assert is_service_active("nginx", app_settings) is True
    assert is_service_active("nginx", app_settings) is False


def test_system_user_and_group_exist(mocker, app_settings):
    mock_run = mocker.patch(
        "common.system_utils.run_command",
        side_effect=[MagicMock(returncode=0), MagicMock(returncode=2)],
    )

    assert system_user_exists("netbox", app_settings) is True
    assert system_group_exists("netbox", app_settings) is False
    commands = [c.args[0] for c in mock_run.call_args_list]
    assert commands == [["id", "netbox"], ["getent", "group", "netbox"]]


def test_hashed_packages_are_the_installer_packages():
    for name in static_config.HASHED_PACKAGES:
        assert (static_config.PROJECT_ROOT / name / "__init__.py").is_file()
    assert set(static_config.HASHED_PACKAGES) == {"common", "netbox_installer"}
