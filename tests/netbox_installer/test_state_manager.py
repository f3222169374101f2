from pathlib import Path

import pytest

from netbox_installer import config as static_config
from netbox_installer import state_manager
from netbox_installer.state_manager import (
    clear_state_file,
    initialize_state_system,
    is_step_completed,
    mark_step_completed,
    view_completed_steps,
)

STATE_CONTENT = (
    "# SCRIPT_HASH: abc123\n"
    "# Human-readable Script Version: 1.0\n"
    "PACKAGES\n"
    "POSTGRES\n"
)


@pytest.fixture
def state_path(tmp_path, monkeypatch) -> Path:
    path = tmp_path / "state" / "progress_state.txt"
    monkeypatch.setattr(static_config, "STATE_FILE_PATH", path)
    return path


@pytest.fixture
def mock_write(mocker):
    return mocker.patch("netbox_installer.state_manager.write_file_elevated")


@pytest.fixture
def mock_elevated(mocker):
    return mocker.patch("netbox_installer.state_manager.run_elevated_command")


def test_view_completed_steps_skips_headers(mocker, app_settings):
    mocker.patch("netbox_installer.state_manager.read_text_file", return_value=STATE_CONTENT)

    assert view_completed_steps(app_settings) == ["PACKAGES", "POSTGRES"]
    assert is_step_completed("POSTGRES", app_settings) is True
    assert is_step_completed("NGINX", app_settings) is False


def test_view_completed_steps_without_file(mocker, app_settings):
    mocker.patch("netbox_installer.state_manager.read_text_file", return_value=None)

    assert view_completed_steps(app_settings) == []


def test_mark_step_completed_appends(mocker, app_settings, state_path, mock_elevated):
    mocker.patch("netbox_installer.state_manager.read_text_file", return_value=STATE_CONTENT)

    mark_step_completed("NGINX", app_settings)

    mock_elevated.assert_called_once()
    assert mock_elevated.call_args.args[0] == ["tee", "-a", str(state_path)]
    assert mock_elevated.call_args.kwargs["cmd_input"] == "NGINX\n"


def test_mark_step_completed_is_idempotent(mocker, app_settings, state_path, mock_elevated):
    mocker.patch("netbox_installer.state_manager.read_text_file", return_value=STATE_CONTENT)

    mark_step_completed("PACKAGES", app_settings)

    mock_elevated.assert_not_called()


def test_initialize_creates_missing_file(mocker, app_settings, state_path, mock_write, mock_elevated):
    mocker.patch("netbox_installer.state_manager.get_current_script_hash", return_value="abc123")
    mocker.patch("netbox_installer.state_manager.read_text_file", return_value=None)

    initialize_state_system(app_settings)

    commands = [c.args[0] for c in mock_elevated.call_args_list]
    assert ["mkdir", "-p", str(state_path.parent)] in commands
    written = mock_write.call_args.args[1]
    assert written.startswith("# SCRIPT_HASH: abc123\n")


def test_initialize_keeps_state_when_hash_matches(mocker, app_settings, state_path, mock_write, mock_elevated):
    state_path.parent.mkdir(parents=True)
    mocker.patch("netbox_installer.state_manager.get_current_script_hash", return_value="abc123")
    mocker.patch("netbox_installer.state_manager.read_text_file", return_value=STATE_CONTENT)

    initialize_state_system(app_settings)

    mock_write.assert_not_called()


def test_initialize_clears_state_on_hash_mismatch(mocker, app_settings, state_path, mock_write, mock_elevated):
    state_path.parent.mkdir(parents=True)
    mocker.patch("netbox_installer.state_manager.get_current_script_hash", return_value="newhash")
    mocker.patch("netbox_installer.state_manager.read_text_file", return_value=STATE_CONTENT)

    initialize_state_system(app_settings)

    written = mock_write.call_args.args[1]
    assert written.startswith("# SCRIPT_HASH: newhash\n")
    assert "PACKAGES" not in written


def test_clear_state_file_writes_header_only(mocker, app_settings, state_path, mock_write):
    mocker.patch.object(state_manager, "get_current_script_hash", return_value="abc123")

    clear_state_file(app_settings)

    path, content = mock_write.call_args.args[:2]
    assert path == state_path
    assert [line for line in content.splitlines() if not line.startswith("#")] == []
    assert mock_write.call_args.kwargs["mode"] == "644"
