import pytest

from netbox_installer import cli_handler
from netbox_installer.cli_handler import view_configuration, view_state


@pytest.fixture(autouse=True)
def no_script_hash(mocker):
    mocker.patch.object(cli_handler, "get_current_script_hash", return_value="abc")


def _logged(mock_logger) -> str:
    messages = [
        str(call.args[0])
        for method in (mock_logger.info, mock_logger.warning)
        for call in method.call_args_list
    ]
    return "\n".join(messages)


def test_view_configuration_warns_on_default_passwords(app_settings, mock_logger):
    view_configuration(app_settings, mock_logger)

    assert mock_logger.warning.call_count == 2
    output = _logged(mock_logger)
    assert "DB_PASSWORD still has its default value" in output
    assert "ADMIN_PASSWORD still has its default value" in output
    assert "[DEFAULT - Insecure! Override via ENV or YAML]" in output


def test_view_configuration_never_shows_passwords(app_settings, mock_logger):
    app_settings.db.password = "db-s3cret"
    app_settings.admin.password = "admin-s3cret"

    view_configuration(app_settings, mock_logger)

    output = _logged(mock_logger)
    assert "db-s3cret" not in output
    assert "admin-s3cret" not in output
    assert "[FROM CONFIGURATION (ENV/YAML)]" in output
    mock_logger.warning.assert_not_called()


def test_view_state_lists_completed_steps(mocker, app_settings, mock_logger):
    mocker.patch.object(cli_handler, "view_completed_steps", return_value=["PACKAGES", "POSTGRES"])

    view_state(app_settings, mock_logger)

    output = _logged(mock_logger)
    assert "1. PACKAGES" in output
    assert "2. POSTGRES" in output


def test_view_state_empty(mocker, app_settings, mock_logger):
    mocker.patch.object(cli_handler, "view_completed_steps", return_value=[])

    view_state(app_settings, mock_logger)

    assert "No steps have been marked as completed yet." in _logged(mock_logger)
