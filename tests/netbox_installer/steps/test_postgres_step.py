from unittest.mock import MagicMock

import pytest

from netbox_installer.steps.postgres import (
    database_owner,
    ensure_database,
    ensure_role,
    quote_literal,
    setup_postgres,
)


@pytest.fixture
def mock_run_as_user(mocker):
    return mocker.patch("netbox_installer.steps.postgres.run_as_user")


def _stdout(*outputs):
    return [MagicMock(stdout=output) for output in outputs]


def _sql_calls(mock_run_as_user):
    return [c.kwargs["cmd_input"] for c in mock_run_as_user.call_args_list]


def test_quote_literal_doubles_quotes():
    assert quote_literal("it's") == "'it''s'"


def test_psql_runs_as_postgres_with_variables(app_settings, mock_run_as_user):
    mock_run_as_user.side_effect = _stdout("netbox\n")

    assert database_owner("netbox", app_settings) == "netbox"

    command, user = mock_run_as_user.call_args.args[:2]
    assert user == "postgres"
    assert command[:6] == ["psql", "-X", "-q", "-tA", "-v", "ON_ERROR_STOP=1"]
    assert command[6:] == ["-v", "db_name=netbox"]


def test_role_absent_is_created(app_settings, mock_run_as_user):
    mock_run_as_user.side_effect = _stdout("", "")

    ensure_role(app_settings)

    sql = _sql_calls(mock_run_as_user)
    assert sql[1] == "CREATE ROLE :\"role_name\" WITH LOGIN PASSWORD 'netboxpass';\n"


def test_role_present_is_altered_not_created(app_settings, mock_run_as_user):
    mock_run_as_user.side_effect = _stdout("1\n", "")

    ensure_role(app_settings)

    sql = _sql_calls(mock_run_as_user)
    assert not any("CREATE" in statement for statement in sql)
    assert sql[1].startswith('ALTER ROLE :"role_name" WITH LOGIN PASSWORD')


def test_password_never_on_command_line(app_settings, mock_run_as_user):
    app_settings.db.password = "top'secret"
    mock_run_as_user.side_effect = _stdout("", "")

    ensure_role(app_settings)

    for call in mock_run_as_user.call_args_list:
        assert not any("secret" in part for part in call.args[0])
    assert mock_run_as_user.call_args.kwargs["log_output"] is False
    assert "'top''secret'" in mock_run_as_user.call_args.kwargs["cmd_input"]


def test_database_absent_is_created(app_settings, mock_run_as_user):
    mock_run_as_user.side_effect = _stdout("", "")

    ensure_database(app_settings)

    assert _sql_calls(mock_run_as_user)[1] == 'CREATE DATABASE :"db_name" OWNER :"role_name";\n'


def test_database_with_correct_owner_untouched(app_settings, mock_run_as_user):
    mock_run_as_user.side_effect = _stdout("netbox\n")

    ensure_database(app_settings)

    assert mock_run_as_user.call_count == 1


def test_database_with_other_owner_is_reassigned(app_settings, mock_run_as_user):
    mock_run_as_user.side_effect = _stdout("postgres\n", "")

    ensure_database(app_settings)

    sql = _sql_calls(mock_run_as_user)
    assert not any("CREATE" in statement for statement in sql)
    assert sql[1] == 'ALTER DATABASE :"db_name" OWNER TO :"role_name";\n'


def test_setup_postgres_starts_service_first(mocker, app_settings, mock_logger):
    manager = MagicMock()
    mocker.patch("netbox_installer.steps.postgres.enable_and_start_service", manager.start)
    mocker.patch("netbox_installer.steps.postgres.ensure_role", manager.role)
    mocker.patch("netbox_installer.steps.postgres.ensure_database", manager.database)

    setup_postgres(app_settings, mock_logger)

    assert [c[0] for c in manager.mock_calls] == ["start", "role", "database"]
    manager.start.assert_called_once_with("postgresql", app_settings, mock_logger)
