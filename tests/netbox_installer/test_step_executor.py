import subprocess
from unittest.mock import MagicMock

import pytest

from netbox_installer.step_executor import StepFailedError, execute_step, exit_code_for


@pytest.fixture
def mock_mark(mocker):
    return mocker.patch("netbox_installer.step_executor.mark_step_completed")


@pytest.fixture
def mock_is_completed(mocker):
    return mocker.patch("netbox_installer.step_executor.is_step_completed", return_value=True)


def test_successful_step_is_marked(app_settings, mock_logger, mock_mark, mock_is_completed):
    step = MagicMock()

    assert execute_step("NGINX", "Configure nginx", step, app_settings, mock_logger) is True

    step.assert_called_once_with(app_settings, mock_logger)
    mock_mark.assert_called_once_with("NGINX", app_settings=app_settings, current_logger=mock_logger)
    mock_is_completed.assert_not_called()


def test_completed_step_skipped_only_when_requested(app_settings, mock_logger, mock_mark, mock_is_completed):
    step = MagicMock()

    ran = execute_step("NGINX", "Configure nginx", step, app_settings, mock_logger, skip_completed=True)

    assert ran is False
    step.assert_not_called()
    mock_mark.assert_not_called()


def test_failed_command_carries_exit_code(app_settings, mock_logger, mock_mark):
    step = MagicMock(side_effect=subprocess.CalledProcessError(100, ["apt-get"]))

    with pytest.raises(StepFailedError) as excinfo:
        execute_step("PACKAGES", "Install packages", step, app_settings, mock_logger)

    assert excinfo.value.step_tag == "PACKAGES"
    assert excinfo.value.exit_code == 100
    mock_mark.assert_not_called()


def test_other_exception_exit_code_one(app_settings, mock_logger, mock_mark):
    step = MagicMock(side_effect=RuntimeError("boom"))

    with pytest.raises(StepFailedError) as excinfo:
        execute_step("SOURCE", "Fetch source", step, app_settings, mock_logger)

    assert excinfo.value.exit_code == 1
    assert "boom" in str(excinfo.value)


@pytest.mark.parametrize(
    "error, expected",
    [
        (subprocess.CalledProcessError(2, "x"), 2),
        (subprocess.CalledProcessError(-9, "x"), 1),
        (subprocess.CalledProcessError(300, "x"), 255),
        (ValueError("x"), 1),
    ],
)
def test_exit_code_for(error, expected):
    assert exit_code_for(error) == expected
