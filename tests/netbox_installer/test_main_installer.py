import subprocess

import pytest

from netbox_installer import main_installer
from netbox_installer.main_installer import (
    PIPELINE,
    STEP_TAGS,
    main,
    run_pipeline,
    select_steps,
)
from netbox_installer.step_executor import StepFailedError


def test_pipeline_order():
    assert STEP_TAGS == [
        "PACKAGES", "POSTGRES", "REDIS", "SYSTEM_USER", "SOURCE", "VIRTUALENV",
        "CONFIGURATION", "PERMISSIONS", "DJANGO_MANAGE", "SYSTEMD_SERVICE", "NGINX",
    ]


def test_select_steps_keeps_pipeline_order():
    steps = select_steps(["nginx", "SOURCE", "packages"])

    assert [tag for tag, _, _ in steps] == ["PACKAGES", "SOURCE", "NGINX"]


def test_select_steps_all_by_default():
    assert select_steps(None) == PIPELINE
    assert select_steps([]) == PIPELINE


def test_select_steps_unknown_tag():
    with pytest.raises(ValueError, match="BOGUS"):
        select_steps(["SOURCE", "BOGUS"])


def test_run_pipeline_stops_at_first_failure(mocker, app_settings, mock_logger):
    calls = []

    def fake_execute(tag, description, func, settings, logger, skip_completed=False):
        calls.append(tag)
        if tag == "REDIS":
            raise StepFailedError(tag, 3, "boom")
        return True

    mocker.patch.object(main_installer, "execute_step", side_effect=fake_execute)

    with pytest.raises(StepFailedError):
        run_pipeline(PIPELINE, app_settings, mock_logger)

    assert calls == ["PACKAGES", "POSTGRES", "REDIS"]


@pytest.fixture
def quiet_main(mocker, tmp_path, monkeypatch):
    """Run main() in an empty directory with all host side effects patched out."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOGLEVEL", raising=False)
    mocks = {
        name: mocker.patch.object(main_installer, name)
        for name in (
            "setup_logging", "get_current_script_hash", "initialize_state_system",
            "clear_state_file", "run_pipeline", "view_configuration", "view_state",
            "show_plan", "log_summary",
        )
    }
    mocks["get_current_script_hash"].return_value = "abc"
    return mocks


def test_main_success(quiet_main):
    assert main(["--version", "v4.1.0", "--domain", "netbox.example.com"]) == 0

    steps, settings = quiet_main["run_pipeline"].call_args.args[:2]
    assert steps == PIPELINE
    assert settings.netbox.version == "v4.1.0"
    assert settings.domain == "netbox.example.com"
    quiet_main["log_summary"].assert_called_once()


def test_main_only_and_skip_completed(quiet_main):
    assert main(["--only", "nginx", "--skip-completed"]) == 0

    call = quiet_main["run_pipeline"].call_args
    assert [tag for tag, _, _ in call.args[0]] == ["NGINX"]
    assert call.kwargs["skip_completed"] is True


def test_main_unknown_only_tag(quiet_main):
    assert main(["--only", "BOGUS"]) == 2
    quiet_main["run_pipeline"].assert_not_called()


def test_main_bad_argument(quiet_main):
    assert main(["--no-such-flag"]) == 2


def test_main_step_failure_exit_code(quiet_main):
    error = subprocess.CalledProcessError(100, ["apt-get", "install"])
    quiet_main["run_pipeline"].side_effect = StepFailedError("PACKAGES", 100, str(error))

    assert main([]) == 100
    quiet_main["log_summary"].assert_not_called()


def test_main_unexpected_error(quiet_main):
    quiet_main["initialize_state_system"].side_effect = OSError("read-only")

    assert main([]) == 1


def test_main_invalid_configuration(quiet_main, tmp_path):
    (tmp_path / "config.yaml").write_text("gunicorn:\n  workers: 0\n", encoding="utf-8")

    assert main([]) == 1
    quiet_main["run_pipeline"].assert_not_called()


@pytest.mark.parametrize(
    "flag, handler",
    [("--plan", "show_plan"), ("--view-config", "view_configuration"), ("--view-state", "view_state")],
)
def test_main_informational_flags(quiet_main, flag, handler):
    assert main([flag]) == 0

    quiet_main[handler].assert_called_once()
    quiet_main["run_pipeline"].assert_not_called()
    quiet_main["initialize_state_system"].assert_not_called()


def test_main_clear_state(quiet_main):
    assert main(["--clear-state"]) == 0

    quiet_main["clear_state_file"].assert_called_once()
    quiet_main["run_pipeline"].assert_not_called()
