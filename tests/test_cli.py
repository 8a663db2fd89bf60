from pathlib import Path

import pytest

from redfish_powermon import cli
from redfish_powermon.session import SessionAcquisitionError
from redfish_powermon.terminal import TerminalSetupError


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "redfish-powermon.cfg"
    path.write_text(
        "[credentials]\npassword = hunter2\n\n[logging]\npath =\n", encoding="utf-8"
    )
    return path


def test_show_config_masks_password(config_path, capsys):
    exit_code = cli.main(["-c", str(config_path), "show-config"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "[controllers]" in output
    assert "password = ****" in output
    assert "hunter2" not in output


def test_watch_without_addresses_fails(config_path, capsys):
    exit_code = cli.main(["-c", str(config_path), "watch"])

    assert exit_code == 1
    assert capsys.readouterr().err.count("No controller addresses") == 1


def test_watch_starts_app_with_command_line_addresses(config_path, monkeypatch):
    started = []
    monkeypatch.setattr(cli.PowerMonApp, "start", classmethod(lambda cls, config: started.append(config)))

    exit_code = cli.main(
        ["-c", str(config_path), "watch", "10.0.0.1", "10.0.0.2", "--username", "ops"]
    )

    assert exit_code == 0
    (config,) = started
    assert config.addresses == ["10.0.0.1", "10.0.0.2"]
    assert config.credentials.username == "ops"
    assert config.credentials.password == "hunter2"


@pytest.mark.parametrize(
    "error, message",
    [
        (SessionAcquisitionError("10.0.0.1", "login request timed out"), "Login failed"),
        (TerminalSetupError("standard input is not a terminal"), "Terminal setup failed"),
    ],
)
def test_watch_startup_failures_exit_non_zero(config_path, monkeypatch, capsys, error, message):
    def fail(cls, config):
        raise error

    monkeypatch.setattr(cli.PowerMonApp, "start", classmethod(fail))

    exit_code = cli.main(["-c", str(config_path), "watch", "10.0.0.1"])

    assert exit_code == 1
    assert capsys.readouterr().err.count(message) == 1
