from pathlib import Path

import pytest

from redfish_powermon import constants
from redfish_powermon.config import ConfigurationError, load_config


def test_load_config_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "redfish-powermon.cfg"
    config = load_config(config_path)

    assert config.addresses == []
    assert config.controllers.scheme == "https"
    assert config.controllers.verify_tls is False
    assert config.controllers.request_timeout_seconds == 5.0
    assert config.credentials.username == "admin"
    assert config.credentials.password == "admin"
    assert config.polling.interval_seconds == 1.0
    assert config.ui.tick_seconds == 1.0
    assert config.ui.quit_key == "q"
    assert config.logging.level == "INFO"
    assert config.logging.path == constants.DEFAULT_LOG_PATH
    assert config.path == config_path


def test_load_config_overrides_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "redfish-powermon.cfg"
    config_file.write_text(
        """
[controllers]
addresses = 10.0.0.10, 10.0.0.11 ,,bmc-3.lab:8443
scheme = HTTP
verify_tls = true
request_timeout_seconds = 2.5

[credentials]
username = operator
password = p%ss

[polling]
interval_seconds = 2

[ui]
tick_seconds = 0.5
quit_key = x

[logging]
level = DEBUG
path =
log_network = true
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.addresses == ["10.0.0.10", "10.0.0.11", "bmc-3.lab:8443"]
    assert config.controllers.scheme == "http"
    assert config.controllers.verify_tls is True
    assert config.controllers.request_timeout_seconds == 2.5
    assert config.credentials.username == "operator"
    assert config.credentials.password == "p%ss"
    assert config.polling.interval_seconds == 2.0
    assert config.ui.tick_seconds == 0.5
    assert config.ui.quit_key == "x"
    assert config.logging.level == "DEBUG"
    assert config.logging.path is None
    assert config.logging.log_network is True


def test_load_config_rejects_non_positive_intervals(tmp_path: Path) -> None:
    config_file = tmp_path / "redfish-powermon.cfg"
    config_file.write_text(
        "[polling]\ninterval_seconds = 0\n\n[ui]\ntick_seconds = -1\nquit_key = quit\n",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.polling.interval_seconds == 1.0
    assert config.ui.tick_seconds == 1.0
    assert config.ui.quit_key == "q"


def test_load_config_tolerates_unparsable_durations(tmp_path: Path) -> None:
    config_file = tmp_path / "redfish-powermon.cfg"
    config_file.write_text(
        "[controllers]\nrequest_timeout_seconds = abc\n\n"
        "[polling]\ninterval_seconds = soon\n\n"
        "[ui]\ntick_seconds = abc\n",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.controllers.request_timeout_seconds == 5.0
    assert config.polling.interval_seconds == 1.0
    assert config.ui.tick_seconds == 1.0


def test_command_line_addresses_replace_configured_ones(tmp_path: Path) -> None:
    config_file = tmp_path / "redfish-powermon.cfg"
    config_file.write_text("[controllers]\naddresses = 10.0.0.1\n", encoding="utf-8")

    config = load_config(config_file).with_overrides(
        addresses=["10.0.0.7", " 10.0.0.8 "], username="ops"
    )

    assert config.addresses == ["10.0.0.7", "10.0.0.8"]
    assert config.credentials.username == "ops"
    assert config.credentials.password == "admin"
    assert config.raw.get("controllers", "addresses") == "10.0.0.7,10.0.0.8"


def test_configured_addresses_used_without_overrides(tmp_path: Path) -> None:
    config_file = tmp_path / "redfish-powermon.cfg"
    config_file.write_text("[controllers]\naddresses = 10.0.0.1\n", encoding="utf-8")

    config = load_config(config_file).with_overrides(addresses=[])

    assert config.addresses == ["10.0.0.1"]


def test_missing_addresses_is_a_configuration_error(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.cfg")

    with pytest.raises(ConfigurationError):
        config.with_overrides(addresses=None)
