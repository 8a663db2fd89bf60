"""Configuration loader for redfish-powermon."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from . import constants


class ConfigurationError(ValueError):
    """Raised when the resolved configuration cannot drive a session."""


@dataclass(slots=True)
class ControllersConfig:
    addresses: List[str] = field(default_factory=list)
    scheme: str = constants.DEFAULT_SCHEME
    verify_tls: bool = False  # BMCs ship self-signed certificates
    request_timeout_seconds: float = constants.DEFAULT_REQUEST_TIMEOUT_SECONDS


@dataclass(slots=True)
class CredentialsConfig:
    username: str = constants.DEFAULT_USERNAME
    password: str = constants.DEFAULT_PASSWORD


@dataclass(slots=True)
class PollingConfig:
    interval_seconds: float = constants.DEFAULT_POLL_INTERVAL_SECONDS


@dataclass(slots=True)
class UIConfig:
    tick_seconds: float = constants.DEFAULT_TICK_SECONDS
    quit_key: str = constants.DEFAULT_QUIT_KEY


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = constants.DEFAULT_LOG_PATH
    log_network: bool = False


@dataclass(slots=True)
class PowerMonConfig:
    controllers: ControllersConfig
    credentials: CredentialsConfig
    polling: PollingConfig
    ui: UIConfig
    logging: LoggingConfig
    raw: ConfigParser
    path: Path

    @property
    def addresses(self) -> List[str]:
        return list(self.controllers.addresses)

    def with_overrides(
        self,
        *,
        addresses: Optional[Iterable[str]] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "PowerMonConfig":
        """Apply command-line overrides and validate the controller list."""

        if addresses:
            parsed = _parse_list(",".join(addresses), default=())
            self.controllers.addresses = parsed
            self.raw.set("controllers", "addresses", ",".join(parsed))
        if username is not None:
            self.credentials.username = username
            self.raw.set("credentials", "username", username)
        if password is not None:
            self.credentials.password = password
            self.raw.set("credentials", "password", password)

        if not self.controllers.addresses:
            raise ConfigurationError(
                "No controller addresses configured; pass them on the command line "
                "or set [controllers] addresses"
            )
        return self


def _parse_list(value: str, *, default: Iterable[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _positive_float(
    parser: ConfigParser, section: str, key: str, default: float
) -> float:
    try:
        value = parser.getfloat(section, key, fallback=default)
    except ValueError:
        return default
    return value if value > 0 else default


def load_config(path: Optional[Path] = None) -> PowerMonConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser(interpolation=None)
    parser.read_dict(
        {
            "controllers": {
                "addresses": "",
                "scheme": constants.DEFAULT_SCHEME,
                "verify_tls": "false",
                "request_timeout_seconds": str(
                    constants.DEFAULT_REQUEST_TIMEOUT_SECONDS
                ),
            },
            "credentials": {
                "username": constants.DEFAULT_USERNAME,
                "password": constants.DEFAULT_PASSWORD,
            },
            "polling": {
                "interval_seconds": str(constants.DEFAULT_POLL_INTERVAL_SECONDS),
            },
            "ui": {
                "tick_seconds": str(constants.DEFAULT_TICK_SECONDS),
                "quit_key": constants.DEFAULT_QUIT_KEY,
            },
            "logging": {
                "level": "INFO",
                "path": str(constants.DEFAULT_LOG_PATH),
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    controllers = ControllersConfig(
        addresses=_parse_list(
            parser.get("controllers", "addresses", fallback=""), default=()
        ),
        scheme=parser.get(
            "controllers", "scheme", fallback=constants.DEFAULT_SCHEME
        ).strip().lower()
        or constants.DEFAULT_SCHEME,
        verify_tls=parser.getboolean("controllers", "verify_tls", fallback=False),
        request_timeout_seconds=_positive_float(
            parser,
            "controllers",
            "request_timeout_seconds",
            constants.DEFAULT_REQUEST_TIMEOUT_SECONDS,
        ),
    )

    credentials = CredentialsConfig(
        username=parser.get(
            "credentials", "username", fallback=constants.DEFAULT_USERNAME
        ),
        password=parser.get(
            "credentials", "password", fallback=constants.DEFAULT_PASSWORD
        ),
    )

    polling = PollingConfig(
        interval_seconds=_positive_float(
            parser,
            "polling",
            "interval_seconds",
            constants.DEFAULT_POLL_INTERVAL_SECONDS,
        ),
    )

    quit_key = parser.get("ui", "quit_key", fallback=constants.DEFAULT_QUIT_KEY)
    ui = UIConfig(
        tick_seconds=_positive_float(
            parser, "ui", "tick_seconds", constants.DEFAULT_TICK_SECONDS
        ),
        quit_key=quit_key.strip()[:1] or constants.DEFAULT_QUIT_KEY,
    )

    log_path_value = parser.get(
        "logging", "path", fallback=str(constants.DEFAULT_LOG_PATH)
    ).strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return PowerMonConfig(
        controllers=controllers,
        credentials=credentials,
        polling=polling,
        ui=ui,
        logging=logging_config,
        raw=parser,
        path=config_path,
    )
