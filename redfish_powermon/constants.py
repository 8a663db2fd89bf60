"""Constants used across the redfish-powermon package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "redfish-powermon"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_LOG_PATH = Path.home() / ".local" / "state" / APP_NAME / f"{APP_NAME}.log"

DEFAULT_SCHEME = "https"
DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin"

SESSIONS_PATH = "/redfish/v1/SessionService/Sessions"
THRESHOLD_SENSORS_PATH = "/redfish/v1/Chassis/1/ThresholdSensors"
AUTH_TOKEN_HEADER = "X-Auth-Token"

DEFAULT_REQUEST_TIMEOUT_SECONDS = 5.0
DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_TICK_SECONDS = 1.0
DEFAULT_QUIT_KEY = "q"
