"""Data model shared by the poller, the snapshot store and the dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Union


@dataclass(frozen=True, slots=True)
class SensorReading:
    """Latest sensor values reported by one controller.

    Every metric is optional: ``None`` means the controller did not report a
    numeric value for it during the cycle. Power is in watts, temperature in
    degrees Celsius.
    """

    psu_pin: Optional[int] = None
    cpu_power: Optional[int] = None
    cpu0_power: Optional[int] = None
    cpu1_power: Optional[int] = None
    fan_power: Optional[int] = None
    cpu0_temp: Optional[int] = None
    cpu1_temp: Optional[int] = None


# Redfish sensor name -> SensorReading field
METRIC_FIELDS: dict[str, str] = {
    "PSU1_PIN": "psu_pin",
    "CPU_Power": "cpu_power",
    "CPU0_Power": "cpu0_power",
    "CPU1_Power": "cpu1_power",
    "CPU0_Temp": "cpu0_temp",
    "CPU1_Temp": "cpu1_temp",
    "Fan_Power": "fan_power",
}


Snapshot = Mapping[str, SensorReading]


@dataclass(frozen=True, slots=True)
class PollSuccess:
    address: str
    reading: SensorReading

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class PollFailure:
    address: str
    reason: str

    @property
    def ok(self) -> bool:
        return False


PollOutcome = Union[PollSuccess, PollFailure]
