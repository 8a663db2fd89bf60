"""Pure rendering of snapshots into rich renderables."""

from __future__ import annotations

from typing import Optional, Sequence

from rich.layout import Layout
from rich.panel import Panel
from rich.text import Text

from .models import SensorReading, Snapshot

NO_DATA_MESSAGE = "No data available."
PANEL_MIN_HEIGHT = 3


def _value(value: Optional[int]) -> int:
    return value if value is not None else 0


def format_reading(reading: SensorReading) -> str:
    """Two-line summary of every known metric; absent metrics show as 0."""
    return (
        f" PSU_PIN: {_value(reading.psu_pin)} W | "
        f"CPU Tot: {_value(reading.cpu_power)} W    "
        f"CPU 0: {_value(reading.cpu0_power)} W | "
        f"CPU 1: {_value(reading.cpu1_power)} W\n"
        f" Fan: {_value(reading.fan_power)} W    "
        f"CPU 0 Temp: {_value(reading.cpu0_temp)} °C | "
        f"CPU 1 Temp: {_value(reading.cpu1_temp)} °C"
    )


def panel_body(reading: Optional[SensorReading]) -> str:
    if reading is None:
        return NO_DATA_MESSAGE
    return format_reading(reading)


def render_panel(address: str, reading: Optional[SensorReading]) -> Panel:
    return Panel(
        Text(panel_body(reading)),
        title=address,
        title_align="left",
    )


def build_layout(addresses: Sequence[str], snapshot: Snapshot) -> Layout:
    """One bordered panel per controller, stacked in address order."""
    root = Layout(name="root")
    regions = [
        Layout(
            render_panel(address, snapshot.get(address)),
            name=f"controller{index}",
            minimum_size=PANEL_MIN_HEIGHT,
        )
        for index, address in enumerate(addresses)
    ]
    if regions:
        root.split_column(*regions)
    return root
