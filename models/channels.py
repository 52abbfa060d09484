"""Fixed sensor channel configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class SensorChannel:
    """One measurement type carried by every record.

    ``column`` is the header name in the source file and also the sensor name
    written to the report.
    """

    column: str


SENSOR_CHANNELS: Tuple[SensorChannel, ...] = (
    SensorChannel(column="temperatura"),
    SensorChannel(column="umidade"),
    SensorChannel(column="luminosidade"),
    SensorChannel(column="ruido"),
    SensorChannel(column="eco2"),
    SensorChannel(column="etvoc"),
)

CHANNEL_COUNT = len(SENSOR_CHANNELS)
