"""Sensor and weather readings pushed to the keyboard."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WeatherReport:
    """Current conditions, with temperatures already in the display unit."""

    wmo: int
    is_day: bool
    current: float
    low: float
    high: float


@dataclass(frozen=True)
class SystemReading:
    """Hardware temperatures in the display unit and download rate."""

    cpu_temp: int
    gpu_temp: int
    download: float = 0.0
