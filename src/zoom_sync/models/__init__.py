"""Data models for screen positions, readings and connection status."""

from .readings import SystemReading, WeatherReport
from .screen import ScreenGroup, ScreenPosition
from .status import ConnectionState, StatusSnapshot
