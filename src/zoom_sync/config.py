"""Runtime settings for the sync service.

Settings live in memory; toggle commands mutate them while the scheduler
runs. ``from_dict`` accepts a partial mapping and fills in defaults.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any


@dataclass
class GeneralConfig:
    fahrenheit: bool = False
    use_12hr_time: bool = False
    initial_screen: str = "meletrix"
    reactive_mode: bool = False


@dataclass
class RefreshConfig:
    """Intervals in seconds."""

    system: float = 10.0
    weather: float = 3600.0
    retry: float = 5.0

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) <= 0:
                raise ValueError(f"refresh.{f.name} must be positive")


@dataclass
class WeatherConfig:
    enabled: bool = True


@dataclass
class SystemInfoConfig:
    enabled: bool = True


def _section(cls: type, data: dict[str, Any] | None) -> Any:
    if not data:
        return cls()
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class SyncConfig:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    system_info: SystemInfoConfig = field(default_factory=SystemInfoConfig)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        """Build from nested mappings, ignoring unknown keys.

        Raises:
            ValueError: If a refresh interval is not positive.
        """
        return cls(
            general=_section(GeneralConfig, data.get("general")),
            refresh=_section(RefreshConfig, data.get("refresh")),
            weather=_section(WeatherConfig, data.get("weather")),
            system_info=_section(SystemInfoConfig, data.get("system_info")),
        )
