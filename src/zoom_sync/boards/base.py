"""Board descriptors and capability interfaces.

A board class declares a :class:`BoardDescriptor` and implements one ABC per
feature it supports. The ``as_*`` accessors on :class:`Board` return the
board itself when it implements the interface, so a caller checks a
capability with ``board.as_weather() is not None`` rather than catching an
error. The descriptor's :class:`Capabilities` must agree with the implemented
interfaces; a mismatch is rejected when the class is defined.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, ClassVar, Sequence

from ..errors import DeviceNotFound
from ..models.screen import ScreenPosition
from ..protocol.upload import ProgressCallback
from ..transport.hid_connection import (
    DEFAULT_READ_TIMEOUT_MS,
    DeviceSession,
    HidBus,
    HidDeviceInfo,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capabilities:
    time: bool = False
    weather: bool = False
    system_info: bool = False
    screen: bool = False
    image: bool = False
    gif: bool = False
    theme: bool = False

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class BoardDescriptor:
    """Static identity of a board model.

    A ``None`` identity field matches any value.
    """

    name: str
    cli_name: str
    vendor_id: int | None = None
    product_id: int | None = None
    usage_page: int | None = None
    usage: int | None = None
    capabilities: Capabilities = Capabilities()

    @property
    def specificity(self) -> int:
        """Number of identity fields that are not wildcards."""
        fields = (self.vendor_id, self.product_id, self.usage_page, self.usage)
        return sum(1 for value in fields if value is not None)

    def to_dict(self) -> dict[str, Any]:
        def fmt(value: int | None) -> str | None:
            return None if value is None else f"{value:#06x}"

        return {
            "name": self.name,
            "cli_name": self.cli_name,
            "vendor_id": fmt(self.vendor_id),
            "product_id": fmt(self.product_id),
            "usage_page": fmt(self.usage_page),
            "usage": fmt(self.usage),
            "capabilities": self.capabilities.to_dict(),
        }


def matches(descriptor: BoardDescriptor, device: HidDeviceInfo) -> bool:
    """True when every non-wildcard field of ``descriptor`` equals the device's."""
    pairs = (
        (descriptor.vendor_id, device.vendor_id),
        (descriptor.product_id, device.product_id),
        (descriptor.usage_page, device.usage_page),
        (descriptor.usage, device.usage),
    )
    return all(expected is None or expected == actual for expected, actual in pairs)


def find_device(
    descriptor: BoardDescriptor, devices: Sequence[HidDeviceInfo]
) -> HidDeviceInfo:
    """Return the first device matching ``descriptor``.

    Raises:
        DeviceNotFound: If none matches.
    """
    for device in devices:
        if matches(descriptor, device):
            return device
    raise DeviceNotFound(f"{descriptor.name} not found")


# --- Capability interfaces --------------------------------------------------


class HasTime(ABC):
    @abstractmethod
    def set_time(self, when: datetime, use_12hr: bool = False) -> None:
        """Set the keyboard clock."""


class HasWeather(ABC):
    @abstractmethod
    def set_weather(
        self, wmo: int, is_day: bool, current: int, low: int, high: int
    ) -> None:
        """Show current conditions from a WMO weather code and temperatures."""


class HasSystemInfo(ABC):
    @abstractmethod
    def set_system_info(self, cpu: int, gpu: int, download: float) -> None:
        """Show CPU and GPU temperatures and the download rate."""


class HasScreen(ABC):
    @abstractmethod
    def screen_positions(self) -> Sequence[ScreenPosition]:
        """All positions of the screen carousel."""

    @abstractmethod
    def set_screen(self, screen_id: str) -> None:
        """Navigate to a position by id."""

    @abstractmethod
    def screen_up(self) -> None: ...

    @abstractmethod
    def screen_down(self) -> None: ...

    @abstractmethod
    def screen_switch(self) -> None: ...

    @abstractmethod
    def reset_screen(self) -> None:
        """Return to the default screen."""


class HasImage(ABC):
    @abstractmethod
    def upload_image(self, data: bytes, progress: ProgressCallback | None = None) -> None:
        """Upload a pre-encoded static image."""

    @abstractmethod
    def clear_image(self) -> None: ...


class HasGif(ABC):
    @abstractmethod
    def upload_gif(self, data: bytes, progress: ProgressCallback | None = None) -> None:
        """Upload a pre-encoded animation."""

    @abstractmethod
    def clear_gif(self) -> None: ...


class HasTheme(ABC):
    @abstractmethod
    def set_theme(self, bg_color: int, font_color: int, theme_id: int) -> None:
        """Set the theme colors (RGB565) and theme slot."""


def capabilities_of(cls: type) -> Capabilities:
    """Derive capability flags from the interfaces ``cls`` implements."""
    return Capabilities(
        time=issubclass(cls, HasTime),
        weather=issubclass(cls, HasWeather),
        system_info=issubclass(cls, HasSystemInfo),
        screen=issubclass(cls, HasScreen),
        image=issubclass(cls, HasImage),
        gif=issubclass(cls, HasGif),
        theme=issubclass(cls, HasTheme),
    )


# --- Board ------------------------------------------------------------------


class Board(ABC):
    """An opened keyboard.

    Subclasses set ``DESCRIPTOR`` and mix in the capability interfaces they
    support.
    """

    DESCRIPTOR: ClassVar[BoardDescriptor]
    SCREEN_SIZE: ClassVar[tuple[int, int] | None] = None
    READ_TIMEOUT_MS: ClassVar[int] = DEFAULT_READ_TIMEOUT_MS

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        descriptor = cls.__dict__.get("DESCRIPTOR")
        if descriptor is None:
            return
        derived = capabilities_of(cls)
        if descriptor.capabilities != derived:
            raise TypeError(
                f"{cls.__name__} declares {descriptor.capabilities} "
                f"but implements {derived}"
            )

    def __init__(self, session: DeviceSession) -> None:
        self._session = session

    @classmethod
    def open(cls, bus: HidBus, device: HidDeviceInfo | None = None) -> Board:
        """Open this board on ``device``, or on the first matching device.

        Raises:
            DeviceNotFound: If no device matches the descriptor.
            TransportError: If the device cannot be opened.
        """
        if device is None:
            device = find_device(cls.DESCRIPTOR, bus.enumerate())
        handle = bus.open(device.path)
        logger.info(
            "Opened %s (%s %s)", cls.DESCRIPTOR.name, device.manufacturer, device.product
        )
        return cls(DeviceSession(handle, read_timeout_ms=cls.READ_TIMEOUT_MS))

    def descriptor(self) -> BoardDescriptor:
        return self.DESCRIPTOR

    def screen_size(self) -> tuple[int, int] | None:
        return self.SCREEN_SIZE

    def as_time(self) -> HasTime | None:
        return self if isinstance(self, HasTime) else None

    def as_weather(self) -> HasWeather | None:
        return self if isinstance(self, HasWeather) else None

    def as_system_info(self) -> HasSystemInfo | None:
        return self if isinstance(self, HasSystemInfo) else None

    def as_screen(self) -> HasScreen | None:
        return self if isinstance(self, HasScreen) else None

    def as_image(self) -> HasImage | None:
        return self if isinstance(self, HasImage) else None

    def as_gif(self) -> HasGif | None:
        return self if isinstance(self, HasGif) else None

    def as_theme(self) -> HasTheme | None:
        return self if isinstance(self, HasTheme) else None

    def close(self) -> None:
        self._session.close()
