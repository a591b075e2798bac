"""HID transport for the keyboard screen.

:class:`HidBus` owns the hidapi library for the process: it enumerates the
attached HID interfaces and opens one by path. :class:`DeviceSession` owns a
single opened device and performs the write-then-read exchange every board
command is built on.

Usage::

    bus = HidBus()
    info = bus.enumerate()[0]
    session = DeviceSession(bus.open(info.path))
    response = session.execute(packet)
    session.close()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..errors import TransportError

logger = logging.getLogger(__name__)

REPORT_BUFFER_SIZE = 64
DEFAULT_READ_TIMEOUT_MS = 100


@dataclass(frozen=True)
class HidDeviceInfo:
    """Identification of one HID interface, as reported by enumeration."""

    vendor_id: int
    product_id: int
    usage_page: int = 0
    usage: int = 0
    path: bytes = b""
    manufacturer: str = ""
    product: str = ""

    @classmethod
    def from_dict(cls, info: dict[str, Any]) -> HidDeviceInfo:
        """Build from a ``hid.enumerate()`` entry."""
        return cls(
            vendor_id=info.get("vendor_id", 0),
            product_id=info.get("product_id", 0),
            usage_page=info.get("usage_page", 0),
            usage=info.get("usage", 0),
            path=info.get("path", b""),
            manufacturer=info.get("manufacturer_string") or "",
            product=info.get("product_string") or "",
        )


class HidBus:
    """Process-wide handle on the hidapi library.

    Args:
        backend: Module providing ``enumerate()`` and ``device()``. Defaults
            to the ``hid`` module from hidapi.
    """

    def __init__(self, backend: Any = None) -> None:
        if backend is None:
            import hid

            backend = hid
        self._hid = backend

    def enumerate(self) -> list[HidDeviceInfo]:
        """List every attached HID interface.

        Raises:
            TransportError: If enumeration fails.
        """
        try:
            entries = self._hid.enumerate()
        except (OSError, ValueError) as e:
            raise TransportError(f"HID enumeration failed: {e}") from e
        return [HidDeviceInfo.from_dict(entry) for entry in entries]

    def open(self, path: bytes) -> Any:
        """Open the HID interface at ``path`` in blocking mode.

        Raises:
            TransportError: If the device cannot be opened.
        """
        device = self._hid.device()
        try:
            device.open_path(path)
        except (OSError, ValueError) as e:
            raise TransportError(
                f"Could not open HID device {path!r}. "
                f"Ensure the keyboard is connected and you have permissions. "
                f"Last error: {e}"
            ) from e
        logger.debug("Opened HID device %r", path)
        return device


class DeviceSession:
    """An opened keyboard interface.

    The session is not synchronized; callers serialize access to it.

    Args:
        device: An opened hidapi device.
        read_timeout_ms: How long to wait for a response report.
    """

    def __init__(
        self,
        device: Any,
        read_timeout_ms: int = DEFAULT_READ_TIMEOUT_MS,
        report_size: int = REPORT_BUFFER_SIZE,
    ) -> None:
        self._device = device
        self._read_timeout_ms = read_timeout_ms
        self._report_size = report_size

    @property
    def closed(self) -> bool:
        return self._device is None

    def execute(self, packet: bytes) -> bytes:
        """Write one packet and read one response report.

        Args:
            packet: The complete packet, report id included.

        Returns:
            The response report, or ``b""`` if none arrived within the
            read timeout.

        Raises:
            TransportError: If the session is closed or hidapi fails.
        """
        if self._device is None:
            raise TransportError("Device session is closed")

        logger.debug("TX %s", packet.hex(" "))
        try:
            written = self._device.write(packet)
        except (OSError, ValueError) as e:
            raise TransportError(f"HID write failed: {e}") from e
        if written is not None and written < 0:
            raise TransportError("HID write failed")

        try:
            data = self._device.read(self._report_size, self._read_timeout_ms)
        except (OSError, ValueError) as e:
            raise TransportError(f"HID read failed: {e}") from e

        response = bytes(data) if data else b""
        if response:
            logger.debug("RX %s", response.hex(" "))
        return response

    def close(self) -> None:
        """Close the device. Safe to call more than once."""
        if self._device is None:
            return
        try:
            self._device.close()
        except (OSError, ValueError) as e:
            logger.warning("Error closing device: %s", e)
        finally:
            self._device = None
