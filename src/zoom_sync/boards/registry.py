"""Supported boards and auto-detection.

``BOARDS`` is walked in order during detection, so boards identified by
vendor and product id come before boards that match on usage page alone.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..errors import DeviceNotFound
from ..transport.hid_connection import HidBus, HidDeviceInfo
from .base import Board, find_device, matches
from .tiga import Zoom75Tiga, ZoomTklDyna
from .zoom65v3 import Zoom65v3

logger = logging.getLogger(__name__)

BOARDS: tuple[type[Board], ...] = (Zoom65v3, ZoomTklDyna, Zoom75Tiga)


class BoardKind(Enum):
    """Board selection, by cli name."""

    AUTO = "auto"
    ZOOM65V3 = "zoom65v3"
    ZOOM_TKL_DYNA = "zoom-tkl-dyna"
    ZOOM75_TIGA = "zoom75-tiga"

    @classmethod
    def parse(cls, name: str) -> BoardKind:
        """Parse a cli name, case-insensitively.

        Raises:
            ValueError: If the name is unknown.
        """
        key = name.strip().lower()
        for kind in cls:
            if kind.value == key:
                return kind
        choices = ", ".join(kind.value for kind in cls)
        raise ValueError(f"Unknown board {name!r}. Choose from: {choices}")

    def board_class(self) -> type[Board] | None:
        """The board class for this kind, or None for AUTO."""
        for board_cls in BOARDS:
            if board_cls.DESCRIPTOR.cli_name == self.value:
                return board_cls
        return None


def detect(devices: list[HidDeviceInfo]) -> tuple[type[Board], HidDeviceInfo]:
    """Pick the highest-priority board present among ``devices``.

    Raises:
        DeviceNotFound: If no known board matches any device.
    """
    for board_cls in BOARDS:
        for device in devices:
            if matches(board_cls.DESCRIPTOR, device):
                logger.info("Detected %s", board_cls.DESCRIPTOR.name)
                return board_cls, device
    raise DeviceNotFound()


def open_board(bus: HidBus, kind: BoardKind = BoardKind.AUTO) -> Board:
    """Enumerate once and open the requested or detected board.

    Raises:
        DeviceNotFound: If the board is not present.
        TransportError: If it cannot be opened.
    """
    devices = bus.enumerate()
    board_cls = kind.board_class()
    if board_cls is None:
        board_cls, device = detect(devices)
    else:
        device = find_device(board_cls.DESCRIPTOR, devices)
    return board_cls.open(bus, device)
