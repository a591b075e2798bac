"""Keep Meletrix Zoom keyboard screens in sync with the host."""

from .boards import BOARDS, Board, BoardDescriptor, BoardKind, Capabilities, open_board
from .config import SyncConfig
from .errors import (
    BoardError,
    CommandFailed,
    DeviceNotFound,
    InvalidMedia,
    InvalidScreenPosition,
    MediaTooLarge,
    TransportError,
    is_session_fatal,
)
from .models import ConnectionState, StatusSnapshot, SystemReading, WeatherReport
from .oneshot import run_command
from .scheduler import ConnectionScheduler
from .transport import DeviceSession, HidBus, HidDeviceInfo

__version__ = "0.1.0"

__all__ = [
    "BOARDS",
    "Board",
    "BoardDescriptor",
    "BoardError",
    "BoardKind",
    "Capabilities",
    "CommandFailed",
    "ConnectionScheduler",
    "ConnectionState",
    "DeviceNotFound",
    "DeviceSession",
    "HidBus",
    "HidDeviceInfo",
    "InvalidMedia",
    "InvalidScreenPosition",
    "MediaTooLarge",
    "StatusSnapshot",
    "SyncConfig",
    "SystemReading",
    "TransportError",
    "WeatherReport",
    "is_session_fatal",
    "open_board",
    "run_command",
]
