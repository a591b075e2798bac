"""Connection state reported to listeners."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time view of the scheduler."""

    connection: ConnectionState = ConnectionState.DISCONNECTED
    current_screen: str | None = None
    board: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "connection": self.connection.value,
            "current_screen": self.current_screen,
            "board": self.board,
        }
