"""Screen carousel positions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ScreenGroup(Enum):
    SYSTEM = "system"
    TIME = "time"
    LOGO = "logo"
    BATTERY = "battery"


@dataclass(frozen=True)
class ScreenPosition:
    """One page of a board's screen carousel.

    ``vertical`` and ``switches`` are the moves needed to reach the page from
    the board's default screen: negative ``vertical`` steps up, positive steps
    down, then ``switches`` presses of the switch button within the group.
    """

    id: str
    display_name: str
    group: ScreenGroup
    vertical: int = 0
    switches: int = 0
    alias: str | None = None

    def direction(self) -> tuple[int, int]:
        return self.vertical, self.switches

    def matches(self, key: str) -> bool:
        key = key.strip().lower()
        return key == self.id or (self.alias is not None and key == self.alias)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "group": self.group.value,
            "alias": self.alias,
        }
