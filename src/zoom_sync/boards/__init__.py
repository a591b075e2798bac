"""Board registry: descriptors, capability interfaces and concrete keyboards."""

from .base import (
    Board,
    BoardDescriptor,
    Capabilities,
    HasGif,
    HasImage,
    HasScreen,
    HasSystemInfo,
    HasTheme,
    HasTime,
    HasWeather,
    matches,
)
from .registry import BOARDS, BoardKind, detect, open_board
from .tiga import Zoom75Tiga, ZoomTklDyna
from .zoom65v3 import Zoom65v3
