"""Exception hierarchy for board communication.

Every failure a board operation can produce is a ``BoardError``. Whether an
error ends the device session is a property of the error itself, exposed as
``fatal`` and read by :func:`is_session_fatal`.
"""

from __future__ import annotations


class BoardError(Exception):
    """Base class for all board errors."""

    fatal = False


class DeviceNotFound(BoardError):
    """No present HID device matches a known board descriptor."""

    def __init__(self, message: str = "no supported keyboard found") -> None:
        super().__init__(message)


class TransportError(BoardError):
    """An HID open, read or write failed."""

    fatal = True


class CommandFailed(BoardError):
    """The device rejected a command, or a command could not be applied.

    Rejections and malformed acknowledgements leave the session in an unknown
    state and are fatal. Local conditions such as an unmapped weather code are
    raised with ``fatal=False``.
    """

    def __init__(self, reason: str, fatal: bool = True) -> None:
        super().__init__(reason)
        self.reason = reason
        self.fatal = fatal


class InvalidScreenPosition(BoardError):
    """The screen id is not one of the board's positions."""

    def __init__(self, screen_id: str) -> None:
        super().__init__(f"invalid screen position: {screen_id!r}")
        self.screen_id = screen_id


class InvalidMedia(BoardError):
    """The pixel buffer is malformed for this board."""


class MediaTooLarge(BoardError):
    """The pixel buffer exceeds what the board can store."""


def is_session_fatal(exc: BaseException) -> bool:
    """Return True when ``exc`` means the device session must be reopened."""
    if isinstance(exc, BoardError):
        return exc.fatal
    return False
