"""Tiga family boards: Zoom TKL Dyna and Zoom75 Tiga.

Both speak the same 32-byte protocol and share a 320x172 screen. The boards
never acknowledge a command, so a write that hidapi accepts is a success.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..errors import CommandFailed, InvalidMedia, MediaTooLarge
from ..protocol import tiga
from ..protocol.upload import ProgressCallback, chunk_count, upload
from .base import (
    Board,
    BoardDescriptor,
    Capabilities,
    HasGif,
    HasImage,
    HasTheme,
    HasTime,
    HasWeather,
)

logger = logging.getLogger(__name__)

USAGE_PAGE = 0xFF60
USAGE = 0x61

TIGA_CAPABILITIES = Capabilities(time=True, weather=True, image=True, gif=True, theme=True)


class TigaBoard(Board, HasTime, HasWeather, HasImage, HasGif, HasTheme):
    """Shared implementation of the Tiga protocol boards."""

    SCREEN_SIZE = (tiga.SCREEN_WIDTH, tiga.SCREEN_HEIGHT)

    def _execute(self, packet: bytes) -> None:
        # Any response is drained and ignored
        self._session.execute(packet)

    def set_time(self, when: datetime, use_12hr: bool = False) -> None:
        """Set the clock. The board formats the hour itself, so ``use_12hr`` is unused."""
        self._execute(tiga.build_datetime(when))

    def set_weather(
        self, wmo: int, is_day: bool, current: int, low: int, high: int
    ) -> None:
        """Show the weather.

        Raises:
            CommandFailed: Non-fatal, if the WMO code has no icon.
        """
        icon = tiga.TigaIcon.from_wmo(wmo, is_day)
        if icon is None:
            raise CommandFailed(f"unknown WMO code {wmo}", fatal=False)
        self._execute(tiga.build_weather(icon, current, high, low))

    def set_theme(self, bg_color: int, font_color: int, theme_id: int) -> None:
        self._execute(tiga.build_theme(bg_color, font_color, theme_id))

    def screen_control(self, mode: tiga.ScreenMode) -> None:
        self._execute(tiga.build_screen_control(mode))

    def screen_up(self) -> None:
        self.screen_control(tiga.ScreenMode.UP)

    def screen_down(self) -> None:
        self.screen_control(tiga.ScreenMode.DOWN)

    def screen_enter(self) -> None:
        self.screen_control(tiga.ScreenMode.ENTER)

    def screen_return(self) -> None:
        self.screen_control(tiga.ScreenMode.RETURN)

    def screen_reset(self) -> None:
        """Reset themes, images and animations."""
        self.screen_control(tiga.ScreenMode.RESET)

    def _upload(self, data: bytes, progress: ProgressCallback | None) -> None:
        if chunk_count(len(data), tiga.IMAGE_CHUNK_SIZE) > tiga.IMAGE_END_INDEX:
            raise MediaTooLarge(
                f"media is limited to {tiga.IMAGE_END_INDEX} chunks "
                f"of {tiga.IMAGE_CHUNK_SIZE} bytes"
            )
        upload(
            self._execute,
            data,
            chunk_size=tiga.IMAGE_CHUNK_SIZE,
            build_chunk=tiga.build_image_chunk,
            epilogue=(tiga.build_image_end(),),
            progress=progress,
        )

    def upload_image(self, data: bytes, progress: ProgressCallback | None = None) -> None:
        """Upload a 320x172 image encoded as RGB565 big-endian plus 0xFF per pixel.

        Raises:
            MediaTooLarge: If the buffer is longer than one frame.
            InvalidMedia: If it is shorter.
        """
        if len(data) > tiga.FRAME_SIZE:
            raise MediaTooLarge(f"image must be exactly {tiga.FRAME_SIZE} bytes")
        if len(data) < tiga.FRAME_SIZE:
            raise InvalidMedia(f"image must be exactly {tiga.FRAME_SIZE} bytes")
        self._upload(data, progress)

    def clear_image(self) -> None:
        self._execute(tiga.build_image_end())

    def upload_gif(self, data: bytes, progress: ProgressCallback | None = None) -> None:
        """Upload an encoded animation through the image channel.

        The buffer is a big-endian u16 frame count, one u16 delay in
        centiseconds per frame, then every frame as 3 bytes per pixel.

        Raises:
            InvalidMedia: If the header and frame data do not agree.
            MediaTooLarge: If the animation needs more chunks than the
                protocol can index.
        """
        if len(data) < 2:
            raise InvalidMedia("animation header is missing")
        frames = int.from_bytes(data[:2], "big")
        expected = 2 + 2 * frames + frames * tiga.FRAME_SIZE
        if frames == 0 or len(data) != expected:
            raise InvalidMedia(
                f"animation of {frames} frames must be {expected} bytes, got {len(data)}"
            )
        self._upload(data, progress)

    def clear_gif(self) -> None:
        self.screen_reset()


class ZoomTklDyna(TigaBoard):
    DESCRIPTOR = BoardDescriptor(
        name="Zoom TKL Dyna",
        cli_name="zoom-tkl-dyna",
        vendor_id=0x5542,
        product_id=0xC987,
        usage_page=USAGE_PAGE,
        usage=USAGE,
        capabilities=TIGA_CAPABILITIES,
    )


class Zoom75Tiga(TigaBoard):
    # Matches on the usage page alone
    DESCRIPTOR = BoardDescriptor(
        name="Zoom75 Tiga",
        cli_name="zoom75-tiga",
        usage_page=USAGE_PAGE,
        usage=USAGE,
        capabilities=TIGA_CAPABILITIES,
    )
