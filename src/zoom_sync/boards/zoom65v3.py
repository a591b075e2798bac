"""Meletrix Zoom65 V3 with the 110x110 screen module."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from ..errors import CommandFailed, InvalidMedia, MediaTooLarge
from ..models.screen import ScreenPosition
from ..protocol import zoom65
from ..protocol.upload import ProgressCallback, upload
from .base import (
    Board,
    BoardDescriptor,
    Capabilities,
    HasGif,
    HasImage,
    HasScreen,
    HasSystemInfo,
    HasTime,
    HasWeather,
)

logger = logging.getLogger(__name__)

VENDOR_ID = 0x36B5
PRODUCT_ID = 0x287F
USAGE_PAGE = 0xFF60
USAGE = 0x61


def _clamp_byte(value: int) -> int:
    return max(0, min(0xFF, int(value)))


class Zoom65v3(
    Board, HasTime, HasWeather, HasSystemInfo, HasScreen, HasImage, HasGif
):
    """Zoom65 V3. Every command is acknowledged by the keyboard."""

    DESCRIPTOR = BoardDescriptor(
        name="Zoom65 V3",
        cli_name="zoom65v3",
        vendor_id=VENDOR_ID,
        product_id=PRODUCT_ID,
        usage_page=USAGE_PAGE,
        usage=USAGE,
        capabilities=Capabilities(
            time=True,
            weather=True,
            system_info=True,
            screen=True,
            image=True,
            gif=True,
        ),
    )
    SCREEN_SIZE = (110, 110)
    READ_TIMEOUT_MS = 1000

    def _execute(self, packet: bytes) -> bytes:
        response = self._session.execute(packet)
        zoom65.check_ack(packet, response)
        return response

    # --- Screen -------------------------------------------------------------

    def screen_positions(self) -> Sequence[ScreenPosition]:
        return zoom65.SCREEN_POSITIONS

    def set_screen(self, screen_id: str) -> None:
        """Navigate from the logo screen to ``screen_id``.

        Raises:
            InvalidScreenPosition: If the id is unknown. Nothing is sent.
        """
        position = zoom65.find_screen(screen_id)
        vertical, switches = position.direction()
        self.reset_screen()
        for _ in range(abs(vertical)):
            if vertical < 0:
                self.screen_up()
            else:
                self.screen_down()
        for _ in range(switches):
            self.screen_switch()

    def screen_up(self) -> None:
        self._execute(zoom65.build_screen_up())

    def screen_down(self) -> None:
        self._execute(zoom65.build_screen_down())

    def screen_switch(self) -> None:
        self._execute(zoom65.build_screen_switch())

    def reset_screen(self) -> None:
        self._execute(zoom65.build_reset_screen())

    def screen_theme(self, theme: zoom65.ScreenTheme) -> None:
        self._execute(zoom65.build_screen_theme(theme))

    # --- Settings -----------------------------------------------------------

    def set_time(self, when: datetime, use_12hr: bool = False) -> None:
        self._execute(zoom65.build_set_time(when, use_12hr))

    def set_weather(
        self, wmo: int, is_day: bool, current: int, low: int, high: int
    ) -> None:
        """Show the weather. Temperatures are clamped to 0..255.

        Raises:
            CommandFailed: Non-fatal, if the WMO code has no icon.
        """
        icon = zoom65.Zoom65Icon.from_wmo(wmo, is_day)
        if icon is None:
            raise CommandFailed(f"unknown WMO code {wmo}", fatal=False)
        self._execute(
            zoom65.build_set_weather(
                icon, _clamp_byte(current), _clamp_byte(low), _clamp_byte(high)
            )
        )

    def set_system_info(self, cpu: int, gpu: int, download: float) -> None:
        self._execute(zoom65.build_set_system_info(cpu, gpu, download))

    # --- Media --------------------------------------------------------------

    def _upload_media(
        self,
        data: bytes,
        channel: zoom65.UploadChannel,
        progress: ProgressCallback | None,
    ) -> None:
        align = 4 if channel == zoom65.UploadChannel.GIF else 1
        upload(
            self._execute,
            data,
            chunk_size=zoom65.MEDIA_CHUNK_SIZE,
            build_chunk=zoom65.build_media_chunk,
            prologue=(
                zoom65.build_upload_start(channel),
                zoom65.build_upload_length(len(data)),
            ),
            epilogue=(zoom65.build_upload_end(),),
            align=align,
            progress=progress,
        )
        self.reset_screen()

    def upload_image(self, data: bytes, progress: ProgressCallback | None = None) -> None:
        """Upload a 110x110 image encoded as RGB565 big-endian plus 0xFF per pixel.

        Raises:
            MediaTooLarge: If the buffer is longer than one frame.
            InvalidMedia: If it is shorter, or an alpha byte is not 0xFF.
        """
        if len(data) > zoom65.IMAGE_SIZE:
            raise MediaTooLarge(f"image must be exactly {zoom65.IMAGE_SIZE} bytes")
        if len(data) < zoom65.IMAGE_SIZE:
            raise InvalidMedia(f"image must be exactly {zoom65.IMAGE_SIZE} bytes")
        if any(alpha != 0xFF for alpha in data[2::3]):
            raise InvalidMedia("image pixels must be RGB565 followed by 0xFF")
        self._upload_media(data, zoom65.UploadChannel.IMAGE, progress)

    def clear_image(self) -> None:
        self._execute(zoom65.build_delete_image())

    def upload_gif(self, data: bytes, progress: ProgressCallback | None = None) -> None:
        """Upload a GIF file already resized for the screen.

        Raises:
            MediaTooLarge: If the file reaches the device's storage limit.
            InvalidMedia: If the data is not a GIF.
        """
        if len(data) >= zoom65.GIF_SIZE_LIMIT:
            raise MediaTooLarge("gif exceeds device limit")
        if data[:6] not in (b"GIF87a", b"GIF89a"):
            raise InvalidMedia("data is not a GIF file")
        self._upload_media(data, zoom65.UploadChannel.GIF, progress)

    def clear_gif(self) -> None:
        self._execute(zoom65.build_delete_gif())
