"""MCP server entry point for zoom-sync.

Exposes the keyboard screen through the Model Context Protocol using the
official Python MCP SDK with stdio transport. Tools queue commands on the
connection scheduler, which runs for the lifetime of the server; resources
report its status.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from .boards.registry import BOARDS, BoardKind
from .commands import (
    ClearAllMedia,
    ClearGif,
    ClearImage,
    Command,
    Quit,
    ScreenDown,
    ScreenSwitch,
    ScreenUp,
    SetScreen,
    SetSystemInfo,
    SetTheme,
    SetTime,
    SetWeather,
    Toggle12HourTime,
    ToggleFahrenheit,
    ToggleReactiveMode,
    ToggleSystemInfo,
    ToggleWeather,
    UploadGif,
    UploadImage,
)
from .config import SyncConfig
from .models.readings import SystemReading, WeatherReport
from .scheduler import ConnectionScheduler
from .transport.hid_connection import HidBus

logger = logging.getLogger(__name__)

BOARD_ENV = "ZOOM_SYNC_BOARD"

# Global scheduler state
_scheduler: ConnectionScheduler | None = None


def _board_kind() -> BoardKind:
    return BoardKind.parse(os.environ.get(BOARD_ENV, BoardKind.AUTO.value))


@asynccontextmanager
async def _lifespan(server: Any) -> AsyncIterator[dict[str, Any]]:
    """Run the connection scheduler alongside the server."""
    global _scheduler
    scheduler = ConnectionScheduler(HidBus(), SyncConfig(), _board_kind())
    task = asyncio.create_task(scheduler.run())
    _scheduler = scheduler
    try:
        yield {"scheduler": scheduler}
    finally:
        scheduler.submit(Quit())
        await task
        _scheduler = None


mcp = FastMCP(
    "zoom-sync",
    instructions="MCP server for Meletrix Zoom keyboard screens",
    lifespan=_lifespan,
)


def _get_scheduler() -> ConnectionScheduler:
    """Get the running scheduler, raising if the server has not started it."""
    if _scheduler is None:
        raise RuntimeError("Scheduler is not running.")
    return _scheduler


def _queue(command: Command) -> dict[str, Any]:
    scheduler = _get_scheduler()
    scheduler.submit(command)
    return {
        "queued": type(command).__name__,
        "connection": scheduler.status.connection.value,
    }


def _read_media(path: str) -> bytes:
    media = Path(path)
    if not media.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return media.read_bytes()


# ─── CLOCK, WEATHER & SENSOR TOOLS ───────────────────────────────────

@mcp.tool()
def set_time(iso_time: str = "") -> dict[str, Any]:
    """Set the keyboard clock.

    Args:
        iso_time: Local time in ISO 8601 format. Empty for the current time.
    """
    if not iso_time:
        return _queue(SetTime())
    try:
        when = datetime.fromisoformat(iso_time)
    except ValueError:
        return {"error": f"Invalid ISO 8601 time: {iso_time!r}"}
    return _queue(SetTime(when))


@mcp.tool()
def set_weather(
    wmo: int, current: float, low: float, high: float, is_day: bool = True
) -> dict[str, Any]:
    """Show the weather on the keyboard screen.

    Args:
        wmo: WMO weather interpretation code (0 clear, 3 overcast, 61 rain...).
        current: Current temperature in the display unit.
        low: Forecast low.
        high: Forecast high.
        is_day: Whether to use daytime icons.
    """
    return _queue(SetWeather(WeatherReport(wmo, is_day, current, low, high)))


@mcp.tool()
def set_system_info(cpu_temp: int, gpu_temp: int, download: float = 0.0) -> dict[str, Any]:
    """Show CPU/GPU temperatures and the download rate.

    Args:
        cpu_temp: CPU temperature; values of 100 and above show as 99.
        gpu_temp: GPU temperature.
        download: Download rate (0.0 - 655.34).
    """
    return _queue(SetSystemInfo(SystemReading(cpu_temp, gpu_temp, download)))


# ─── SCREEN TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def set_screen(screen_id: str) -> dict[str, Any]:
    """Navigate the screen to a page and make it the default.

    Args:
        screen_id: Page id or alias (cpu, gpu, download, time, weather,
            meletrix, zoom65, image, gif, battery).
    """
    return _queue(SetScreen(screen_id))


@mcp.tool()
def screen_up() -> dict[str, Any]:
    """Move the screen up one group."""
    return _queue(ScreenUp())


@mcp.tool()
def screen_down() -> dict[str, Any]:
    """Move the screen down one group."""
    return _queue(ScreenDown())


@mcp.tool()
def screen_switch() -> dict[str, Any]:
    """Switch to the next page within the current group."""
    return _queue(ScreenSwitch())


@mcp.tool()
def set_theme(bg_color: str, font_color: str, theme_id: int = 0) -> dict[str, Any]:
    """Set the screen theme on boards that support it.

    Args:
        bg_color: Background color as #RRGGBB.
        font_color: Font color as #RRGGBB.
        theme_id: Theme slot.
    """
    return _queue(SetTheme(bg_color, font_color, theme_id))


# ─── MEDIA TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def upload_image(path: str) -> dict[str, Any]:
    """Upload a static image file.

    The file must hold a pixel buffer already encoded for the board's
    screen: RGB565 big-endian followed by 0xFF for every pixel.

    Args:
        path: Path to the encoded image.
    """
    try:
        data = _read_media(path)
    except OSError as e:
        return {"error": str(e)}
    result = _queue(UploadImage(data))
    result["size"] = len(data)
    return result


@mcp.tool()
def upload_gif(path: str) -> dict[str, Any]:
    """Upload an animation file already encoded for the board.

    Args:
        path: Path to the encoded animation.
    """
    try:
        data = _read_media(path)
    except OSError as e:
        return {"error": str(e)}
    result = _queue(UploadGif(data))
    result["size"] = len(data)
    return result


@mcp.tool()
def clear_image() -> dict[str, Any]:
    """Delete the uploaded image."""
    return _queue(ClearImage())


@mcp.tool()
def clear_gif() -> dict[str, Any]:
    """Delete the uploaded animation."""
    return _queue(ClearGif())


@mcp.tool()
def clear_all_media() -> dict[str, Any]:
    """Delete both the uploaded image and animation."""
    return _queue(ClearAllMedia())


# ─── SETTINGS TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def toggle_weather() -> dict[str, Any]:
    """Turn periodic weather updates on or off."""
    return _queue(ToggleWeather())


@mcp.tool()
def toggle_system_info() -> dict[str, Any]:
    """Turn periodic CPU/GPU/download updates on or off."""
    return _queue(ToggleSystemInfo())


@mcp.tool()
def toggle_12hr_time() -> dict[str, Any]:
    """Switch the clock between 12-hour and 24-hour display."""
    return _queue(Toggle12HourTime())


@mcp.tool()
def toggle_fahrenheit() -> dict[str, Any]:
    """Switch temperatures between Celsius and Fahrenheit."""
    return _queue(ToggleFahrenheit())


@mcp.tool()
def toggle_reactive_mode() -> dict[str, Any]:
    """Turn reactive mode on or off. Applies from the next connection."""
    return _queue(ToggleReactiveMode())


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("zoom-sync://device/status")
def resource_device_status() -> str:
    """Connection state, connected board and current screen."""
    if _scheduler is None:
        return json.dumps({"connection": "disconnected", "running": False})
    status = _scheduler.status.to_dict()
    status["running"] = True
    status["config"] = _scheduler.config.to_dict()
    return json.dumps(status)


@mcp.resource("zoom-sync://boards")
def resource_boards() -> str:
    """Supported boards with their USB identity and capabilities."""
    boards = [board_cls.DESCRIPTOR.to_dict() for board_cls in BOARDS]
    return json.dumps({"boards": boards, "count": len(boards)})


@mcp.resource("zoom-sync://device/screens")
def resource_screens() -> str:
    """Screen pages of the connected board."""
    positions = _scheduler.screen_positions() if _scheduler is not None else ()
    return json.dumps({"screens": [p.to_dict() for p in positions]})


# ─── PROMPTS ─────────────────────────────────────────────────────────

@mcp.prompt()
def dashboard() -> str:
    """Keep the keyboard screen showing useful system information."""
    return """Read zoom-sync://device/status to check the keyboard is connected.
Read zoom-sync://device/screens for the available pages.
Use set_system_info with the current CPU and GPU temperatures, then
set_screen to "cpu" so the temperatures are visible.
Use set_time to sync the clock if it looks wrong."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
