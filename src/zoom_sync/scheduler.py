"""Long-running connection scheduler.

One asyncio task owns the board. It waits on the command queue until the
nearest timer deadline, then drains every queued command, keeps only the
latest of each kind and applies them in order. Timers refresh the weather,
the system readings and, in 12-hour mode, the clock at the top of each hour.

Device I/O runs on a dedicated single-thread executor, so exactly one HID
exchange is in flight at a time and the event loop never blocks on the
device. A session-fatal error closes the board and the scheduler returns to
reconnecting; anything else is logged and the session continues.

State machine::

    DISCONNECTED --open ok--> CONNECTED --fatal error--> RECONNECTING
         ^                                                   |
         +-------------- open failed (after retry) <---------+
"""

from __future__ import annotations

import asyncio
import dataclasses
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Callable, Sequence

from .boards.base import Board
from .boards.registry import BoardKind, open_board
from .commands import (
    Command,
    InputEventSource,
    Quit,
    ScreenSwitch,
    SetScreen,
    SetSystemInfo,
    SetTime,
    SetWeather,
    SystemInfoProvider,
    TOGGLES,
    Toggle12HourTime,
    ToggleFahrenheit,
    ToggleReactiveMode,
    ToggleSystemInfo,
    ToggleWeather,
    WeatherProvider,
    apply_command,
    report_unsupported,
)
from .config import SyncConfig
from .errors import BoardError, is_session_fatal
from .models.screen import ScreenPosition
from .models.status import ConnectionState, StatusSnapshot
from .transport.hid_connection import HidBus

logger = logging.getLogger(__name__)

HOURLY_OFFSET = 0.1
REACTIVE_IDLE = 0.5
REACTIVE_SCREEN = "image"

StatusListener = Callable[[StatusSnapshot], None]


class _Timer:
    """A repeating deadline on the event loop clock."""

    def __init__(self, interval: float, due_at: float) -> None:
        self.interval = interval
        self.due_at = due_at

    def is_due(self, now: float) -> bool:
        return now >= self.due_at

    def reschedule(self, now: float) -> None:
        self.due_at = now + self.interval


@dataclass(frozen=True)
class _InputActivity:
    pass


@dataclass(frozen=True)
class _InputFailed:
    error: Exception


def collapse(commands: Sequence[Any]) -> list[Any]:
    """Keep the latest command of each kind, ordered by latest arrival."""
    latest: dict[type, Any] = {}
    for command in commands:
        latest.pop(type(command), None)
        latest[type(command)] = command
    return list(latest.values())


def seconds_until_next_hour(now: datetime) -> float:
    """Delay until just past the next top of the hour."""
    next_hour = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return (next_hour - now).total_seconds() + HOURLY_OFFSET


class ConnectionScheduler:
    """Keeps a keyboard connected and its screen up to date.

    Args:
        bus: The process-wide HID bus.
        config: Runtime settings, mutated by toggle commands.
        kind: Board to open, or AUTO to detect one.
        weather: Source of weather reports.
        system_info: Source of temperature and download readings.
        input_events: Factory for key event streams used by reactive mode.
        opener: Opens a board; defaults to :func:`open_board`.
        clock: Local wall clock.
    """

    def __init__(
        self,
        bus: HidBus,
        config: SyncConfig | None = None,
        kind: BoardKind = BoardKind.AUTO,
        *,
        weather: WeatherProvider | None = None,
        system_info: SystemInfoProvider | None = None,
        input_events: InputEventSource | None = None,
        opener: Callable[[HidBus, BoardKind], Board] = open_board,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._bus = bus
        self._config = config or SyncConfig()
        self._kind = kind
        self._weather = weather
        self._system_info = system_info
        self._input_events = input_events
        self._opener = opener
        self._clock = clock

        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="zoom-sync-device"
        )
        self._board: Board | None = None
        self._status = StatusSnapshot()
        self._listeners: list[StatusListener] = []
        self._retry = _Timer(self._config.refresh.retry, 0.0)
        self._timers: dict[str, _Timer] = {}
        self._input_task: asyncio.Task | None = None
        self._reactive_active = False

    # --- Public API ---------------------------------------------------------

    @property
    def status(self) -> StatusSnapshot:
        return self._status

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def board(self) -> Board | None:
        return self._board

    def screen_positions(self) -> Sequence[ScreenPosition]:
        """Screen positions of the connected board, empty if it has none."""
        screen = self._board.as_screen() if self._board is not None else None
        if screen is None:
            return ()
        return screen.screen_positions()

    def add_listener(self, listener: StatusListener) -> None:
        """Call ``listener`` with every new status snapshot."""
        self._listeners.append(listener)

    def submit(self, command: Command) -> None:
        """Queue a command. Must be called from the event loop thread."""
        self._queue.put_nowait(command)

    async def run(self) -> None:
        """Run until a ``Quit`` command is processed."""
        loop = asyncio.get_running_loop()
        self._retry = _Timer(self._config.refresh.retry, loop.time())
        try:
            while True:
                if self._board is None and self._retry.is_due(loop.time()):
                    await self._connect()

                batch = await self._next_batch(self._wait_timeout(loop.time()))
                for command in batch:
                    if isinstance(command, Quit):
                        logger.info("Quit requested")
                        return
                    await self._handle(command)

                await self._run_due_timers()
        finally:
            await self._disconnect(ConnectionState.DISCONNECTED)
            self._executor.shutdown(wait=False)

    # --- Loop internals -----------------------------------------------------

    def _wait_timeout(self, now: float) -> float | None:
        deadlines = [timer.due_at for timer in self._timers.values()]
        if self._board is None:
            deadlines.append(self._retry.due_at)
        if not deadlines:
            return None
        return max(0.0, min(deadlines) - now)

    async def _next_batch(self, timeout: float | None) -> list[Any]:
        commands: list[Any] = []
        if timeout is None or timeout > 0:
            try:
                commands.append(await asyncio.wait_for(self._queue.get(), timeout))
            except asyncio.TimeoutError:
                return []
        while True:
            try:
                commands.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break
        return collapse(commands)

    def _update(self, **changes: Any) -> None:
        status = dataclasses.replace(self._status, **changes)
        if status == self._status:
            return
        self._status = status
        for listener in list(self._listeners):
            listener(status)

    async def _run_due_timers(self) -> None:
        now = asyncio.get_running_loop().time()
        for name in list(self._timers):
            if self._board is None:
                return
            timer = self._timers.get(name)
            if timer is None or not timer.is_due(now):
                continue
            if name == "reactive_idle":
                del self._timers[name]
            else:
                timer.reschedule(now)
            await self._on_timer(name)

    async def _on_timer(self, name: str) -> None:
        if name == "weather":
            if self._config.weather.enabled:
                await self._refresh_weather()
        elif name == "system":
            if self._config.system_info.enabled:
                await self._refresh_system_info()
        elif name == "hourly":
            await self._apply(SetTime())
        elif name == "reactive_idle":
            self._reactive_active = False
            screen = self._board.as_screen() if self._board is not None else None
            if screen is not None:
                await self._device(_settle_screen, screen)

    # --- Connection ---------------------------------------------------------

    async def _connect(self) -> None:
        loop = asyncio.get_running_loop()
        self._retry.reschedule(loop.time())
        try:
            board = await loop.run_in_executor(
                self._executor, self._opener, self._bus, self._kind
            )
        except BoardError as e:
            if self._status.connection is ConnectionState.DISCONNECTED:
                logger.debug("Keyboard not available: %s", e)
            else:
                logger.info("Keyboard not available: %s", e)
            self._update(connection=ConnectionState.DISCONNECTED)
            return

        self._board = board
        name = board.descriptor().name
        logger.info("Connected to %s", name)
        self._update(connection=ConnectionState.CONNECTED, board=name, current_screen=None)
        await self._on_connected()

    async def _on_connected(self) -> None:
        board = self._board
        assert board is not None
        general = self._config.general

        if board.as_screen() is not None and general.initial_screen:
            await self._set_screen(general.initial_screen)
            if self._board is None:
                return

        await self._apply(SetTime())
        if self._board is None:
            return

        now = asyncio.get_running_loop().time()
        # Periodic refreshes only for what the board can show
        self._timers = {}
        if board.as_weather() is not None:
            self._timers["weather"] = _Timer(self._config.refresh.weather, now)
        if board.as_system_info() is not None:
            self._timers["system"] = _Timer(self._config.refresh.system, now)
        if general.use_12hr_time:
            self._arm_hourly()
        if general.reactive_mode and board.as_screen() is not None:
            await self._start_reactive()

    async def _disconnect(self, state: ConnectionState) -> None:
        self._timers.clear()
        self._reactive_active = False
        if self._input_task is not None:
            self._input_task.cancel()
            self._input_task = None

        board, self._board = self._board, None
        loop = asyncio.get_running_loop()
        if board is not None:
            logger.info("Closing %s", board.descriptor().name)
            await loop.run_in_executor(self._executor, board.close)
        self._retry.reschedule(loop.time())
        self._update(connection=state, board=None, current_screen=None)

    # --- Device work --------------------------------------------------------

    async def _device(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run ``fn`` on the device thread.

        Returns:
            The result, or None if the call failed. A session-fatal failure
            also closes the board.
        """
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                self._executor, functools.partial(fn, *args)
            )
        except (BoardError, ValueError) as e:
            if is_session_fatal(e):
                logger.error("Device error, reconnecting: %s", e)
                await self._disconnect(ConnectionState.RECONNECTING)
            else:
                logger.warning("Command failed: %s", e)
            return None

    async def _apply(self, command: Command) -> bool:
        if self._board is None:
            return False
        applied = await self._device(
            apply_command, self._board, command, self._config, self._clock
        )
        return bool(applied)

    async def _set_screen(self, screen_id: str, remember: bool = True) -> None:
        board = self._board
        if board is None:
            return
        screen = board.as_screen()
        if screen is None:
            report_unsupported(board, "screen navigation")
            return
        if await self._apply(SetScreen(screen_id)):
            position = next(p for p in screen.screen_positions() if p.matches(screen_id))
            if remember:
                self._config.general.initial_screen = position.id
            self._update(current_screen=position.id)

    async def _handle(self, command: Any) -> None:
        if isinstance(command, _InputActivity):
            await self._on_key_activity()
            return
        if isinstance(command, _InputFailed):
            logger.error("Input watch failed: %s", command.error)
            if self._board is not None:
                await self._disconnect(ConnectionState.RECONNECTING)
            return
        if isinstance(command, TOGGLES):
            await self._toggle(command)
            return

        if self._board is None:
            logger.warning("Not connected, dropping %r", command)
            return

        if isinstance(command, SetWeather) and command.report is None:
            await self._refresh_weather()
        elif isinstance(command, SetSystemInfo) and command.reading is None:
            await self._refresh_system_info()
        elif isinstance(command, SetScreen):
            await self._set_screen(command.screen_id)
        else:
            await self._apply(command)

    async def _toggle(self, command: Any) -> None:
        general = self._config.general
        connected = self._board is not None

        if isinstance(command, ToggleWeather):
            self._config.weather.enabled = not self._config.weather.enabled
            logger.info("Weather updates %s", _on_off(self._config.weather.enabled))
            if connected and self._config.weather.enabled:
                await self._refresh_weather()

        elif isinstance(command, ToggleSystemInfo):
            self._config.system_info.enabled = not self._config.system_info.enabled
            logger.info("System info updates %s", _on_off(self._config.system_info.enabled))
            if connected and self._config.system_info.enabled:
                await self._refresh_system_info()

        elif isinstance(command, Toggle12HourTime):
            general.use_12hr_time = not general.use_12hr_time
            logger.info("12-hour time %s", _on_off(general.use_12hr_time))
            if connected:
                await self._apply(SetTime())
            if self._board is not None and general.use_12hr_time:
                self._arm_hourly()
            else:
                self._timers.pop("hourly", None)

        elif isinstance(command, ToggleFahrenheit):
            general.fahrenheit = not general.fahrenheit
            logger.info("Fahrenheit %s", _on_off(general.fahrenheit))
            # Redraw only what the board shows
            board = self._board
            if board is not None and self._config.weather.enabled and board.as_weather():
                await self._refresh_weather()
            board = self._board
            if board is not None and self._config.system_info.enabled and board.as_system_info():
                await self._refresh_system_info()

        elif isinstance(command, ToggleReactiveMode):
            general.reactive_mode = not general.reactive_mode
            logger.info(
                "Reactive mode %s, takes effect on the next connection",
                _on_off(general.reactive_mode),
            )

    def _arm_hourly(self) -> None:
        delay = seconds_until_next_hour(self._clock())
        now = asyncio.get_running_loop().time()
        self._timers["hourly"] = _Timer(3600.0, now + delay)

    async def _refresh_weather(self) -> None:
        board = self._board
        if board is None:
            return
        if board.as_weather() is None:
            report_unsupported(board, "weather")
            return
        if self._weather is None:
            logger.debug("No weather provider configured")
            return
        try:
            report = await self._weather.fetch(self._config.general.fahrenheit)
        except Exception as e:
            logger.warning("Failed to fetch weather, skipping: %s", e)
            return
        if report is not None:
            await self._apply(SetWeather(report))

    async def _refresh_system_info(self) -> None:
        board = self._board
        if board is None:
            return
        if board.as_system_info() is None:
            report_unsupported(board, "system info")
            return
        if self._system_info is None:
            logger.debug("No system info provider configured")
            return
        loop = asyncio.get_running_loop()
        try:
            reading = await loop.run_in_executor(
                None, self._system_info.read, self._config.general.fahrenheit
            )
        except Exception as e:
            logger.warning("Failed to read system info, skipping: %s", e)
            return
        await self._apply(SetSystemInfo(reading))

    # --- Reactive mode ------------------------------------------------------

    async def _start_reactive(self) -> None:
        board = self._board
        assert board is not None
        if self._input_events is None:
            logger.warning("Reactive mode needs an input event source")
            return
        events = self._input_events(board.descriptor())
        if events is None:
            logger.warning("No input device found for reactive mode")
            return
        await self._set_screen(REACTIVE_SCREEN, remember=False)
        if self._board is None:
            return
        self._input_task = asyncio.create_task(self._pump_input(events))

    async def _pump_input(self, events: AsyncIterator[object]) -> None:
        try:
            async for _ in events:
                self._queue.put_nowait(_InputActivity())
        except Exception as e:
            self._queue.put_nowait(_InputFailed(e))

    async def _on_key_activity(self) -> None:
        board = self._board
        screen = board.as_screen() if board is not None else None
        if screen is None:
            return
        if not self._reactive_active:
            self._reactive_active = True
            await self._apply(ScreenSwitch())
        if self._board is not None:
            now = asyncio.get_running_loop().time()
            self._timers["reactive_idle"] = _Timer(REACTIVE_IDLE, now + REACTIVE_IDLE)


def _settle_screen(screen: Any) -> None:
    """Return from the reactive page to the image page."""
    screen.reset_screen()
    screen.screen_switch()
    screen.screen_switch()


def _on_off(enabled: bool) -> str:
    return "enabled" if enabled else "disabled"
