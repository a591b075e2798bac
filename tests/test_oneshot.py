"""Tests for the one-shot command runner."""

from unittest.mock import patch

import pytest

from zoom_sync.boards import BoardKind
from zoom_sync.commands import ClearAllMedia, SetScreen, SetTheme, SetTime, SetWeather, UploadGif
from zoom_sync.errors import DeviceNotFound, TransportError
from zoom_sync.models.readings import WeatherReport
from zoom_sync.oneshot import main, run_command
from zoom_sync.transport.hid_connection import HidBus

from fakes import (
    ZOOM65_ENTRY,
    FakeHidDevice,
    FakeHidModule,
    RecordingScreenBoard,
    RecordingTimeBoard,
)


def _open(board):
    def opener(bus, kind):
        return board

    return opener


def _missing(bus, kind):
    raise DeviceNotFound()


def test_success_closes_board():
    board = RecordingScreenBoard()
    assert run_command(SetScreen("cpu"), bus=HidBus(FakeHidModule()), opener=_open(board)) == 0
    assert board.calls == [("set_screen", "cpu")]
    assert board.closed


def test_board_not_found():
    assert run_command(SetTime(), bus=HidBus(FakeHidModule()), opener=_missing) == 1


def test_missing_capability_fails():
    board = RecordingTimeBoard()
    code = run_command(UploadGif(b"GIF89a"), bus=HidBus(FakeHidModule()), opener=_open(board))
    assert code == 1
    assert board.closed


def test_command_error_fails_and_closes():
    board = RecordingTimeBoard(time_error=TransportError("write failed"))
    assert run_command(SetTime(), bus=HidBus(FakeHidModule()), opener=_open(board)) == 1
    assert board.closed


def test_invalid_screen_fails():
    board = RecordingScreenBoard()
    assert run_command(SetScreen("nowhere"), bus=HidBus(FakeHidModule()), opener=_open(board)) == 1
    assert board.closed


def test_against_fake_hid():
    device = FakeHidDevice(ack=[0x58, 1, 1])
    hid = FakeHidModule([ZOOM65_ENTRY], device)
    assert run_command(SetScreen("weather"), bus=HidBus(hid)) == 0
    # reset, up, switch
    assert len(device.written) == 3
    assert device.closed


def test_device_rejection_fails():
    device = FakeHidDevice(ack=[0x58, 1, 0])
    hid = FakeHidModule([ZOOM65_ENTRY], device)
    assert run_command(SetTime(), bus=HidBus(hid)) == 1
    assert device.closed


# --- Command line -----------------------------------------------------------


def _main(*argv):
    with patch("zoom_sync.oneshot.run_command", return_value=0) as run:
        code = main(list(argv))
    return code, run


def test_cli_screen_with_board():
    code, run = _main("--board", "zoom65v3", "screen", "cpu")
    assert code == 0
    command, kind = run.call_args.args
    assert command == SetScreen("cpu")
    assert kind is BoardKind.ZOOM65V3


def test_cli_weather_and_12_hour_clock():
    _, run = _main("weather", "61", "12.5", "8", "15", "--night")
    assert run.call_args.args[0] == SetWeather(WeatherReport(61, False, 12.5, 8.0, 15.0))

    _, run = _main("--12hr", "time")
    assert run.call_args.args[0] == SetTime()
    assert run.call_args.kwargs["config"].general.use_12hr_time


def test_cli_theme_and_clear():
    _, run = _main("theme", "#ff0000", "#000000", "--id", "3")
    assert run.call_args.args[0] == SetTheme("#ff0000", "#000000", 3)
    _, run = _main("clear", "all")
    assert run.call_args.args[0] == ClearAllMedia()


def test_cli_reads_media_file(tmp_path):
    path = tmp_path / "anim.gif"
    path.write_bytes(b"GIF89a")
    _, run = _main("gif", str(path))
    assert run.call_args.args[0] == UploadGif(b"GIF89a")


def test_cli_missing_media_file(tmp_path):
    code, run = _main("image", str(tmp_path / "missing.bin"))
    assert code == 1
    run.assert_not_called()


def test_cli_unknown_board():
    with pytest.raises(SystemExit):
        _main("--board", "zoom99", "time")
