"""Tests for the concrete boards against a fake HID device."""

from datetime import datetime

import pytest

from zoom_sync.boards import BOARDS, Zoom65v3, Zoom75Tiga, ZoomTklDyna
from zoom_sync.boards.base import Board, BoardDescriptor, Capabilities, HasTime
from zoom_sync.errors import CommandFailed, InvalidMedia, InvalidScreenPosition, MediaTooLarge
from zoom_sync.protocol import tiga, zoom65
from zoom_sync.protocol.framing import TIGA, ZOOM65, parse_packet
from zoom_sync.transport.hid_connection import DeviceSession

from fakes import ACK, FakeHidDevice


def _zoom65(device=None):
    device = device or FakeHidDevice(ack=ACK)
    return Zoom65v3(DeviceSession(device)), device


def _tiga(cls=ZoomTklDyna):
    device = FakeHidDevice()
    return cls(DeviceSession(device)), device


def _zoom65_ops(device):
    """(subtype, command) of every written command packet."""
    ops = []
    for packet in device.written:
        parsed = parse_packet(ZOOM65, packet)
        ops.append(parsed[:2] if parsed else None)
    return ops


RESET = (1, 0xFF)
UP = (0, 0x22)
DOWN = (0, 0x21)
SWITCH = (0, 0x20)


# --- Capabilities -----------------------------------------------------------


@pytest.mark.parametrize("board_cls", BOARDS)
def test_capability_flags_match_accessors(board_cls):
    board = board_cls(DeviceSession(FakeHidDevice()))
    caps = board.descriptor().capabilities
    assert caps.time == (board.as_time() is not None)
    assert caps.weather == (board.as_weather() is not None)
    assert caps.system_info == (board.as_system_info() is not None)
    assert caps.screen == (board.as_screen() is not None)
    assert caps.image == (board.as_image() is not None)
    assert caps.gif == (board.as_gif() is not None)
    assert caps.theme == (board.as_theme() is not None)


def test_declared_capabilities_must_match_interfaces():
    with pytest.raises(TypeError):

        class Liar(Board, HasTime):
            DESCRIPTOR = BoardDescriptor(
                name="Liar",
                cli_name="liar",
                capabilities=Capabilities(time=True, weather=True),
            )

            def set_time(self, when, use_12hr=False):
                pass


def test_screen_sizes():
    assert Zoom65v3.SCREEN_SIZE == (110, 110)
    assert ZoomTklDyna.SCREEN_SIZE == (320, 172)
    assert Zoom75Tiga.SCREEN_SIZE == (320, 172)


# --- Zoom65 V3 --------------------------------------------------------------


def test_zoom65_set_screen_navigates_from_logo():
    board, device = _zoom65()
    board.set_screen("cpu")
    assert _zoom65_ops(device) == [RESET, UP, UP]

    device.written.clear()
    board.set_screen("gif")
    assert _zoom65_ops(device) == [RESET, SWITCH, SWITCH, SWITCH]

    device.written.clear()
    board.set_screen("b")
    assert _zoom65_ops(device) == [RESET, DOWN]


def test_zoom65_invalid_screen_sends_nothing():
    board, device = _zoom65()
    with pytest.raises(InvalidScreenPosition):
        board.set_screen("nowhere")
    assert device.written == []


def test_zoom65_rejected_command_is_fatal():
    board, _ = _zoom65(FakeHidDevice(ack=[0x58, 1, 0]))
    with pytest.raises(CommandFailed) as exc_info:
        board.screen_up()
    assert exc_info.value.fatal


def test_zoom65_missing_ack_is_command_failure():
    board, _ = _zoom65(FakeHidDevice())
    with pytest.raises(CommandFailed):
        board.reset_screen()


def test_zoom65_weather_clamps_temperatures():
    board, device = _zoom65()
    board.set_weather(3, True, -5, 12, 300)
    assert list(device.written[0][6:10]) == [zoom65.Zoom65Icon.CLOUDY, 0, 12, 255]


def test_zoom65_unknown_weather_code_is_not_fatal():
    board, device = _zoom65()
    with pytest.raises(CommandFailed) as exc_info:
        board.set_weather(42, True, 20, 10, 25)
    assert not exc_info.value.fatal
    assert device.written == []


def test_zoom65_set_time_uses_12_hour_flag():
    board, device = _zoom65()
    board.set_time(datetime(2024, 3, 5, 15, 0, 0), use_12hr=True)
    assert device.written[0][9] == 3


def test_zoom65_image_size_checks_send_nothing():
    board, device = _zoom65()
    with pytest.raises(MediaTooLarge):
        board.upload_image(b"\x00\x00\xff" * 12101)
    with pytest.raises(InvalidMedia):
        board.upload_image(b"\x00\x00\xff" * 100)
    with pytest.raises(InvalidMedia):
        board.upload_image(b"\x00\x00\x00" * 12100)
    assert device.written == []


def test_zoom65_image_upload_sequence():
    board, device = _zoom65()
    progress = []
    board.upload_image(b"\x12\x34\xff" * 12100, progress.append)

    chunks = -(-zoom65.IMAGE_SIZE // zoom65.MEDIA_CHUNK_SIZE)
    assert len(progress) == chunks + 1
    # start, length, chunks, end, reset
    assert len(device.written) == 2 + chunks + 2
    assert list(device.written[0][3:7]) == [165, 2, 240, 1]
    assert list(device.written[1][6:10]) == [0x00, 0x00, 0x8D, 0xCC]
    assert list(device.written[-2][3:7]) == [165, 2, 241, 1]
    assert parse_packet(ZOOM65, device.written[-1])[:2] == RESET


def test_zoom65_gif_checks():
    board, device = _zoom65()
    with pytest.raises(InvalidMedia):
        board.upload_gif(b"\x89PNG\r\n\x1a\n" + bytes(100))
    with pytest.raises(MediaTooLarge):
        board.upload_gif(b"GIF89a" + bytes(zoom65.GIF_SIZE_LIMIT))
    assert device.written == []


def test_zoom65_gif_upload_aligns_final_chunk():
    board, device = _zoom65()
    gif = b"GIF89a" + bytes(range(19))
    board.upload_gif(gif)
    final_chunk = device.written[3]
    assert final_chunk[2] == 2 + 1 + 3 + 4
    assert list(device.written[1][6:10]) == [0, 0, 0, 25]


def test_zoom65_screen_theme():
    board, device = _zoom65()
    board.screen_theme(zoom65.ScreenTheme.PINK)
    assert parse_packet(ZOOM65, device.written[0]) == (1, 0xFF, b"\x02")


def test_zoom65_clear_media():
    board, device = _zoom65()
    board.clear_image()
    board.clear_gif()
    assert _zoom65_ops(device) == [(2, 0xE0), (2, 0xE1)]


# --- Tiga family ------------------------------------------------------------


def test_tiga_time_ignores_12_hour_flag():
    board, device = _tiga()
    board.set_time(datetime(2024, 1, 1, 15, 30, 0), use_12hr=True)
    assert device.written[0][18] == 15


def test_tiga_is_fire_and_forget():
    """No response within the timeout is still a success."""
    board, device = _tiga()
    board.set_theme(0xF800, 0x0000, 1)
    assert len(device.written) == 1


def test_tiga_weather_and_unknown_code():
    board, device = _tiga(Zoom75Tiga)
    board.set_weather(61, True, 12, 8, 15)
    assert list(device.written[0][12:20]) == [0, 3, 0, 120, 0, 150, 0, 80]
    with pytest.raises(CommandFailed) as exc_info:
        board.set_weather(7, True, 12, 8, 15)
    assert not exc_info.value.fatal


def test_tiga_image_upload_frames_and_progress():
    board, device = _tiga()
    data = bytes(tiga.FRAME_SIZE)
    progress = []
    board.upload_image(data, progress.append)

    chunks = tiga.FRAME_SIZE // tiga.IMAGE_CHUNK_SIZE
    assert len(device.written) == chunks + 1
    assert len(progress) == chunks + 1
    assert device.written[-1] == tiga.build_image_end()
    assert all(parse_packet(TIGA, packet) is not None for packet in device.written[:5])


def test_tiga_image_size_checks():
    board, device = _tiga()
    with pytest.raises(MediaTooLarge):
        board.upload_image(bytes(tiga.FRAME_SIZE + 3))
    with pytest.raises(InvalidMedia):
        board.upload_image(bytes(10))
    assert device.written == []


def _animation(frames: int, delay: int = 10) -> bytes:
    header = frames.to_bytes(2, "big") + delay.to_bytes(2, "big") * frames
    return header + bytes(tiga.FRAME_SIZE * frames)


def test_tiga_gif_validation():
    board, device = _tiga()
    with pytest.raises(InvalidMedia):
        board.upload_gif(b"\x00")
    with pytest.raises(InvalidMedia):
        board.upload_gif(_animation(2)[:-1])
    with pytest.raises(MediaTooLarge):
        board.upload_gif(_animation(7))
    assert device.written == []


def test_tiga_gif_upload():
    board, device = _tiga()
    data = _animation(1)
    board.upload_gif(data)
    assert len(device.written) == -(-len(data) // tiga.IMAGE_CHUNK_SIZE) + 1


def test_tiga_clear():
    board, device = _tiga()
    board.clear_image()
    board.clear_gif()
    assert device.written == [
        tiga.build_image_end(),
        tiga.build_screen_control(tiga.ScreenMode.RESET),
    ]


def test_tiga_menu_navigation():
    board, device = _tiga()
    board.screen_up()
    board.screen_down()
    board.screen_enter()
    board.screen_return()
    payloads = [parse_packet(TIGA, packet)[2] for packet in device.written]
    assert payloads == [b"\x02\xc2", b"\x01\xc3", b"\x03\xc1", b"\x04\xc0"]
