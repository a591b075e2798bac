"""Tests for board selection and auto-detection."""

import pytest

from zoom_sync.boards import (
    BOARDS,
    BoardKind,
    Zoom65v3,
    Zoom75Tiga,
    ZoomTklDyna,
    detect,
    open_board,
)
from zoom_sync.errors import DeviceNotFound
from zoom_sync.transport.hid_connection import HidBus, HidDeviceInfo

from fakes import GENERIC_ENTRY, KEYBOARD_ENTRY, TKL_DYNA_ENTRY, ZOOM65_ENTRY, FakeHidModule


def _devices(*entries):
    return [HidDeviceInfo.from_dict(entry) for entry in entries]


def test_parse_board_kind():
    assert BoardKind.parse("auto") is BoardKind.AUTO
    assert BoardKind.parse(" Zoom65V3 ") is BoardKind.ZOOM65V3
    assert BoardKind.parse("zoom-tkl-dyna") is BoardKind.ZOOM_TKL_DYNA
    assert BoardKind.parse("zoom75-tiga") is BoardKind.ZOOM75_TIGA


def test_parse_unknown_board_lists_choices():
    with pytest.raises(ValueError, match="zoom65v3"):
        BoardKind.parse("zoom99")


def test_every_kind_but_auto_names_a_board():
    assert BoardKind.AUTO.board_class() is None
    assert {kind.board_class() for kind in BoardKind if kind is not BoardKind.AUTO} == set(BOARDS)


def test_cli_names_are_unique():
    names = [board_cls.DESCRIPTOR.cli_name for board_cls in BOARDS]
    assert len(names) == len(set(names))


def test_specific_boards_are_tried_first():
    specificity = [board_cls.DESCRIPTOR.specificity for board_cls in BOARDS]
    assert specificity == sorted(specificity, reverse=True)


def test_detect_prefers_specific_board_over_wildcard():
    # The Zoom65 interface also matches the Zoom75 Tiga usage page
    board_cls, device = detect(_devices(GENERIC_ENTRY, ZOOM65_ENTRY))
    assert board_cls is Zoom65v3
    assert device.path == b"/dev/hidraw1"


def test_detect_tkl_dyna():
    board_cls, _ = detect(_devices(KEYBOARD_ENTRY, TKL_DYNA_ENTRY))
    assert board_cls is ZoomTklDyna


def test_detect_falls_back_to_usage_page():
    board_cls, device = detect(_devices(GENERIC_ENTRY))
    assert board_cls is Zoom75Tiga
    assert device.vendor_id == 0x1234


def test_detect_skips_wrong_interface():
    with pytest.raises(DeviceNotFound):
        detect(_devices(KEYBOARD_ENTRY))


def test_detect_nothing_attached():
    with pytest.raises(DeviceNotFound):
        detect([])


def test_open_board_auto():
    hid = FakeHidModule([KEYBOARD_ENTRY, ZOOM65_ENTRY])
    board = open_board(HidBus(hid))
    assert isinstance(board, Zoom65v3)
    assert hid.last_device.opened_path == b"/dev/hidraw1"


def test_open_board_explicit_kind():
    hid = FakeHidModule([ZOOM65_ENTRY, GENERIC_ENTRY])
    board = open_board(HidBus(hid), BoardKind.ZOOM75_TIGA)
    assert isinstance(board, Zoom75Tiga)
    # First device on the usage page, whichever board it is
    assert hid.last_device.opened_path == b"/dev/hidraw1"


def test_open_board_explicit_kind_not_present():
    hid = FakeHidModule([ZOOM65_ENTRY])
    with pytest.raises(DeviceNotFound):
        open_board(HidBus(hid), BoardKind.ZOOM_TKL_DYNA)
    assert hid.last_device.opened_path is None


def test_opened_board_uses_its_read_timeout():
    hid = FakeHidModule([ZOOM65_ENTRY])
    board = open_board(HidBus(hid))
    board.reset_screen()
    assert hid.last_device.read_timeouts == [Zoom65v3.READ_TIMEOUT_MS]
