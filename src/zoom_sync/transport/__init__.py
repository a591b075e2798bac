"""HID transport: device enumeration and the command session."""

from .hid_connection import DeviceSession, HidBus, HidDeviceInfo
