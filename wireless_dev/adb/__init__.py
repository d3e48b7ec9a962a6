"""Expose adb helper utilities."""

from .adb_client import (
    ADBError,
    AdbClient,
    AdbCommandError,
    AdbNotFoundError,
    AdbResult,
    AdbTimeoutError,
)
from .device_discovery import find_device, list_connected_devices

__all__ = [
    "ADBError",
    "AdbClient",
    "AdbCommandError",
    "AdbNotFoundError",
    "AdbResult",
    "AdbTimeoutError",
    "find_device",
    "list_connected_devices",
]
