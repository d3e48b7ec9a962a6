"""Workflows that move devices between USB and wireless debugging."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from wireless_dev.adb.adb_client import ADBError, AdbClient
from wireless_dev.adb.device_discovery import find_device
from wireless_dev.adb.output_parser import (
    DEFAULT_ADB_PORT,
    PROP_MODEL,
    normalize_address,
    parse_connect_output,
    parse_major_version,
    parse_wlan_inet_address,
    parse_wlan_route_address,
)
from wireless_dev.known_devices import KnownDeviceStore
from wireless_dev.models import Device, KnownDevice

logger = logging.getLogger(__name__)

# Android 11 introduced the wireless debugging settings page; older releases
# only expose the address through `ip addr`.
ROUTE_LOOKUP_MIN_VERSION = 11


class WirelessSetupError(RuntimeError):
    """Base class for failures of the wireless workflows."""


class DeviceNotFoundError(WirelessSetupError):
    def __init__(self, device_id: str) -> None:
        super().__init__(f"Device {device_id} not found")
        self.device_id = device_id


class WifiAddressError(WirelessSetupError):
    def __init__(self, device_id: str) -> None:
        super().__init__(
            f"Could not determine the Wi-Fi address of {device_id}. "
            "Make sure Wi-Fi is enabled on the device."
        )
        self.device_id = device_id


class ConnectFailedError(WirelessSetupError):
    def __init__(self, address: str, output: str) -> None:
        super().__init__(f"Failed to connect to {address}: {output or 'no output from adb'}")
        self.address = address
        self.output = output


@dataclass
class WirelessResult:
    device: Device
    address: Optional[str] = None  # ip:port the device now listens on
    already_wireless: bool = False
    legacy_lookup: bool = False


async def lookup_wifi_address(client: AdbClient, device: Device) -> tuple[str, bool]:
    """Return (address, used_legacy_lookup) for the device's wlan0 interface."""
    major = parse_major_version(device.platform_version)
    if major is not None and major >= ROUTE_LOOKUP_MIN_VERSION:
        output = await client.shell(device.identifier, "ip route", check=False)
        return parse_wlan_route_address(output), False
    output = await client.shell(device.identifier, "ip addr show wlan0", check=False)
    return parse_wlan_inet_address(output), True


async def enable_wireless(
    client: AdbClient,
    store: KnownDeviceStore,
    device_id: str,
    port: int = DEFAULT_ADB_PORT,
) -> WirelessResult:
    device = await find_device(client, device_id)
    if device is None:
        raise DeviceNotFoundError(device_id)
    if device.wireless:
        return WirelessResult(device=device, address=device.identifier, already_wireless=True)

    ip, legacy = await lookup_wifi_address(client, device)
    if not ip:
        raise WifiAddressError(device_id)

    await client.enable_tcp_mode(device_id, port)
    address = f"{ip}:{port}"
    store.record(KnownDevice(id=device_id, ip=address, model=device.model or "Unknown"))
    logger.info("Device %s now listens on %s", device_id, address)
    return WirelessResult(device=device, address=address, legacy_lookup=legacy)


async def connect_device(
    client: AdbClient,
    store: KnownDeviceStore,
    address: str,
    port: int = DEFAULT_ADB_PORT,
) -> str:
    """Connect to address (default port appended) and remember it; returns adb's message."""
    address = normalize_address(address, port)
    result = await client.connect_raw(address)
    message = result.output
    if not (result.ok and parse_connect_output(message)):
        raise ConnectFailedError(address, message)

    if store.touch(address) is None:
        model = "Unknown"
        try:
            model = await client.get_property(address, PROP_MODEL) or model
        except ADBError as exc:
            logger.debug("Could not read model of %s: %s", address, exc)
        store.record(KnownDevice(id=address, ip=address, model=model))
    return message


async def disconnect_device(client: AdbClient, address: str) -> bool:
    return await client.disconnect(address)
