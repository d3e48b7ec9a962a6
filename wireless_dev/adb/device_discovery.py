"""Helpers for listing and filtering adb-connected devices."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from wireless_dev.adb.adb_client import ADBError, AdbClient
from wireless_dev.adb.output_parser import (
    PROP_MANUFACTURER,
    PROP_MODEL,
    PROP_PLATFORM_VERSION,
    is_wireless_identifier,
)
from wireless_dev.models import Device, RawDeviceLine

logger = logging.getLogger(__name__)


async def describe_device(client: AdbClient, line: RawDeviceLine) -> Device:
    """Build a Device, querying properties only for devices in the `device` state."""
    device = Device(
        identifier=line.identifier,
        status=line.status,
        wireless=is_wireless_identifier(line.identifier),
    )
    if not device.is_ready:
        return device
    try:
        props = await client.get_properties(line.identifier)
    except ADBError as exc:
        logger.debug("Could not read properties of %s: %s", line.identifier, exc)
        return device
    device.model = props.get(PROP_MODEL) or None
    device.platform_version = props.get(PROP_PLATFORM_VERSION) or None
    device.manufacturer = props.get(PROP_MANUFACTURER) or None
    return device


async def list_connected_devices(client: AdbClient) -> List[Device]:
    """Run `adb devices` and describe every listed device, one property dump each."""
    lines = await client.list_devices()
    return list(await asyncio.gather(*(describe_device(client, line) for line in lines)))


async def find_device(client: AdbClient, device_id: str) -> Optional[Device]:
    for device in await list_connected_devices(client):
        if device.identifier == device_id:
            return device
    return None
