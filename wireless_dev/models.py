# wireless_dev/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DeviceStatus(str, Enum):
    DEVICE = "device"
    OFFLINE = "offline"
    UNAUTHORIZED = "unauthorized"


class HostStatus(str, Enum):
    CONNECTED = "connected"
    DISCOVERABLE = "discoverable"


@dataclass(frozen=True)
class RawDeviceLine:
    """One `<serial> <state> [details]` row of `adb devices` output."""

    identifier: str
    status: DeviceStatus
    details: str = ""


@dataclass
class Device:
    identifier: str
    status: DeviceStatus
    model: Optional[str] = None
    platform_version: Optional[str] = None  # e.g. "13", "10"
    manufacturer: Optional[str] = None
    wireless: bool = False

    @property
    def is_ready(self) -> bool:
        return self.status is DeviceStatus.DEVICE

    @property
    def connection_type(self) -> str:
        return "Wireless" if self.wireless else "USB"

    def display_name(self) -> str:
        return f"{self.model or 'Unknown'} ({self.identifier})"


@dataclass(frozen=True)
class DiscoveredHost:
    address: str
    status: HostStatus


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class KnownDevice(BaseModel):
    """A device remembered across invocations, stored in the preference file."""

    id: str
    ip: str  # address:port
    model: str = "Unknown"
    last_connected: str = Field(default_factory=utc_now_iso, alias="lastConnected")

    model_config = ConfigDict(populate_by_name=True)

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)

    def display_name(self) -> str:
        return f"{self.model or 'Unknown'} ({self.ip})"
