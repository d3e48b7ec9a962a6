# File: wireless_dev/known_devices.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from wireless_dev.models import KnownDevice, utc_now_iso

logger = logging.getLogger(__name__)

KNOWN_DEVICES_KEY = "knownDevices"


class KnownDeviceStore:
    """
    Flat JSON file of previously seen devices.

    Loaded once at startup and passed to the command handlers; every mutation
    is followed by an explicit save() that rewrites the whole file.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._extra: Dict[str, Any] = {}
        self.devices: List[KnownDevice] = []

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable preference file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring preference file %s: expected a JSON object", self.path)
            return {}
        return data

    def load(self) -> List[KnownDevice]:
        data = self._read_document()
        raw_devices = data.pop(KNOWN_DEVICES_KEY, None) or []
        self._extra = data
        if not isinstance(raw_devices, list):
            logger.warning("Ignoring '%s' in %s: expected a list", KNOWN_DEVICES_KEY, self.path)
            raw_devices = []

        devices: List[KnownDevice] = []
        for record in raw_devices:
            try:
                devices.append(KnownDevice.model_validate(record))
            except ValidationError as exc:
                logger.warning("Skipping invalid known device record %r: %s", record, exc)
        self.devices = devices
        return list(devices)

    def save(self, devices: Optional[List[KnownDevice]] = None) -> None:
        if devices is not None:
            self.devices = list(devices)
        document = dict(self._extra)
        document[KNOWN_DEVICES_KEY] = [device.to_record() for device in self.devices]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=2)

    def find_by_address(self, address: str) -> Optional[KnownDevice]:
        for device in self.devices:
            if device.ip == address:
                return device
        return None

    def record(self, device: KnownDevice) -> KnownDevice:
        """Insert the device, or replace the entry with the same address, then save."""
        for index, existing in enumerate(self.devices):
            if existing.ip == device.ip:
                self.devices[index] = device
                break
        else:
            self.devices.append(device)
        self.save()
        return device

    def touch(self, address: str, timestamp: Optional[str] = None) -> Optional[KnownDevice]:
        """Refresh lastConnected of a known address; returns None when unknown."""
        device = self.find_by_address(address)
        if device is None:
            return None
        device.last_connected = timestamp or utc_now_iso()
        self.save()
        return device
