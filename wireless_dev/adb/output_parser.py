"""Parsers for the plain-text output of adb commands.

Nothing in here spawns a process; every function takes captured text and
returns plain values so it can be exercised against literal sample outputs.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from wireless_dev.models import DeviceStatus, RawDeviceLine

DEFAULT_ADB_PORT = 5555

ADB_LINE_PATTERN = re.compile(
    r"^(?P<serial>[^\s]+)\s+(?P<state>device|offline|unauthorized)\s*(?P<details>.*)$"
)
GETPROP_LINE_PATTERN = re.compile(r"^\[(?P<key>[^\]]+)\]:\s*\[(?P<value>.*)\]$")
WIRELESS_ID_PATTERN = re.compile(r"\d{1,3}(?:\.\d{1,3}){3}:\d+")
ADDRESS_INPUT_PATTERN = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}(:\d+)?$")
INET_PATTERN = re.compile(r"\binet\s+(?P<address>\d{1,3}(?:\.\d{1,3}){3})(?:/\d+)?")
ROUTE_SRC_PATTERN = re.compile(r"\bsrc\s+(?P<address>\d{1,3}(?:\.\d{1,3}){3})")

DEV_PROCESS_PATTERN = re.compile(r"app_process|react|expo|metro")
DEV_PACKAGE_PATTERN = re.compile(r"react|expo|debug")

PROP_MODEL = "ro.product.model"
PROP_PLATFORM_VERSION = "ro.build.version.release"
PROP_MANUFACTURER = "ro.product.manufacturer"


def parse_devices_output(output: str) -> List[RawDeviceLine]:
    """Parse `adb devices [-l]` output, keeping the first row per serial."""
    devices: List[RawDeviceLine] = []
    seen = set()
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        match = ADB_LINE_PATTERN.match(line)
        if not match:
            continue
        serial = match.group("serial")
        if serial in seen:
            continue
        seen.add(serial)
        devices.append(
            RawDeviceLine(
                identifier=serial,
                status=DeviceStatus(match.group("state")),
                details=match.group("details").strip(),
            )
        )
    return devices


def parse_getprop_output(output: str) -> Dict[str, str]:
    """Parse a full `getprop` dump (`[key]: [value]` per line) into a dict."""
    props: Dict[str, str] = {}
    for line in output.splitlines():
        match = GETPROP_LINE_PATTERN.match(line.strip())
        if match:
            props[match.group("key")] = match.group("value").strip()
    return props


def parse_connect_output(output: str) -> bool:
    """
    adb connect prints "connected to X" or "already connected to X" on success
    and "failed to connect to X" / "cannot connect to X" otherwise, sometimes
    with a zero exit status.
    """
    lowered = output.lower()
    if "failed to connect" in lowered or "cannot connect" in lowered or "unable to connect" in lowered:
        return False
    return "connected to" in lowered


def parse_disconnect_output(output: str) -> bool:
    lowered = output.lower()
    if "error" in lowered or "no such device" in lowered:
        return False
    return "disconnected" in lowered


def parse_wlan_route_address(output: str, interface: str = "wlan0") -> str:
    """
    Return the source address of the route bound to `interface` from `ip route`
    output, e.g. "192.168.1.0/24 dev wlan0 proto kernel scope link src 192.168.1.23".
    Empty string when the interface has no route.
    """
    for line in output.splitlines():
        if f"dev {interface}" not in line:
            continue
        match = ROUTE_SRC_PATTERN.search(line)
        if match:
            return match.group("address")
    return ""


def parse_wlan_inet_address(output: str) -> str:
    """Return the first IPv4 `inet` address from `ip addr show <iface>` output."""
    match = INET_PATTERN.search(output)
    return match.group("address") if match else ""


def filter_dev_processes(ps_output: str) -> List[str]:
    return [line.strip() for line in ps_output.splitlines() if line.strip() and DEV_PROCESS_PATTERN.search(line)]


def filter_dev_packages(packages_output: str) -> List[str]:
    packages: List[str] = []
    for line in packages_output.splitlines():
        line = line.strip()
        if not line or not DEV_PACKAGE_PATTERN.search(line):
            continue
        if line.startswith("package:"):
            line = line[len("package:"):]
        packages.append(line.strip())
    return packages


def parse_major_version(version: Optional[str]) -> Optional[int]:
    """Major platform version from e.g. "11", "8.1.0" or "14 QPR2"; None when unparsable."""
    if not version:
        return None
    match = re.match(r"\s*(\d+)", version)
    return int(match.group(1)) if match else None


def is_wireless_identifier(identifier: str) -> bool:
    return bool(WIRELESS_ID_PATTERN.search(identifier))


def is_valid_address(value: str) -> bool:
    return bool(ADDRESS_INPUT_PATTERN.match(value.strip()))


def normalize_address(target: str, port: int = DEFAULT_ADB_PORT) -> str:
    """
    Normalize target:
    - If it already has ':', assume it's IP:PORT and return as-is.
    - Otherwise, append the default TCP port.
    """
    target = target.strip()
    if ":" in target:
        return target
    return f"{target}:{port}"


def host_of(address: str) -> str:
    return address.split(":", 1)[0]


def first_matching(identifiers: Iterable[str], address: str, host_boundary: bool = False) -> Optional[str]:
    """
    Return the first identifier that contains or starts with `address`.

    With host_boundary=True the address must not be followed by another
    digit, so 192.168.1.1 no longer matches 192.168.1.12:5555.
    """
    pattern = re.compile(rf"(?<![\d.]){re.escape(address)}(?!\d)") if host_boundary else None
    for identifier in identifiers:
        if pattern is not None:
            if pattern.search(identifier):
                return identifier
        elif identifier.startswith(address) or address in identifier:
            return identifier
    return None
