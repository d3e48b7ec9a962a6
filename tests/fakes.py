"""In-memory stand-in for AdbClient used across the test suite."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from wireless_dev.adb.adb_client import AdbCommandError, AdbNotFoundError, AdbResult
from wireless_dev.adb.output_parser import parse_connect_output
from wireless_dev.models import DeviceStatus, RawDeviceLine


def line(identifier: str, status: str = "device") -> RawDeviceLine:
    return RawDeviceLine(identifier=identifier, status=DeviceStatus(status))


class FakeAdbClient:
    def __init__(
        self,
        listing: Optional[List[RawDeviceLine]] = None,
        props: Optional[Dict[str, Dict[str, str]]] = None,
        reachable: Iterable[str] = (),
        shell_outputs: Optional[Dict[Tuple[str, str], str]] = None,
        available: bool = True,
        list_error: Optional[Exception] = None,
        silent_failures: Iterable[str] = (),
    ) -> None:
        self.listing = list(listing or [])
        self.props = props or {}
        self.reachable = set(reachable)
        self.silent_failures = set(silent_failures)
        self.shell_outputs = shell_outputs or {}
        self.available = available
        self.list_error = list_error
        self.list_calls = 0
        self.connect_calls: List[str] = []
        self.disconnect_calls: List[str] = []
        self.shell_calls: List[Tuple[str, str]] = []
        self.tcpip_calls: List[Tuple[str, int]] = []

    async def ensure_available(self) -> None:
        if not self.available:
            raise AdbNotFoundError("adb binary not found")

    async def list_devices(self) -> List[RawDeviceLine]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.listing)

    async def connect_raw(self, address: str, timeout: Optional[float] = None) -> AdbResult:
        self.connect_calls.append(address)
        if address in self.reachable:
            self.listing.append(line(address))
            return AdbResult(args=["adb", "connect", address], returncode=0, stdout=f"connected to {address}\n")
        if address in self.silent_failures:
            # adb sometimes reports a refused connection with a zero exit status
            return AdbResult(
                args=["adb", "connect", address],
                returncode=0,
                stdout=f"failed to connect to '{address}': Connection refused\n",
            )
        return AdbResult(
            args=["adb", "connect", address],
            returncode=1,
            stdout=f"failed to connect to '{address}': Connection refused\n",
        )

    async def connect(self, address: str, timeout: Optional[float] = None) -> bool:
        result = await self.connect_raw(address, timeout=timeout)
        return result.ok and parse_connect_output(result.output)

    async def disconnect(self, address: str) -> bool:
        self.disconnect_calls.append(address)
        return True

    async def get_properties(self, device_id: str) -> Dict[str, str]:
        return dict(self.props.get(device_id, {}))

    async def get_property(self, device_id: str, key: str) -> str:
        return self.props.get(device_id, {}).get(key, "")

    async def shell(self, device_id: str, command: str, check: bool = True) -> str:
        self.shell_calls.append((device_id, command))
        return self.shell_outputs.get((device_id, command), "")

    async def enable_tcp_mode(self, device_id: str, port: int = 5555) -> str:
        self.tcpip_calls.append((device_id, port))
        if device_id not in self.props:
            result = AdbResult(args=["adb", "tcpip"], returncode=1, stderr="error: device not found")
            raise AdbCommandError("ADB command failed", result)
        return f"restarting in TCP mode port: {port}"
