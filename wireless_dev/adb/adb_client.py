# File: wireless_dev/adb/adb_client.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from wireless_dev.adb.output_parser import (
    DEFAULT_ADB_PORT,
    parse_connect_output,
    parse_devices_output,
    parse_disconnect_output,
    parse_getprop_output,
)
from wireless_dev.models import RawDeviceLine

logger = logging.getLogger(__name__)


class ADBError(RuntimeError):
    """Raised when an ADB operation fails."""


class AdbNotFoundError(ADBError):
    """Raised when the adb executable cannot be launched at all."""


class AdbCommandError(ADBError):
    """Raised when adb exits with a non-zero status and success was required."""

    def __init__(self, message: str, result: "AdbResult") -> None:
        super().__init__(message)
        self.result = result


class AdbTimeoutError(ADBError):
    """Raised when an adb invocation does not finish within its timeout."""


@dataclass
class AdbResult:
    args: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr joined, adb splits its messages between both."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


class AdbClient:
    """
    Thin async wrapper around the adb binary.

    Every public method spawns exactly one adb process. Output is handed to
    the parsers in `output_parser`, so this class only deals with process
    plumbing: launching, timing out and mapping failures onto ADBError.
    """

    def __init__(self, adb_path: str = "adb", default_timeout: Optional[float] = None) -> None:
        """
        :param adb_path: path to adb binary
        :param default_timeout: seconds before any call is abandoned (None waits forever)
        """
        self.adb_path = adb_path
        self.default_timeout = default_timeout

    # ----------------------------------------------------------------------
    # Internal helpers
    # ----------------------------------------------------------------------
    async def _run_adb(
        self,
        *args: str,
        check: bool = False,
        timeout: Optional[float] = None,
    ) -> AdbResult:
        """
        Run an adb command and return its AdbResult.
        Raises AdbCommandError if check=True and returncode != 0.
        """
        cmd = [self.adb_path, *args]
        timeout = self.default_timeout if timeout is None else timeout
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise AdbNotFoundError(
                f"adb binary not found when running: {' '.join(cmd)}; "
                "ensure Android platform-tools are installed and adb is in PATH."
            ) from exc
        except PermissionError as exc:
            raise AdbNotFoundError(f"adb binary at {self.adb_path} is not executable") from exc
        except OSError as exc:
            raise ADBError(f"Could not launch {' '.join(cmd)}: {exc}") from exc

        try:
            if timeout is not None:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout)
            else:
                stdout_bytes, stderr_bytes = await proc.communicate()
        except asyncio.TimeoutError as exc:
            await self._kill(proc)
            raise AdbTimeoutError(f"ADB command timed out after {timeout}s: {' '.join(cmd)}") from exc

        result = AdbResult(
            args=cmd,
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )
        if check and not result.ok:
            raise AdbCommandError(
                f"ADB command failed: {' '.join(cmd)}\n"
                f"stdout:\n{result.stdout}\n"
                f"stderr:\n{result.stderr}\n",
                result,
            )
        return result

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()

    # ----------------------------------------------------------------------
    # Public API used by the rest of the project
    # ----------------------------------------------------------------------
    async def version(self) -> str:
        result = await self._run_adb("version", check=True)
        return result.stdout.strip()

    async def ensure_available(self) -> None:
        """Raise AdbNotFoundError unless `adb version` runs successfully."""
        try:
            await self.version()
        except AdbCommandError as exc:
            raise AdbNotFoundError(f"adb at {self.adb_path} is not usable: {exc.result.output}") from exc

    async def list_devices(self) -> List[RawDeviceLine]:
        result = await self._run_adb("devices", check=True)
        return parse_devices_output(result.stdout)

    async def connect_raw(self, address: str, timeout: Optional[float] = None) -> AdbResult:
        return await self._run_adb("connect", address, timeout=timeout)

    async def connect(self, address: str, timeout: Optional[float] = None) -> bool:
        result = await self.connect_raw(address, timeout=timeout)
        return result.ok and parse_connect_output(result.output)

    async def disconnect(self, address: str) -> bool:
        result = await self._run_adb("disconnect", address)
        return result.ok and parse_disconnect_output(result.output)

    async def get_property(self, device_id: str, key: str) -> str:
        result = await self._run_adb("-s", device_id, "shell", "getprop", key, check=True)
        return result.stdout.strip()

    async def get_properties(self, device_id: str) -> Dict[str, str]:
        """Fetch every system property of the device with a single `getprop` dump."""
        result = await self._run_adb("-s", device_id, "shell", "getprop", check=True)
        return parse_getprop_output(result.stdout)

    async def shell(self, device_id: str, command: str, check: bool = True) -> str:
        """
        Run 'adb -s <device_id> shell <command>' and return stdout.
        """
        result = await self._run_adb("-s", device_id, "shell", command, check=check)
        return result.stdout

    async def enable_tcp_mode(self, device_id: str, port: int = DEFAULT_ADB_PORT) -> str:
        result = await self._run_adb("-s", device_id, "tcpip", str(port), check=True)
        return result.output
