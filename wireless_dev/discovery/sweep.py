"""
Subnet sweep that finds hosts answering `adb connect` on the local /24.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from wireless_dev.adb.adb_client import ADBError, AdbClient
from wireless_dev.adb.output_parser import DEFAULT_ADB_PORT, first_matching
from wireless_dev.discovery.local_network import (
    candidate_addresses,
    get_local_ipv4_address,
    is_loopback,
    sort_addresses,
)
from wireless_dev.models import DiscoveredHost, HostStatus

logger = logging.getLogger(__name__)


class DiscoveryError(RuntimeError):
    """Raised when the sweep cannot even list the currently connected devices."""


@dataclass
class SweepResult:
    local_address: str
    hosts: List[DiscoveredHost] = field(default_factory=list)
    probed: int = 0

    @property
    def connected(self) -> List[DiscoveredHost]:
        return [h for h in self.hosts if h.status is HostStatus.CONNECTED]

    @property
    def discoverable(self) -> List[DiscoveredHost]:
        return [h for h in self.hosts if h.status is HostStatus.DISCOVERABLE]


class DiscoverySweep:
    """Classifies every candidate address once, then probes the unknown ones concurrently."""

    def __init__(
        self,
        client: AdbClient,
        port: int = DEFAULT_ADB_PORT,
        probe_timeout: float = 0.5,
        max_concurrent_probes: int = 254,
        local_address_provider: Optional[Callable[[], str]] = None,
        host_boundary: bool = False,
    ) -> None:
        self.client = client
        self.port = port
        self.probe_timeout = probe_timeout
        self.max_concurrent_probes = max(1, max_concurrent_probes)
        self.local_address_provider = local_address_provider or get_local_ipv4_address
        self.host_boundary = host_boundary

    async def run(self, local_address: Optional[str] = None) -> SweepResult:
        local_address = local_address or self.local_address_provider()
        result = SweepResult(local_address=local_address)
        if is_loopback(local_address):
            logger.warning("Local address is %s, nothing to sweep", local_address)
            return result

        try:
            listing = await self.client.list_devices()
        except ADBError as exc:
            raise DiscoveryError(f"Could not list connected devices: {exc}") from exc
        identifiers = [line.identifier for line in listing]

        found: Dict[str, HostStatus] = {}
        to_probe: List[str] = []
        for address in candidate_addresses(local_address):
            if first_matching(identifiers, address, host_boundary=self.host_boundary) is not None:
                found[address] = HostStatus.CONNECTED
            else:
                to_probe.append(address)

        semaphore = asyncio.Semaphore(self.max_concurrent_probes)

        async def probe(address: str) -> None:
            async with semaphore:
                if await self._probe(address):
                    found[address] = HostStatus.DISCOVERABLE
                    logger.info("Found adb listener at %s:%s", address, self.port)

        outcomes = await asyncio.gather(*(probe(address) for address in to_probe), return_exceptions=True)
        for address, outcome in zip(to_probe, outcomes):
            if isinstance(outcome, BaseException):
                logger.debug("Probe of %s:%s raised %r", address, self.port, outcome)

        result.probed = len(to_probe)
        result.hosts = [DiscoveredHost(address, found[address]) for address in sort_addresses(found)]
        return result

    async def _probe(self, address: str) -> bool:
        target = f"{address}:{self.port}"
        try:
            return await self.client.connect(target, timeout=self.probe_timeout)
        except ADBError as exc:
            logger.debug("Probe of %s failed: %s", target, exc)
            return False

    async def release(self, hosts: List[DiscoveredHost]) -> List[str]:
        """Disconnect hosts this sweep connected; returns the addresses released."""
        released: List[str] = []
        for host in hosts:
            if host.status is not HostStatus.DISCOVERABLE:
                continue
            target = f"{host.address}:{self.port}"
            try:
                if await self.client.disconnect(target):
                    released.append(target)
            except ADBError as exc:
                logger.warning("Failed to disconnect %s: %s", target, exc)
        return released
