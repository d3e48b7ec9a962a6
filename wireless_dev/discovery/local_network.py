"""
Local network helpers used by the discovery sweep.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Iterable, List, Optional

import psutil

logger = logging.getLogger(__name__)

LOOPBACK_ADDRESS = "127.0.0.1"


def _usable_ipv4(address: str) -> bool:
    try:
        ip = ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified or ip.is_multicast)


def get_local_ipv4_address(interfaces: Optional[dict] = None) -> str:
    """
    Return the first external IPv4 address of this host, or the loopback
    address when no interface has one.

    :param interfaces: mapping shaped like psutil.net_if_addrs(), mainly for tests
    """
    if interfaces is None:
        try:
            interfaces = psutil.net_if_addrs()
        except OSError as exc:
            logger.warning("Failed to enumerate network interfaces: %s", exc)
            interfaces = {}

    for name, addrs in interfaces.items():
        for addr in addrs:
            if addr.family == socket.AF_INET and _usable_ipv4(addr.address):
                logger.debug("Using local address %s from interface %s", addr.address, name)
                return addr.address
    logger.warning("No external IPv4 interface found, falling back to %s", LOOPBACK_ADDRESS)
    return LOOPBACK_ADDRESS


def is_loopback(address: str) -> bool:
    try:
        return ipaddress.IPv4Address(address).is_loopback
    except ValueError:
        return False


def subnet_prefix(address: str) -> str:
    """'192.168.1.5' -> '192.168.1.' (the /24 the address lives in)."""
    network = ipaddress.IPv4Network(f"{address}/24", strict=False)
    return str(network.network_address).rsplit(".", 1)[0] + "."


def candidate_addresses(local_address: str) -> List[str]:
    """Every host address 1-254 of the local /24 except the local address itself."""
    prefix = subnet_prefix(local_address)
    return [f"{prefix}{octet}" for octet in range(1, 255) if f"{prefix}{octet}" != local_address]


def sort_addresses(addresses: Iterable[str]) -> List[str]:
    return sorted(addresses, key=lambda value: ipaddress.IPv4Address(value))
