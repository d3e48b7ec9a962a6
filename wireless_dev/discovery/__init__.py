"""Network discovery of adb-reachable hosts."""

from .local_network import candidate_addresses, get_local_ipv4_address
from .sweep import DiscoveryError, DiscoverySweep, SweepResult

__all__ = [
    "DiscoveryError",
    "DiscoverySweep",
    "SweepResult",
    "candidate_addresses",
    "get_local_ipv4_address",
]
