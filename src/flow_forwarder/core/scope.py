from __future__ import annotations
import ipaddress
from typing import Iterable, Optional, Sequence, Tuple

from .models import FlowRecord

DEFAULT_SCOPE_NETWORKS: Tuple[ipaddress.IPv4Network, ...] = (
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
)


def parse_networks(specs: Iterable[str]) -> Tuple[ipaddress.IPv4Network, ...]:
    """
    Parse CIDR strings into IPv4 networks.

    Raises ValueError for anything that is not a valid IPv4 network,
    including IPv6 networks, since only IPv4 sources are ever in scope.
    """
    nets = []
    for spec in specs:
        spec = spec.strip()
        if not spec:
            continue
        nets.append(ipaddress.IPv4Network(spec, strict=True))
    return tuple(nets)


def in_scope(address: Optional[str], networks: Sequence[ipaddress.IPv4Network] = DEFAULT_SCOPE_NETWORKS) -> bool:
    """
    True when address is an IPv4 address inside one of networks.

    Missing, unparseable and IPv6 addresses are out of scope.
    """
    if not address:
        return False
    try:
        ip = ipaddress.IPv4Address(address.strip())
    except ValueError:
        return False
    return any(ip in net for net in networks)


class ScopeFilter:
    """
    Whitelist of source networks whose flows are forwarded.

    Only the source address is checked. Anything that cannot be read as an
    IPv4 address fails closed, so public or malformed traffic never reaches
    the sink by accident.
    """

    def __init__(self, networks: Sequence[ipaddress.IPv4Network] = DEFAULT_SCOPE_NETWORKS):
        self.networks = tuple(networks)

    def allows(self, record: FlowRecord) -> bool:
        return in_scope(record.src_addr, self.networks)

    def __call__(self, record: FlowRecord) -> bool:
        return self.allows(record)
