"""
Data models for leaktrace
"""

from dataclasses import dataclass, field
from typing import Any, Optional


# Leak record kinds as sent by the leak-test service
KIND_IP = "ip"
KIND_DNS = "dns"
KIND_CONCLUSION = "conclusion"

WIRE_FIELDS = ('ip', 'country', 'country_name', 'asn', 'type')

# Header sizes subtracted from packet_size to get the UDP payload length
IPV4_HEADER_SIZE = 20
UDP_HEADER_SIZE = 8


@dataclass(frozen=True)
class LeakRecord:
    """One row of the DNS leak test verdict"""
    ip: str
    country: str
    country_name: str
    asn: str
    kind: str  # ip, dns or conclusion
    country_display: str = ""

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> 'LeakRecord':
        """
        Build a record from one object of the verdict JSON array.

        The wire field ``type`` becomes ``kind``. ``country_display`` is left
        empty; it is derived during enrichment.

        Raises:
            KeyError: if a wire field is missing
            TypeError: if data is not a JSON object
        """
        if not isinstance(data, dict):
            raise TypeError(f"expected object, got {type(data).__name__}")

        values = {}
        for name in WIRE_FIELDS:
            value = data[name]
            values[name] = "" if value is None else str(value)

        return cls(
            ip=values['ip'],
            country=values['country'],
            country_name=values['country_name'],
            asn=values['asn'],
            kind=values['type'],
        )


@dataclass(frozen=True)
class Hop:
    """
    One row of the traceroute table.

    ``ttl`` is only set on the first row of a TTL; continuation rows for
    further addresses at the same TTL leave it as None. ``host`` and
    ``address`` are None when nothing answered at that TTL.
    """
    ttl: Optional[int] = None
    host: Optional[str] = None
    address: Optional[str] = None
    samples: str = ""

    @property
    def ttl_display(self) -> str:
        return str(self.ttl) if self.ttl is not None else ""

    @property
    def host_display(self) -> str:
        return self.host if self.host is not None else "*"

    @property
    def address_display(self) -> str:
        return self.address if self.address is not None else "*"


@dataclass(frozen=True)
class TraceResult:
    """Complete traceroute result"""
    summary: str
    hops: tuple[Hop, ...] = ()


@dataclass(frozen=True)
class TraceConfig:
    """
    Probe parameters for a traceroute run.

    Built once at startup from the defaults below; callers may pass
    overrides to the constructor.
    """
    protocol: str = "udp"
    port_direction: str = "fixed-dest"  # fixed-dest or fixed-src
    port: int = 33434
    packet_size: int = 52
    first_ttl: int = 1
    max_ttl: int = 64
    rounds: int = 3
    max_flows: int = 1
    min_round_duration: float = 0.1  # seconds
    max_round_duration: float = 0.1  # seconds
    tos: int = 0
    read_timeout: float = 0.01  # seconds per ICMP socket read

    @classmethod
    def default(cls) -> 'TraceConfig':
        return cls()

    @property
    def payload_size(self) -> int:
        return max(0, self.packet_size - IPV4_HEADER_SIZE - UDP_HEADER_SIZE)


@dataclass(frozen=True)
class SnapshotHop:
    """Aggregated engine state for one TTL"""
    ttl: int
    addresses: tuple[str, ...] = ()
    samples: tuple[float, ...] = ()  # round-trip times in seconds


@dataclass(frozen=True)
class Snapshot:
    """Final engine state after all rounds"""
    error: Optional[str] = None
    hops: tuple[SnapshotHop, ...] = field(default_factory=tuple)
