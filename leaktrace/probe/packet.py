"""
ICMP reply parsing for UDP probes
"""

import socket
import struct
from dataclasses import dataclass
from typing import Optional


ICMP_DEST_UNREACHABLE = 3
ICMP_TIME_EXCEEDED = 11
ICMP_PORT_UNREACHABLE = 3  # Code within DEST_UNREACHABLE

ICMP_HEADER_SIZE = 8
MIN_IP_HEADER_SIZE = 20


@dataclass(frozen=True)
class IcmpReply:
    """An ICMP error quoting one of our UDP probes"""
    responder: str
    icmp_type: int
    icmp_code: int
    dst_addr: str  # destination of the quoted probe
    src_port: int
    dst_port: int

    @property
    def is_time_exceeded(self) -> bool:
        return self.icmp_type == ICMP_TIME_EXCEEDED

    @property
    def is_dest_unreachable(self) -> bool:
        return self.icmp_type == ICMP_DEST_UNREACHABLE


def build_payload(ttl: int, sequence: int, size: int) -> bytes:
    """Probe payload carrying TTL and sequence, padded to size"""
    header = struct.pack('!HH', ttl & 0xFFFF, sequence & 0xFFFF)
    return header.ljust(size, b'\x00')[:size]


def parse_reply(data: bytes, responder: str) -> Optional[IcmpReply]:
    """
    Parse a packet read from a raw ICMP socket.

    The packet starts with the outer IPv4 header. Only Time Exceeded and
    Destination Unreachable messages quoting a UDP datagram are returned.

    Args:
        data: Raw packet bytes
        responder: Source address the packet came from

    Returns:
        IcmpReply, or None for anything that is not a reply to a UDP probe
    """
    if len(data) < MIN_IP_HEADER_SIZE:
        return None

    ip_header_len = (data[0] & 0x0F) * 4
    icmp_data = data[ip_header_len:]

    if len(icmp_data) < ICMP_HEADER_SIZE:
        return None

    icmp_type = icmp_data[0]
    icmp_code = icmp_data[1]

    if icmp_type not in (ICMP_TIME_EXCEEDED, ICMP_DEST_UNREACHABLE):
        return None

    # Quoted IP header of the original datagram follows the ICMP header
    inner_ip = icmp_data[ICMP_HEADER_SIZE:]
    if len(inner_ip) < MIN_IP_HEADER_SIZE:
        return None

    if inner_ip[9] != socket.IPPROTO_UDP:
        return None

    inner_header_len = (inner_ip[0] & 0x0F) * 4
    inner_udp = inner_ip[inner_header_len:inner_header_len + 4]
    if len(inner_udp) < 4:
        return None

    src_port, dst_port = struct.unpack('!HH', inner_udp)

    return IcmpReply(
        responder=responder,
        icmp_type=icmp_type,
        icmp_code=icmp_code,
        dst_addr=socket.inet_ntoa(inner_ip[16:20]),
        src_port=src_port,
        dst_port=dst_port,
    )
