"""
Shared fakes for leaktrace tests.

Provides:
- FakeResolver: canned forward/reverse answers, records calls
- FakeTracer / tracer_factory: canned snapshots, records construction
- icmp_packet: builds raw ICMP error packets quoting a UDP probe
"""

import socket
import struct

import pytest

from leaktrace.models import Snapshot


class FakeResolver:
    def __init__(self, addresses=None, names=None):
        self.addresses = addresses if addresses is not None else []
        self.names = names or {}
        self.lookups = []
        self.reverse_lookups = []

    def lookup(self, hostname):
        self.lookups.append(hostname)
        return list(self.addresses)

    def reverse_lookup(self, address):
        self.reverse_lookups.append(address)
        return self.names.get(address, address)


class FakeTracer:
    def __init__(self, target, config, snapshot):
        self.target = target
        self.config = config
        self._snapshot = snapshot
        self.ran = False

    def run(self):
        self.ran = True

    def snapshot(self):
        return self._snapshot


class TracerFactory:
    """Callable standing in for the Tracer class"""

    def __init__(self, snapshot=None):
        self.snapshot = snapshot or Snapshot()
        self.created = []

    def __call__(self, target, config):
        tracer = FakeTracer(target, config, self.snapshot)
        self.created.append(tracer)
        return tracer


def icmp_packet(icmp_type, icmp_code, dst_addr, src_port, dst_port,
                proto=socket.IPPROTO_UDP):
    """Outer IPv4 header + ICMP header + quoted IPv4/UDP headers"""
    outer_ip = bytes([0x45]) + bytes(19)
    icmp_header = bytes([icmp_type, icmp_code]) + bytes(6)
    inner_ip = (
        bytes([0x45]) + bytes(8) + bytes([proto]) + bytes(2)
        + socket.inet_aton("10.0.0.2") + socket.inet_aton(dst_addr)
    )
    inner_udp = struct.pack('!HHHH', src_port, dst_port, 32, 0)
    return outer_ip + icmp_header + inner_ip + inner_udp


@pytest.fixture
def resolver():
    return FakeResolver(addresses=["162.159.128.233"])


@pytest.fixture
def tracer_factory():
    return TracerFactory()
