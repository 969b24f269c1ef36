"""
Round-based UDP traceroute engine
"""

import socket
import time
from dataclasses import dataclass, field
from typing import Optional

from ..models import Snapshot, SnapshotHop, TraceConfig
from .packet import IcmpReply, build_payload, parse_reply


MAX_PORT = 65535
RECV_BUFFER_SIZE = 1500

PORT_DIRECTIONS = ('fixed-dest', 'fixed-src')


@dataclass
class _Probe:
    ttl: int
    sent_at: float
    sock: Optional[socket.socket] = None


@dataclass
class _HopState:
    addresses: list[str] = field(default_factory=list)
    samples: list[float] = field(default_factory=list)


class Tracer:
    """
    UDP traceroute engine.

    Sends one probe per TTL in every round and collects the ICMP errors
    they trigger. Each probe is identified by its (source port,
    destination port) pair: one of them is fixed at ``config.port`` and the
    other carries an increasing sequence number starting at the same value.

    Usage:
        tracer = Tracer('162.159.128.233', TraceConfig.default())
        tracer.run()
        snapshot = tracer.snapshot()

    Errors while opening the receive socket (usually missing root
    privileges) do not raise; they end the run and appear as
    ``snapshot().error``.
    """

    def __init__(self, target: str, config: Optional[TraceConfig] = None):
        self.target = target
        self.config = config or TraceConfig.default()

        if self.config.protocol != 'udp':
            raise ValueError(f"Unsupported protocol '{self.config.protocol}'")
        if self.config.port_direction not in PORT_DIRECTIONS:
            raise ValueError(
                f"Unknown port direction '{self.config.port_direction}'. "
                f"Supported: {', '.join(PORT_DIRECTIONS)}"
            )
        if self.config.max_flows != 1:
            raise ValueError("Only a single flow is supported")

        self._sequence = self.config.port
        self._hops: dict[int, _HopState] = {}
        self._target_ttl: Optional[int] = None
        self._highest_ttl_sent: Optional[int] = None
        self._error: Optional[str] = None
        self._fixed_socket: Optional[socket.socket] = None

    @property
    def max_ttl(self) -> int:
        return self.config.max_ttl

    @property
    def packet_size(self) -> int:
        return self.config.packet_size

    def run(self):
        """Run all configured rounds, blocking until done"""
        icmp_socket = None
        try:
            icmp_socket = self._open_icmp_socket()
            if self.config.port_direction == 'fixed-src':
                self._fixed_socket = self._open_udp_socket(self.config.port)

            for _ in range(self.config.rounds):
                self._run_round(icmp_socket)

            if self._highest_ttl_sent is None:
                self._error = f"no probe could be sent to {self.target}"

        except PermissionError:
            self._error = (
                "root privileges required for raw ICMP sockets. "
                "Please run with sudo."
            )
        except OSError as e:
            self._error = str(e)
        finally:
            for sock in (icmp_socket, self._fixed_socket):
                if sock:
                    sock.close()
            self._fixed_socket = None

    def snapshot(self) -> Snapshot:
        """
        Aggregated state of all rounds run so far.

        Hops run from ``first_ttl`` to the highest TTL probed, cut off at
        the TTL at which the target answered. Silent TTLs are blank hops.
        """
        if self._error:
            return Snapshot(error=self._error)

        last_ttl = self._highest_ttl_sent
        if last_ttl is None:
            return Snapshot()
        if self._target_ttl is not None:
            last_ttl = min(last_ttl, self._target_ttl)

        hops = []
        for ttl in range(self.config.first_ttl, last_ttl + 1):
            state = self._hops.get(ttl, _HopState())
            hops.append(SnapshotHop(
                ttl=ttl,
                addresses=tuple(state.addresses),
                samples=tuple(state.samples),
            ))
        return Snapshot(hops=tuple(hops))

    def _open_icmp_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
        sock.bind(('', 0))
        return sock

    def _open_udp_socket(self, src_port: int) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_TOS, self.config.tos)
        sock.bind(('', src_port))
        return sock

    def _next_sequence(self) -> int:
        sequence = self._sequence
        self._sequence = sequence + 1 if sequence < MAX_PORT else self.config.port
        return sequence

    def _ports_for(self, sequence: int) -> tuple[int, int]:
        """(source port, destination port) for a probe sequence number"""
        if self.config.port_direction == 'fixed-src':
            return self.config.port, sequence
        return sequence, self.config.port

    def _send_probe(self, ttl: int) -> Optional[tuple[tuple[int, int], _Probe]]:
        """Send one probe; a failed send counts as a lost probe"""
        sequence = self._next_sequence()
        src_port, dst_port = self._ports_for(sequence)
        payload = build_payload(ttl, sequence, self.config.payload_size)

        sock = self._fixed_socket
        owned = None
        try:
            if sock is None:
                sock = owned = self._open_udp_socket(src_port)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)
            sent_at = time.perf_counter()
            sock.sendto(payload, (self.target, dst_port))
        except OSError:
            if owned:
                owned.close()
            return None

        return (src_port, dst_port), _Probe(ttl=ttl, sent_at=sent_at, sock=owned)

    def _run_round(self, icmp_socket: socket.socket):
        config = self.config
        started = time.perf_counter()
        outstanding: dict[tuple[int, int], _Probe] = {}

        last_ttl = config.max_ttl
        if self._target_ttl is not None:
            last_ttl = min(last_ttl, self._target_ttl)

        try:
            for ttl in range(config.first_ttl, last_ttl + 1):
                sent = self._send_probe(ttl)
                if sent:
                    key, probe = sent
                    outstanding[key] = probe
                    if self._highest_ttl_sent is None or ttl > self._highest_ttl_sent:
                        self._highest_ttl_sent = ttl

            while True:
                elapsed = time.perf_counter() - started
                if elapsed >= config.max_round_duration:
                    break
                if not outstanding and elapsed >= config.min_round_duration:
                    break

                remaining = config.max_round_duration - elapsed
                icmp_socket.settimeout(min(config.read_timeout, remaining))
                try:
                    data, addr = icmp_socket.recvfrom(RECV_BUFFER_SIZE)
                except socket.timeout:
                    continue
                received_at = time.perf_counter()

                reply = parse_reply(data, addr[0])
                if reply:
                    self._handle_reply(reply, received_at, outstanding)
        finally:
            for probe in outstanding.values():
                if probe.sock:
                    probe.sock.close()

    def _handle_reply(self, reply: IcmpReply, received_at: float,
                      outstanding: dict[tuple[int, int], _Probe]) -> bool:
        """Record a reply if it answers an outstanding probe"""
        if reply.dst_addr != self.target:
            return False

        probe = outstanding.pop((reply.src_port, reply.dst_port), None)
        if probe is None:
            return False
        if probe.sock:
            probe.sock.close()

        state = self._hops.setdefault(probe.ttl, _HopState())
        if reply.responder not in state.addresses:
            state.addresses.append(reply.responder)
        state.samples.append(received_at - probe.sent_at)

        if reply.is_dest_unreachable and reply.responder == self.target:
            if self._target_ttl is None or probe.ttl < self._target_ttl:
                self._target_ttl = probe.ttl

        return True
