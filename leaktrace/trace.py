"""
Traceroute orchestrator
"""

from typing import Callable, Optional, Protocol

from .errors import EngineFailure, ResolutionError, UnknownHost
from .models import Hop, Snapshot, TraceConfig, TraceResult
from .probe import Tracer
from .resolver import Resolver
from .validation import is_ipv4_address


class TracerLike(Protocol):
    def run(self) -> None: ...

    def snapshot(self) -> Snapshot: ...


class ResolverLike(Protocol):
    def lookup(self, hostname: str) -> list[str]: ...

    def reverse_lookup(self, address: str) -> str: ...


TracerFactory = Callable[[str, TraceConfig], TracerLike]


def format_samples(samples) -> str:
    """Format round-trip times (seconds) as '12.340 ms  13.001 ms'"""
    return "  ".join(f"{sample * 1000:.3f} ms" for sample in samples)


def build_summary(hostname: str, address: str, config: TraceConfig) -> str:
    return (
        f"Traceroute to {hostname} ({address}), "
        f"{config.max_ttl} hops max, {config.packet_size} byte packets"
    )


def select_address(hostname: str, addresses: list[str],
                   on_warning: Optional[Callable[[str], None]] = None) -> str:
    """
    Pick the traceroute target among the resolved addresses.

    The first address in resolver order wins. Resolver order is not
    guaranteed to be stable (round-robin DNS), so neither is the choice
    across runs.
    """
    if not addresses:
        raise UnknownHost(hostname)

    address = addresses[0]
    if len(addresses) > 1 and on_warning:
        on_warning(f"{hostname} has multiple addresses; using {address}")
    return address


def reconcile(snapshot: Snapshot, resolver: ResolverLike) -> list[Hop]:
    """
    Turn an engine snapshot into table rows.

    A silent TTL becomes a single blank row. A TTL answered by k
    addresses becomes k rows, the TTL shown on the first only; all of
    them share the TTL's samples.
    """
    hops: list[Hop] = []

    for snapshot_hop in sorted(snapshot.hops, key=lambda h: h.ttl):
        samples = format_samples(snapshot_hop.samples)

        if not snapshot_hop.addresses:
            hops.append(Hop(ttl=snapshot_hop.ttl, samples=samples))
            continue

        for i, address in enumerate(snapshot_hop.addresses):
            hops.append(Hop(
                ttl=snapshot_hop.ttl if i == 0 else None,
                host=resolver.reverse_lookup(address),
                address=address,
                samples=samples,
            ))

    return hops


def run_traceroute(
    hostname: str,
    config: Optional[TraceConfig] = None,
    resolver: Optional[ResolverLike] = None,
    tracer_factory: Optional[TracerFactory] = None,
    on_warning: Optional[Callable[[str], None]] = None
) -> TraceResult:
    """
    Trace the route to hostname.

    Blocks for the whole probing campaign.

    Args:
        hostname: Target hostname or IP address
        config: Probe parameters (default: TraceConfig.default())
        resolver: Resolver adapter (default: Resolver())
        tracer_factory: Builds the engine from (address, config)
        on_warning: Called with non-fatal warning messages

    Returns:
        TraceResult with summary and hop rows

    Raises:
        UnknownHost: hostname did not resolve
        EngineFailure: the engine reported an error
    """
    config = config or TraceConfig.default()
    tracer_factory = tracer_factory or Tracer

    try:
        resolver = resolver or Resolver()
        addresses = resolver.lookup(hostname)
    except ResolutionError as e:
        raise UnknownHost(hostname, str(e)) from e

    address = select_address(hostname, addresses, on_warning)
    if not is_ipv4_address(address):
        raise EngineFailure(hostname, f"{address} is not an IPv4 address")

    tracer = tracer_factory(address, config)
    try:
        tracer.run()
    except OSError as e:
        raise EngineFailure(hostname, str(e)) from e

    snapshot = tracer.snapshot()
    if snapshot.error:
        raise EngineFailure(hostname, snapshot.error)

    return TraceResult(
        summary=build_summary(hostname, address, config),
        hops=tuple(reconcile(snapshot, resolver)),
    )
