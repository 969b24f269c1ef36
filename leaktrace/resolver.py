"""
Forward and reverse DNS lookups via dnspython
"""

from typing import Optional

import dns.exception
import dns.resolver
import dns.reversename

from .errors import ResolutionError
from .validation import is_ip_address


class Resolver:
    """
    Synchronous resolver adapter.

    Forward lookups return IPv4 addresses in the order the resolver
    answered. Reverse lookups never fail: a missing or failing PTR
    lookup yields the address text itself.
    """

    def __init__(self, timeout: float = 3.0,
                 resolver: Optional[dns.resolver.Resolver] = None):
        self.timeout = timeout
        if resolver is None:
            try:
                resolver = dns.resolver.Resolver()
            except dns.exception.DNSException as e:
                # e.g. NoResolverConfiguration without /etc/resolv.conf
                raise ResolutionError(f"no usable resolver: {e}") from e
            resolver.timeout = timeout
            resolver.lifetime = timeout
        self._resolver = resolver

    def lookup(self, hostname: str) -> list[str]:
        """
        Resolve hostname to addresses.

        Args:
            hostname: Hostname or IP literal

        Returns:
            Addresses in resolver order, empty if the name does not exist

        Raises:
            ResolutionError: on timeouts and unreachable nameservers
        """
        if is_ip_address(hostname):
            return [hostname]

        try:
            answers = self._resolver.resolve(hostname, 'A')
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return []
        except dns.exception.DNSException as e:
            raise ResolutionError(f"cannot resolve '{hostname}': {e}") from e

        addresses = []
        for rdata in answers:
            address = rdata.address
            if address not in addresses:
                addresses.append(address)
        return addresses

    def reverse_lookup(self, address: str) -> str:
        """PTR lookup, falling back to the address itself"""
        try:
            name = dns.reversename.from_address(address)
            answers = self._resolver.resolve(name, 'PTR')
        except (dns.exception.DNSException, ValueError):
            return address

        for rdata in answers:
            return rdata.target.to_text(omit_final_dot=True)
        return address
