"""
Target hostname validation
"""

import ipaddress
import re

from .errors import InvalidHostname


MAX_HOSTNAME_LENGTH = 253
MAX_LABEL_LENGTH = 63

LABEL_PATTERN = re.compile(r'^[A-Za-z0-9_](?:[A-Za-z0-9_-]*[A-Za-z0-9_])?$')


def is_ip_address(value: str) -> bool:
    """Check if value is an IPv4 or IPv6 literal"""
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def is_ipv4_address(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
        return True
    except ValueError:
        return False


def validate_hostname(hostname: str) -> str:
    """
    Validate a traceroute target.

    Accepts IPv4 literals and RFC 1123 hostnames (a single trailing dot is
    allowed). Underscores are tolerated in labels since they occur in real
    DNS names. IPv6 literals are rejected, the probe engine is IPv4 only.

    Args:
        hostname: Raw target from the command line

    Returns:
        The hostname, stripped of surrounding whitespace

    Raises:
        InvalidHostname: if the target cannot be a hostname
    """
    name = (hostname or '').strip()

    if not name:
        raise InvalidHostname("hostname is empty")

    if is_ip_address(name):
        if not is_ipv4_address(name):
            raise InvalidHostname(f"'{name}' is not an IPv4 address")
        return name

    bare = name[:-1] if name.endswith('.') else name

    if len(bare) > MAX_HOSTNAME_LENGTH:
        raise InvalidHostname(
            f"hostname '{name}' is longer than {MAX_HOSTNAME_LENGTH} characters"
        )

    for label in bare.split('.'):
        if not label:
            raise InvalidHostname(f"hostname '{name}' has an empty label")
        if len(label) > MAX_LABEL_LENGTH:
            raise InvalidHostname(
                f"label '{label}' is longer than {MAX_LABEL_LENGTH} characters"
            )
        if not LABEL_PATTERN.match(label):
            raise InvalidHostname(f"label '{label}' contains invalid characters")

    # A name made only of numeric labels would be an invalid IP, not a host
    if all(label.isdigit() for label in bare.split('.')):
        raise InvalidHostname(f"'{name}' is not a valid IP address")

    return name
