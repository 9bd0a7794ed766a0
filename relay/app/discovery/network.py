"""
Local network address detection.

Clients on the same LAN use this address to find the relay; it is also the ip
stamped on every participant profile.
"""

import ipaddress
import logging
import socket
from typing import Iterable, Optional

logger = logging.getLogger("relay.discovery.network")

FALLBACK_ADDRESS = "localhost"

# Never contacted: connecting a UDP socket only selects the outbound interface.
_PROBE_ADDRESS = ("10.255.255.255", 1)


def _first_external_ipv4(candidates: Iterable[str]) -> Optional[str]:
    for candidate in candidates:
        try:
            address = ipaddress.ip_address(candidate)
        except ValueError:
            continue
        if address.version == 4 and not address.is_loopback and not address.is_unspecified:
            return candidate
    return None


def _outbound_interface_address() -> Optional[str]:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(_PROBE_ADDRESS)
        return sock.getsockname()[0]
    except OSError:
        return None
    finally:
        sock.close()


def _hostname_addresses() -> Iterable[str]:
    try:
        _, _, addresses = socket.gethostbyname_ex(socket.gethostname())
    except OSError:
        return []
    return addresses


def detect_local_ip() -> str:
    """
    Return the first non-loopback IPv4 address of this host.

    Tries the interface the OS would route external traffic through, then the
    addresses the hostname resolves to.

    Returns:
        str: Dotted-quad address, or "localhost" when nothing suitable exists
    """
    address = _first_external_ipv4(filter(None, [_outbound_interface_address()]))
    if address is None:
        address = _first_external_ipv4(_hostname_addresses())

    if address is None:
        logger.warning("No non-loopback IPv4 address found, using fallback")
        return FALLBACK_ADDRESS

    return address
