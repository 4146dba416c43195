"""Target URL validation and literal hostname classification.

Classification only looks at the hostname as written. Names are never
resolved, so a public name pointing at a private address is not caught here.
"""

from __future__ import annotations

import re
import socket
from ipaddress import IPv4Address, IPv4Network, IPv6Address, IPv6Network, ip_address, ip_network
from typing import Optional, Union
from urllib.parse import urlsplit

from ..errors import TargetRejected
from ..models import HostCategory, RejectReason, ValidatedTarget

ALLOWED_SCHEMES = ("http", "https")

_NETWORKS: tuple[tuple[HostCategory, Union[IPv4Network, IPv6Network]], ...] = tuple(
    (category, ip_network(cidr))
    for category, cidr in (
        (HostCategory.UNSPECIFIED, "0.0.0.0/8"),
        (HostCategory.LOOPBACK, "127.0.0.0/8"),
        (HostCategory.PRIVATE_RANGE, "10.0.0.0/8"),
        (HostCategory.PRIVATE_RANGE, "172.16.0.0/12"),
        (HostCategory.PRIVATE_RANGE, "192.168.0.0/16"),
        (HostCategory.LINK_LOCAL, "169.254.0.0/16"),
        (HostCategory.UNSPECIFIED, "::/128"),
        (HostCategory.LOOPBACK, "::1/128"),
        (HostCategory.PRIVATE_RANGE, "fc00::/7"),
        (HostCategory.LINK_LOCAL, "fe80::/10"),
    )
)
_LEGACY_IPV4_RE = re.compile(r"^(0x[0-9a-f]+|[0-9]+)(\.(0x[0-9a-f]*|[0-9]+)){0,3}$")
_LABEL_RE = re.compile(r"^[a-z0-9_-]+$")


def classify_host(hostname: Optional[str]) -> HostCategory:
    """Return the category of a literal hostname (IP literal or DNS name)."""
    host = (hostname or "").strip().lower()
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    host = host.rstrip(".")
    if not host:
        return HostCategory.UNRESOLVABLE
    if not host.isascii():
        # Compatibility forms such as full-width digits map to ASCII here.
        try:
            host = host.encode("idna").decode("ascii").lower().rstrip(".")
        except UnicodeError:
            return HostCategory.UNRESOLVABLE

    address = _parse_address(host)
    if address is not None:
        return _classify_address(address)

    if host == "localhost" or host.endswith(".localhost"):
        return HostCategory.LOOPBACK
    if host.endswith(".local"):
        return HostCategory.LINK_LOCAL
    labels = host.split(".")
    if any(not label or not _LABEL_RE.match(label) for label in labels):
        return HostCategory.UNRESOLVABLE
    return HostCategory.PUBLIC


def is_private_host(hostname: Optional[str]) -> bool:
    return classify_host(hostname) not in (HostCategory.PUBLIC, HostCategory.UNRESOLVABLE)


def validate_target(raw: str) -> ValidatedTarget:
    """Accept ``raw`` as a fetchable target or raise :class:`TargetRejected`."""
    candidate = (raw or "").strip()
    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise TargetRejected(RejectReason.INVALID_FORMAT, candidate) from exc

    if not parts.scheme or not re.match(r"^[a-z][a-z0-9+.-]*$", parts.scheme):
        raise TargetRejected(RejectReason.INVALID_FORMAT, candidate)
    if parts.scheme not in ALLOWED_SCHEMES:
        raise TargetRejected(RejectReason.INVALID_PROTOCOL, candidate)
    if not hostname or port == 0:
        raise TargetRejected(RejectReason.INVALID_FORMAT, candidate)

    category = classify_host(hostname)
    if category is HostCategory.UNRESOLVABLE:
        raise TargetRejected(RejectReason.INVALID_FORMAT, candidate)
    if category is not HostCategory.PUBLIC:
        raise TargetRejected(RejectReason.PRIVATE_NETWORK_BLOCKED, candidate)
    return ValidatedTarget(url=parts.geturl(), hostname=hostname, category=category)


def _parse_address(host: str) -> Optional[Union[IPv4Address, IPv6Address]]:
    try:
        return ip_address(host.split("%", 1)[0])
    except ValueError:
        pass
    # Shorthand IPv4 spellings ("127.1", "0x7f.0.0.1", "2130706433") still connect.
    if _LEGACY_IPV4_RE.match(host):
        try:
            return IPv4Address(socket.inet_aton(host))
        except OSError:
            return None
    return None


def _classify_address(address: Union[IPv4Address, IPv6Address]) -> HostCategory:
    if isinstance(address, IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    for category, network in _NETWORKS:
        if address.version == network.version and address in network:
            return category
    return HostCategory.PUBLIC
