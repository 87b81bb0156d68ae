"""Outbound URL checks for fetching user-supplied links.

Only http(s) URLs whose host resolves to public addresses are fetched.
"""

import ipaddress
import socket
from urllib.parse import urlparse


class UnsafeUrlError(Exception):
    """Raised when a URL must not be fetched."""
    pass


LOCALHOST_ALIASES = {"localhost", "localhost.localdomain", "0.0.0.0", "::1"}


def is_http_url(url) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme.lower() in ("http", "https") and bool(parsed.hostname)


def is_private_ip(ip_str: str) -> bool:
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return True  # unparseable, treat as unsafe
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_reserved
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_unspecified
    )


def check_outbound_url(url: str) -> None:
    """Raise UnsafeUrlError unless `url` is safe to fetch."""
    if not is_http_url(url):
        raise UnsafeUrlError(f"Only http(s) URLs can be fetched: {url!r}")

    hostname = urlparse(url.strip()).hostname.lower()
    if hostname in LOCALHOST_ALIASES:
        raise UnsafeUrlError("Cannot access localhost")

    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        pass
    else:
        if is_private_ip(hostname):
            raise UnsafeUrlError(f"Cannot access private/internal IP: {hostname}")
        return

    try:
        resolved = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        # UnicodeError: idna rejects empty or over-long labels before any lookup
        raise UnsafeUrlError(f"Cannot resolve hostname: {hostname}") from e

    for _family, _type, _proto, _canon, sockaddr in resolved:
        if is_private_ip(sockaddr[0]):
            raise UnsafeUrlError(f"Hostname resolves to private/internal IP: {sockaddr[0]}")
