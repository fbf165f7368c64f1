"""Discovery of the host's internal IPv4 address."""

from __future__ import annotations

import ipaddress
import socket

import psutil


def internal_ip() -> str:
    """Return the first non-loopback IPv4 address, or ``""`` if none."""
    try:
        interfaces = psutil.net_if_addrs()
    except OSError:
        return ""
    for name, addrs in interfaces.items():
        if name.startswith("lo"):
            continue
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.IPv4Address(addr.address)
            except ValueError:
                continue
            if not ip.is_loopback:
                return str(ip)
    return ""