"""
Well-known TCP port to service name table.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

UNKNOWN_SERVICE = "Unknown"

PORT_SERVICE_MAP: Mapping[int, str] = MappingProxyType({
    20: "FTP Data",
    21: "FTP",
    22: "SSH",
    23: "Telnet",
    25: "SMTP",
    53: "DNS",
    80: "HTTP",
    110: "POP3",
    143: "IMAP",
    443: "HTTPS",
    465: "SMTPS",
    587: "SMTP (Submission)",
    993: "IMAPS",
    995: "POP3S",
    3306: "MySQL",
    3389: "RDP",
    5432: "PostgreSQL",
    5900: "VNC",
    6379: "Redis",
    8080: "HTTP Proxy",
    8443: "HTTPS Alt",
    27017: "MongoDB",
})


def get_service_name(port: int) -> str:
    """Return the well-known service for *port*, or ``"Unknown"``."""
    return PORT_SERVICE_MAP.get(port, UNKNOWN_SERVICE)
