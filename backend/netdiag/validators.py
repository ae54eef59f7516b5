"""
Input validation helpers shared by every probe.

The probes re-validate what callers hand them; sanitisation against
injection is the caller's job.
"""
from __future__ import annotations

import ipaddress
from typing import Iterable, List, Optional, Sequence

from .errors import ValidationError

PORT_MIN = 1
PORT_MAX = 65535

# Scanned when the caller does not name any port
COMMON_PORTS = (21, 22, 25, 80, 443, 3306, 5432, 8080)

_MAX_HOST_LENGTH = 253
_MAX_URL_LENGTH = 2048


def _is_valid_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def validate_host(host: Optional[str]) -> str:
    """
    Validate and return the normalised probe target.

    Accepted formats: host name or IP literal.  Host names are lower-cased.

    Raises:
        ValidationError: If the host is empty, too long, starts with "-",
            or contains whitespace / URL characters.
    """
    if host is None or not isinstance(host, str) or not host.strip():
        raise ValidationError("Host is required", {"host": host})

    target = host.strip()
    if _is_valid_ip(target):
        return target.lower()

    if len(target) > _MAX_HOST_LENGTH:
        raise ValidationError(
            f"Host exceeds maximum length ({_MAX_HOST_LENGTH} chars)",
            {"host": target[:64]},
        )
    if any(ch.isspace() for ch in target) or any(ch in target for ch in "/?#@"):
        raise ValidationError(
            f"Invalid host '{target}': must be a host name or IP address",
            {"host": target},
        )
    # would otherwise be parsed as a command line option by ping
    if target.startswith("-"):
        raise ValidationError(
            f"Invalid host '{target}': must not start with '-'",
            {"host": target},
        )
    return target.lower()


def validate_url(url: Optional[str]) -> str:
    """Return the trimmed URL, which must use the http:// or https:// scheme."""
    if url is None or not isinstance(url, str) or not url.strip():
        raise ValidationError("URL is required", {"url": url})

    normalized = url.strip()
    if len(normalized) > _MAX_URL_LENGTH:
        raise ValidationError(
            f"URL exceeds maximum length ({_MAX_URL_LENGTH} chars)",
            {"url": normalized[:64]},
        )
    if not normalized.startswith(("http://", "https://")):
        raise ValidationError(
            "URL must start with http:// or https://",
            {"url": normalized},
        )
    return normalized


def normalize_domain(domain: Optional[str]) -> str:
    """
    Reduce user input to a bare host name for TLS inspection.

    ``"HTTPS://Example.com:8443/path"`` becomes ``"example.com"``.
    """
    if domain is None or not isinstance(domain, str) or not domain.strip():
        raise ValidationError("Domain is required", {"domain": domain})

    clean = domain.strip().lower()
    if clean.startswith("https://"):
        clean = clean[len("https://"):]
    elif clean.startswith("http://"):
        clean = clean[len("http://"):]

    clean = clean.split("/")[0]
    clean = clean.split(":")[0]

    if not clean:
        raise ValidationError(
            f"Invalid domain '{domain.strip()}': no host name found",
            {"domain": domain.strip()},
        )
    return clean


def validate_port(port: object) -> int:
    """Return *port* if it is an integer in 1..65535, else raise ValidationError."""
    if isinstance(port, bool) or not isinstance(port, int):
        raise ValidationError(
            f"Invalid port {port!r}: must be an integer in range {PORT_MIN}..{PORT_MAX}",
            {"port": repr(port)},
        )
    if not PORT_MIN <= port <= PORT_MAX:
        raise ValidationError(
            f"Invalid port {port}: must be in range {PORT_MIN}..{PORT_MAX}",
            {"port": port},
        )
    return port


def validate_ports(ports: Optional[Sequence[object]]) -> List[int]:
    """
    Resolve the port set to scan.

    Missing or empty input selects :data:`COMMON_PORTS`.  Every port is
    validated before anything is scanned; the result is deduplicated and
    sorted ascending.
    """
    requested: Iterable[object] = ports if ports else COMMON_PORTS
    validated = [validate_port(port) for port in requested]
    return sorted(set(validated))
