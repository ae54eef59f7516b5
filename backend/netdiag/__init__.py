"""
Network diagnostic probe engine.

Reachability probing, HTTP(S) health checks, TCP port scanning and TLS
certificate inspection behind a single facade, :class:`DiagnosticService`.
"""

from .config import DEFAULT_TIMEOUT_POLICY, ProbeSettings, TimeoutPolicy
from .errors import (
    DiagnosticError,
    DomainNotFoundError,
    HostUnreachableError,
    HttpCheckFailedError,
    InvalidCertificateError,
    PortScanFailedError,
    ProbeTimeoutError,
    ReachabilityFailedError,
    SslCheckFailedError,
    SslNotAvailableError,
    ValidationError,
)
from .facade import DiagnosticService

__all__ = [
    "DiagnosticService",
    "TimeoutPolicy",
    "ProbeSettings",
    "DEFAULT_TIMEOUT_POLICY",
    "DiagnosticError",
    "ValidationError",
    "ProbeTimeoutError",
    "HostUnreachableError",
    "DomainNotFoundError",
    "SslNotAvailableError",
    "InvalidCertificateError",
    "HttpCheckFailedError",
    "SslCheckFailedError",
    "PortScanFailedError",
    "ReachabilityFailedError",
]
