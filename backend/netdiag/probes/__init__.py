"""
Probe Module

This module provides the individual network probes:
- Reachability (ping-style liveness) from multiple vantage points
- HTTP/HTTPS endpoint health checks
- Concurrent TCP port scanning with service names
- TLS/SSL certificate inspection
"""

from .reachability import ReachabilityProber
from .http_check import HttpHealthChecker, is_slow_response
from .port_scanner import PortScanner
from .tls_inspector import TLSInspector
from .certificate_analysis import is_certificate_expired, is_expiring_within_30_days
from .schemas import (
    CertificateInfo,
    HttpCheckResult,
    PortRecord,
    PortScanResult,
    PortState,
    ReachabilityResult,
    SslResult,
)

__all__ = [
    'ReachabilityProber',
    'HttpHealthChecker',
    'PortScanner',
    'TLSInspector',
    'is_slow_response',
    'is_certificate_expired',
    'is_expiring_within_30_days',
    'CertificateInfo',
    'HttpCheckResult',
    'PortRecord',
    'PortScanResult',
    'PortState',
    'ReachabilityResult',
    'SslResult',
]
