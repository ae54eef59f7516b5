"""
Probe Error Handling

Defines the error taxonomy raised by the diagnostic probes.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class DiagnosticError(Exception):
    """
    Base class for every error surfaced by the probe engine.

    Attributes:
        code: Stable machine-readable error code
        http_status: Suggested status for HTTP-facing callers
        retryable: Whether repeating the operation later may succeed
        details: Structured context (never a stack trace)
    """

    code = "INTERNAL_ERROR"
    http_status = 500
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "status": self.http_status,
            "retryable": self.retryable,
            "details": dict(self.details),
        }


class ValidationError(DiagnosticError, ValueError):
    """Raised when caller input is missing or malformed"""
    code = "VALIDATION_ERROR"
    http_status = 400


class ProbeTimeoutError(DiagnosticError, TimeoutError):
    """Raised when a probe exceeds its timeout budget"""
    code = "TIMEOUT_ERROR"
    http_status = 408
    retryable = True


class HostUnreachableError(DiagnosticError):
    """Raised when the host name does not resolve or refuses the connection"""
    code = "HOST_UNREACHABLE"
    http_status = 503
    retryable = True


class DomainNotFoundError(DiagnosticError):
    """Raised when a domain name cannot be resolved"""
    code = "DOMAIN_NOT_FOUND"
    http_status = 404
    retryable = True


class SslNotAvailableError(DiagnosticError):
    """Raised when the target does not accept TLS connections on the probed port"""
    code = "SSL_NOT_AVAILABLE"
    http_status = 400


class InvalidCertificateError(DiagnosticError):
    """Raised when a certificate is presented but cannot be processed"""
    code = "INVALID_CERTIFICATE"
    http_status = 400


class HttpCheckFailedError(DiagnosticError):
    code = "HTTP_CHECK_FAILED"


class SslCheckFailedError(DiagnosticError):
    code = "SSL_CHECK_FAILED"


class PortScanFailedError(DiagnosticError):
    code = "PORT_SCAN_FAILED"


class ReachabilityFailedError(DiagnosticError):
    code = "PING_FAILED"
