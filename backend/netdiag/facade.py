"""
Diagnostic Facade

Single entry point for calling code.  Normalises inputs, dispatches to the
probes and guarantees that every failure leaving this module belongs to
the :mod:`netdiag.errors` taxonomy.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Type

from .config import DEFAULT_TIMEOUT_POLICY, TimeoutPolicy
from .errors import (
    DiagnosticError,
    HttpCheckFailedError,
    PortScanFailedError,
    ReachabilityFailedError,
    SslCheckFailedError,
)
from .probes import certificate_analysis
from .probes.http_check import HttpHealthChecker, is_slow_response
from .probes.port_scanner import PortScanner
from .probes.reachability import ReachabilityProber
from .probes.schemas import (
    HttpCheckResult,
    PortScanResult,
    ReachabilityResult,
    SslResult,
)
from .probes.tls_inspector import TLSInspector
from .utils.probe_metrics import ProbeMetrics, log_probe_execution

logger = logging.getLogger(__name__)


def _translate(
    exc: Exception,
    failure: Type[DiagnosticError],
    label: str,
    details: Dict[str, Any],
) -> DiagnosticError:
    logger.error("Unexpected %s failure: %s", label, exc, exc_info=True)
    return failure(f"{label} failed: {exc}", {**details, "error": str(exc)})


class DiagnosticService:
    """
    Network diagnostic probe engine.

    Usage example::

        service = DiagnosticService()
        results = await service.probe("example.com")
        scan = await service.scan("example.com", [80, 443])
        cert = await service.inspect("https://example.com/login")

    Every operation is stateless; the service itself holds only its
    configured probes.
    """

    def __init__(
        self,
        policy: Optional[TimeoutPolicy] = None,
        *,
        prober: Optional[ReachabilityProber] = None,
        http_checker: Optional[HttpHealthChecker] = None,
        port_scanner: Optional[PortScanner] = None,
        tls_inspector: Optional[TLSInspector] = None,
    ) -> None:
        self.policy = policy or DEFAULT_TIMEOUT_POLICY
        self.prober = prober or ReachabilityProber(self.policy)
        self.http_checker = http_checker or HttpHealthChecker(self.policy)
        self.port_scanner = port_scanner or PortScanner(self.policy)
        self.tls_inspector = tls_inspector or TLSInspector(self.policy)

    # ------------------------------------------------------------------
    # Probe operations
    # ------------------------------------------------------------------

    @log_probe_execution("ping")
    async def probe(
        self,
        host: str,
        vantage_points: Optional[Sequence[str]] = None,
        _metrics: Optional[ProbeMetrics] = None,
    ) -> List[ReachabilityResult]:
        """Liveness of *host* from three vantage points."""
        try:
            results = await self.prober.probe(host, vantage_points)
        except DiagnosticError:
            raise
        except Exception as exc:
            raise _translate(exc, ReachabilityFailedError, "Ping", {"host": host}) from exc

        if _metrics is not None:
            _metrics.increment("vantage_points", len(results))
            _metrics.increment("alive", sum(1 for r in results if r.alive))
        return results

    @log_probe_execution("http_check")
    async def check(
        self,
        url: str,
        _metrics: Optional[ProbeMetrics] = None,
    ) -> HttpCheckResult:
        """Status, latency and headers of a single HTTP(S) request."""
        try:
            result = await self.http_checker.check(url)
        except DiagnosticError:
            raise
        except Exception as exc:
            raise _translate(exc, HttpCheckFailedError, "HTTP check", {"url": url}) from exc

        if _metrics is not None:
            _metrics.gauge("status_code", result.status_code)
            _metrics.gauge("response_time_ms", result.response_time_ms)
        return result

    @log_probe_execution("port_scan")
    async def scan(
        self,
        host: str,
        ports: Optional[Sequence[int]] = None,
        _metrics: Optional[ProbeMetrics] = None,
    ) -> PortScanResult:
        """Open/closed classification of TCP ports on *host*."""
        try:
            result = await self.port_scanner.scan(host, ports)
        except DiagnosticError:
            raise
        except Exception as exc:
            raise _translate(exc, PortScanFailedError, "Port scan", {"host": host}) from exc

        if _metrics is not None:
            _metrics.increment("ports_scanned", len(result.scanned_ports))
            _metrics.increment("ports_open", result.open_count)
        return result

    @log_probe_execution("ssl_check")
    async def inspect(
        self,
        domain: str,
        _metrics: Optional[ProbeMetrics] = None,
    ) -> SslResult:
        """Certificate presented by *domain* on port 443."""
        try:
            result = await self.tls_inspector.inspect(domain)
        except DiagnosticError:
            raise
        except Exception as exc:
            raise _translate(exc, SslCheckFailedError, "SSL check", {"domain": domain}) from exc

        if _metrics is not None:
            _metrics.gauge("days_until_expiry", result.days_until_expiry)
        return result

    # ------------------------------------------------------------------
    # Classifiers
    # ------------------------------------------------------------------

    def is_slow_response(self, response_time_ms: float) -> bool:
        return is_slow_response(response_time_ms, self.policy.slow_response_threshold_ms)

    @property
    def slow_response_threshold_ms(self) -> int:
        return self.policy.slow_response_threshold_ms

    @staticmethod
    def is_expiring_within_30_days(days_until_expiry: int) -> bool:
        return certificate_analysis.is_expiring_within_30_days(days_until_expiry)

    @staticmethod
    def is_certificate_expired(days_until_expiry: int) -> bool:
        return certificate_analysis.is_certificate_expired(days_until_expiry)
