"""
Port Scanner Module

Concurrent TCP connect scanning.  Every port gets its own bounded connect
attempt; a port that accepts the connection is open, anything else
(refused, timed out, unreachable, filtered) is reported as closed.
"""

import asyncio
import time
from typing import List, Optional, Sequence
import logging

from ..config import DEFAULT_TIMEOUT_POLICY, TimeoutPolicy
from ..validators import validate_host, validate_ports
from .schemas import PortRecord, PortScanResult, PortState
from .service_names import get_service_name

logger = logging.getLogger(__name__)


class PortScanner:
    """
    TCP connect port scanner.

    Features:
    - Default common-port set when no ports are requested
    - Upfront validation of the whole port set (no partial scans)
    - Deduplicated, ascending scan order
    - Per-port connect timeout
    - Service name lookup for every result
    """

    def __init__(self, policy: Optional[TimeoutPolicy] = None):
        """
        Initialize port scanner.

        Args:
            policy: Timeout policy; ``port_scan_ms`` is applied per port
        """
        self.policy = policy or DEFAULT_TIMEOUT_POLICY

    @property
    def timeout(self) -> float:
        return self.policy.port_scan_seconds

    async def scan(self, host: str, ports: Optional[Sequence[int]] = None) -> PortScanResult:
        """
        Scan TCP ports on a host.

        Args:
            host: Hostname or IP address
            ports: Ports to scan (defaults to common ports when omitted or empty)

        Returns:
            PortScanResult partitioning the scanned ports into open and closed

        Raises:
            ValidationError: If the host is empty or any port is outside 1..65535
        """
        target = validate_host(host)
        ports_to_scan = validate_ports(ports)

        logger.info(f"Scanning {len(ports_to_scan)} ports on {target}")

        start = time.perf_counter()
        records = await asyncio.gather(
            *(self.check_port(target, port) for port in ports_to_scan)
        )
        duration_ms = (time.perf_counter() - start) * 1000.0

        open_ports: List[PortRecord] = []
        closed_ports: List[int] = []
        for record in records:
            if record.state == PortState.OPEN:
                open_ports.append(record)
            else:
                closed_ports.append(record.port)

        logger.info(
            f"Scan of {target} complete: {len(open_ports)} open, "
            f"{len(closed_ports)} closed in {duration_ms:.0f}ms"
        )

        return PortScanResult(
            host=target,
            scanned_ports=ports_to_scan,
            open_ports=open_ports,
            closed_ports=closed_ports,
            scan_duration_ms=round(duration_ms, 3),
        )

    async def check_port(self, host: str, port: int) -> PortRecord:
        """
        Classify a single port with a bounded TCP connect attempt.

        Never raises: every connect-level failure maps to ``closed``.
        """
        state = PortState.CLOSED
        writer = None
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.timeout
            )
            state = PortState.OPEN
        except asyncio.TimeoutError:
            logger.debug(f"{host}:{port} timed out after {self.policy.port_scan_ms}ms")
        except (OSError, ValueError) as e:
            # ValueError covers host names the resolver refuses to encode
            logger.debug(f"{host}:{port} connect failed: {e}")
        finally:
            if writer is not None:
                await self._close(writer)

        return PortRecord(port=port, service=get_service_name(port), state=state)

    @staticmethod
    async def _close(writer: asyncio.StreamWriter) -> None:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing connection: {e}")
