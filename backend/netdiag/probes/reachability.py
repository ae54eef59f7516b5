"""
Reachability Module

Ping-style liveness probing from several logical vantage points.

Uses the system ``ping`` binary (one echo request).  Where the binary is
missing or raw sockets are not permitted, liveness falls back to a TCP
connect: an accepted or refused connection both prove the host answered.
"""

import asyncio
import contextlib
import math
import platform
import re
import time
from typing import List, Optional, Sequence, Tuple
import logging

from ..config import DEFAULT_TIMEOUT_POLICY, TimeoutPolicy
from ..validators import validate_host
from .schemas import ReachabilityResult

logger = logging.getLogger(__name__)

DEFAULT_VANTAGE_POINTS = ("Primary", "Secondary", "Tertiary")
VANTAGE_POINT_COUNT = 3

TCP_LIVENESS_PORTS = (443, 80)

_RTT_RE = re.compile(r"time[=<]\s*([0-9]+(?:\.[0-9]+)?)\s*ms", re.IGNORECASE)
_PERMISSION_HINTS = ("not permitted", "permission denied")


class PingUnavailable(Exception):
    """The system ping cannot be used from this process"""
    pass


def select_vantage_points(names: Optional[Sequence[str]] = None) -> List[str]:
    """
    Pick the vantage points for a request.

    The first three non-blank caller names are used when at least three are
    supplied; otherwise the built-in defaults.
    """
    if names:
        valid = [name.strip() for name in names if isinstance(name, str) and name.strip()]
        if len(valid) >= VANTAGE_POINT_COUNT:
            return valid[:VANTAGE_POINT_COUNT]
    return list(DEFAULT_VANTAGE_POINTS)


def build_ping_command(host: str, timeout_ms: int, system: Optional[str] = None) -> List[str]:
    """Build a single-echo ping command for the current platform."""
    system = system or platform.system()
    if system == "Windows":
        return ["ping", "-n", "1", "-w", str(timeout_ms), host]
    if system == "Darwin":
        # BSD ping takes the reply wait in milliseconds
        return ["ping", "-c", "1", "-W", str(timeout_ms), host]
    return ["ping", "-c", "1", "-W", str(max(1, math.ceil(timeout_ms / 1000))), host]


def parse_ping_rtt(output: str) -> Optional[float]:
    """Extract the round-trip time in ms from ping output, if present."""
    match = _RTT_RE.search(output or "")
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


class ReachabilityProber:
    """
    Multi-vantage-point liveness prober.

    Each vantage point is probed concurrently and independently; a failing
    vantage point never affects the others or the overall call.
    """

    def __init__(self, policy: Optional[TimeoutPolicy] = None):
        """
        Initialize reachability prober.

        Args:
            policy: Timeout policy; ``ping_ms`` is shared by every vantage point
        """
        self.policy = policy or DEFAULT_TIMEOUT_POLICY

    async def probe(
        self,
        host: str,
        vantage_points: Optional[Sequence[str]] = None,
    ) -> List[ReachabilityResult]:
        """
        Probe a host from every selected vantage point.

        Args:
            host: Hostname or IP address
            vantage_points: Optional vantage point names (at least three to take effect)

        Returns:
            One ReachabilityResult per vantage point, in vantage point order

        Raises:
            ValidationError: If the host is empty
        """
        target = validate_host(host)
        locations = select_vantage_points(vantage_points)

        logger.info(f"Probing {target} from {len(locations)} vantage points")
        results = await asyncio.gather(
            *(self._probe_from(target, location) for location in locations)
        )
        return list(results)

    async def _probe_from(self, host: str, vantage_point: str) -> ReachabilityResult:
        start = time.perf_counter()
        try:
            alive, rtt = await asyncio.wait_for(
                self._liveness(host),
                timeout=self.policy.ping_seconds
            )
        except asyncio.TimeoutError:
            logger.debug(f"[{vantage_point}] {host} timed out after {self.policy.ping_ms}ms")
            alive, rtt = False, None
        except (OSError, ValueError) as e:
            logger.debug(f"[{vantage_point}] {host} probe failed: {e}")
            alive, rtt = False, None

        if not alive:
            return ReachabilityResult(
                alive=False,
                response_time_ms=self.policy.ping_ms,
                vantage_point=vantage_point,
            )

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        response_time = rtt if rtt is not None and rtt >= 0 else elapsed_ms
        return ReachabilityResult(
            alive=True,
            response_time_ms=round(response_time, 3),
            vantage_point=vantage_point,
        )

    async def _liveness(self, host: str) -> Tuple[bool, Optional[float]]:
        try:
            return await self._system_ping(host)
        except PingUnavailable as e:
            logger.debug(f"System ping unavailable ({e}), using TCP liveness for {host}")
            return await self._tcp_liveness(host)

    async def _system_ping(self, host: str) -> Tuple[bool, Optional[float]]:
        """Run one ping; returns (alive, reported round-trip ms)."""
        cmd = build_ping_command(host, self.policy.ping_ms)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except (FileNotFoundError, PermissionError) as e:
            raise PingUnavailable(str(e)) from e

        try:
            stdout, stderr = await process.communicate()
        finally:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        output = stdout.decode(errors="replace")
        if process.returncode == 0:
            return True, parse_ping_rtt(output)

        error_text = stderr.decode(errors="replace").lower()
        if any(hint in error_text for hint in _PERMISSION_HINTS):
            raise PingUnavailable(error_text.strip())
        return False, None

    async def _tcp_liveness(self, host: str) -> Tuple[bool, Optional[float]]:
        """Connect to well-known ports; any answer (accept or refuse) means alive."""
        per_port_timeout = self.policy.ping_seconds / len(TCP_LIVENESS_PORTS)
        for port in TCP_LIVENESS_PORTS:
            start = time.perf_counter()
            writer = None
            try:
                _, writer = await asyncio.wait_for(
                    asyncio.open_connection(host, port),
                    timeout=per_port_timeout
                )
                return True, (time.perf_counter() - start) * 1000.0
            except ConnectionRefusedError:
                return True, (time.perf_counter() - start) * 1000.0
            except (asyncio.TimeoutError, OSError) as e:
                logger.debug(f"TCP liveness {host}:{port} failed: {e}")
            finally:
                if writer is not None:
                    writer.close()
                    with contextlib.suppress(OSError):
                        await writer.wait_closed()
        return False, None
