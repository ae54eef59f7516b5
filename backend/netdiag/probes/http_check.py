"""
HTTP Check Module

Single-request HTTP(S) health check using httpx.
Observes status code, latency and response headers; any status code is a
successful observation, only transport failures raise.
"""

import asyncio
import time
from typing import Dict, Optional
import logging

import httpx

from ..config import DEFAULT_TIMEOUT_POLICY, TimeoutPolicy
from ..errors import (
    HostUnreachableError,
    HttpCheckFailedError,
    ProbeTimeoutError,
    ValidationError,
)
from ..validators import validate_url
from .schemas import HttpCheckResult

logger = logging.getLogger(__name__)


def is_slow_response(response_time_ms: float, threshold_ms: Optional[int] = None) -> bool:
    """True when the response took longer than the threshold (default 5000 ms)."""
    if threshold_ms is None:
        threshold_ms = DEFAULT_TIMEOUT_POLICY.slow_response_threshold_ms
    return response_time_ms > threshold_ms


def _flatten_headers(headers: httpx.Headers) -> Dict[str, str]:
    """Copy headers keeping their original casing; repeated names are comma-joined."""
    flat: Dict[str, str] = {}
    encoding = headers.encoding
    for raw_key, raw_value in headers.raw:
        key = raw_key.decode(encoding)
        value = raw_value.decode(encoding)
        flat[key] = f"{flat[key]}, {value}" if key in flat else value
    return flat


class HttpHealthChecker:
    """
    HTTP/HTTPS endpoint checker.

    Features:
    - Status code, response time and header capture
    - Bounded redirect following
    - Typed failures for timeouts and unreachable hosts
    - Partial responses returned instead of discarded
    """

    def __init__(
        self,
        policy: Optional[TimeoutPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP checker.

        Args:
            policy: Timeout policy; ``http_ms`` bounds the request
            transport: Optional httpx transport (used by tests)
        """
        self.policy = policy or DEFAULT_TIMEOUT_POLICY
        self.transport = transport

    @property
    def timeout(self) -> float:
        return self.policy.http_seconds

    @property
    def slow_response_threshold_ms(self) -> int:
        return self.policy.slow_response_threshold_ms

    def is_slow_response(self, response_time_ms: float) -> bool:
        return is_slow_response(response_time_ms, self.slow_response_threshold_ms)

    async def check(self, url: str) -> HttpCheckResult:
        """
        Check an HTTP(S) endpoint with a single GET request.

        The whole exchange, redirects and body included, is bounded by
        ``http_ms``.

        Args:
            url: Full URL including http:// or https://

        Returns:
            HttpCheckResult with status code, response time and headers

        Raises:
            ValidationError: If the URL is empty or lacks an http(s) scheme
            ProbeTimeoutError: If the exchange does not finish within the budget
            HostUnreachableError: If the host does not resolve or refuses
            HttpCheckFailedError: For any other transport failure
        """
        target = validate_url(url)

        client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=self.policy.http_max_redirects,
            headers={"User-Agent": self.policy.user_agent},
            transport=self.transport,
        )
        try:
            return await asyncio.wait_for(self._fetch(client, target), timeout=self.timeout)

        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ProbeTimeoutError(
                f"HTTP check timeout after {self.policy.http_ms}ms",
                {"url": target, "timeout": self.policy.http_ms},
            ) from e

        except httpx.InvalidURL as e:
            raise ValidationError(f"Invalid URL: {e}", {"url": target}) from e

        except httpx.ConnectError as e:
            message = str(e)
            if "certificate" in message.lower():
                raise HttpCheckFailedError(
                    f"HTTP check failed: {message}",
                    {"url": target, "error": message},
                ) from e
            raise HostUnreachableError(
                f"Host unreachable: {message}",
                {"url": target, "error": message},
            ) from e

        except httpx.HTTPError as e:
            raise HttpCheckFailedError(
                f"HTTP check failed: {e}",
                {"url": target, "error": str(e)},
            ) from e

        finally:
            await client.aclose()

    async def _fetch(self, client: httpx.AsyncClient, target: str) -> HttpCheckResult:
        """Send the request, timing it up to the response headers, then drain the body."""
        request = client.build_request("GET", target)

        start = time.perf_counter()
        response = await client.send(request, stream=True)
        response_time_ms = (time.perf_counter() - start) * 1000.0

        try:
            await response.aread()
        except httpx.TimeoutException:
            raise
        except httpx.HTTPError as e:
            # status and headers already arrived
            logger.warning(f"HTTP check {target} degraded to partial response: {e}")
            return HttpCheckResult(
                status_code=response.status_code,
                response_time_ms=0,
                headers=_flatten_headers(response.headers),
            )
        finally:
            await response.aclose()

        logger.info(f"HTTP check {target} -> {response.status_code} in {response_time_ms:.0f}ms")
        return HttpCheckResult(
            status_code=response.status_code,
            response_time_ms=round(response_time_ms, 3),
            headers=_flatten_headers(response.headers),
        )
