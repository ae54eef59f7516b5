"""
Probe Configuration

Fixed timeout budgets per probe kind plus the handful of process-level
settings (log level, JSON logs).  Values can be overridden through
``NETDIAG_*`` environment variables.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %d", name, raw, default)
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# TimeoutPolicy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimeoutPolicy:
    """
    Timeout budgets (milliseconds) for each probe kind.

    ``port_scan_ms`` applies to every individual connect attempt, not to
    the scan as a whole.
    """

    ping_ms: int = 5000
    http_ms: int = 10000
    port_scan_ms: int = 3000
    ssl_check_ms: int = 10000
    http_max_redirects: int = 5
    slow_response_threshold_ms: int = 5000
    user_agent: str = "Network-Domain-Analyzer/1.0"

    @property
    def ping_seconds(self) -> float:
        return self.ping_ms / 1000.0

    @property
    def http_seconds(self) -> float:
        return self.http_ms / 1000.0

    @property
    def port_scan_seconds(self) -> float:
        return self.port_scan_ms / 1000.0

    @property
    def ssl_check_seconds(self) -> float:
        return self.ssl_check_ms / 1000.0

    @classmethod
    def from_env(cls) -> "TimeoutPolicy":
        """Build a policy from ``NETDIAG_*`` variables, keeping defaults for unset ones."""
        defaults = cls()
        return cls(
            ping_ms=_env_int("NETDIAG_PING_TIMEOUT_MS", defaults.ping_ms),
            http_ms=_env_int("NETDIAG_HTTP_TIMEOUT_MS", defaults.http_ms),
            port_scan_ms=_env_int("NETDIAG_PORT_SCAN_TIMEOUT_MS", defaults.port_scan_ms),
            ssl_check_ms=_env_int("NETDIAG_SSL_TIMEOUT_MS", defaults.ssl_check_ms),
            http_max_redirects=_env_int("NETDIAG_HTTP_MAX_REDIRECTS", defaults.http_max_redirects),
            slow_response_threshold_ms=_env_int(
                "NETDIAG_SLOW_RESPONSE_MS", defaults.slow_response_threshold_ms
            ),
            user_agent=os.getenv("NETDIAG_USER_AGENT", defaults.user_agent),
        )


DEFAULT_TIMEOUT_POLICY = TimeoutPolicy()


# ---------------------------------------------------------------------------
# ProbeSettings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProbeSettings:
    """Process-level settings used by the CLI and logging setup."""

    timeouts: TimeoutPolicy = field(default_factory=TimeoutPolicy)
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        return cls(
            timeouts=TimeoutPolicy.from_env(),
            log_level=os.getenv("NETDIAG_LOG_LEVEL", "INFO").upper(),
            json_logs=_env_bool("NETDIAG_JSON_LOGS", False),
        )
