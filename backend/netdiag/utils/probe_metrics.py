"""
Probe metrics and log output.

``log_probe_execution`` wraps each facade operation: it times the call,
hands the operation a ``ProbeMetrics`` to fill in and logs one record per
call with the metrics attached.  ``configure_logging`` is the CLI's log
setup, plain text or one JSON object per line.
"""
from __future__ import annotations

import functools
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

# Attributes every LogRecord carries; anything else came in through ``extra=``
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``extra=`` fields land at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _STANDARD_ATTRS
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Install a single stderr handler on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if json_logs else logging.Formatter(TEXT_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


@dataclass
class ProbeMetrics:
    """
    Timing, counters and gauges for one probe call::

        metrics = ProbeMetrics("port_scan").start()
        metrics.increment("ports_open", 2)
        metrics.stop(success=True)
    """

    probe_name: str
    success: Optional[bool] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    counters: Dict[str, int] = field(default_factory=dict)
    gauges: Dict[str, float] = field(default_factory=dict)
    _started: Optional[float] = field(default=None, repr=False)
    _finished: Optional[float] = field(default=None, repr=False)

    def start(self) -> "ProbeMetrics":
        self._started = time.monotonic()
        return self

    def stop(
        self,
        success: bool = True,
        error: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> "ProbeMetrics":
        self._finished = time.monotonic()
        self.success, self.error, self.error_code = success, error, error_code
        return self

    @property
    def duration_ms(self) -> Optional[float]:
        if self._started is None:
            return None
        end = time.monotonic() if self._finished is None else self._finished
        return round((end - self._started) * 1000.0, 3)

    def increment(self, name: str, amount: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + amount

    def gauge(self, name: str, value: float) -> None:
        self.gauges[name] = value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "probe": self.probe_name,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "error": self.error,
            "error_code": self.error_code,
            "counters": dict(self.counters),
            "gauges": dict(self.gauges),
        }


def log_probe_execution(probe_name: Optional[str] = None) -> Callable:
    """
    Decorate an async probe operation.

    The operation receives its ``ProbeMetrics`` as the ``_metrics`` keyword.
    The record goes to ``netdiag.probe.<name>``: INFO on success, WARNING
    on failure with the error's ``code`` (or exception type name).
    """

    def decorator(func: Callable) -> Callable:
        name = probe_name or func.__name__
        probe_logger = logging.getLogger(f"netdiag.probe.{name}")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            metrics = ProbeMetrics(name).start()
            kwargs.setdefault("_metrics", metrics)
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                metrics.stop(
                    success=False,
                    error=str(exc),
                    error_code=getattr(exc, "code", type(exc).__name__),
                )
                probe_logger.warning("Probe execution failed", extra={"probe_metrics": metrics.to_dict()})
                raise
            metrics.stop(success=True)
            probe_logger.info("Probe execution complete", extra={"probe_metrics": metrics.to_dict()})
            return result

        return wrapper

    return decorator
