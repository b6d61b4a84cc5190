"""
docstore-cache — Observability Monitoring

In-process metrics collection, span tracing and structured JSON logging.
Counters live in memory for the lifetime of the process; nothing is persisted.
"""

import contextvars
import json
import logging
import time
from collections import defaultdict
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

# Trace ID context variable for distributed tracing
_trace_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)

_ROOT_LOGGER = "docstore_cache"

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    (
        "args",
        "msg",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)


class ObservabilityAdapter:
    """
    Simple in-process observability adapter.

    Provides:
    - Counters and gauges kept in memory
    - Span tracing (trace IDs, durations in logs)
    """

    def __init__(
        self,
        enable_metrics: bool = True,
        enable_tracing: bool = True,
    ):
        self.enable_metrics = enable_metrics
        self.enable_tracing = enable_tracing

        self._counters: dict[str, float] = defaultdict(float)
        self._gauges: dict[str, float] = {}

        self.logger = logging.getLogger(f"{_ROOT_LOGGER}.observability")

    @staticmethod
    def _metric_key(metric: str, tags: dict[str, str] | None) -> str:
        if not tags:
            return metric
        rendered = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{metric}{{{rendered}}}"

    def increment(
        self,
        metric: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Args:
            metric: Metric name (e.g., "cache.hits")
            value: Value to increment by
            tags: Optional metric tags/labels
        """
        if not self.enable_metrics:
            return
        self._counters[self._metric_key(metric, tags)] += value

    def gauge(
        self,
        metric: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to its current value."""
        if not self.enable_metrics:
            return
        self._gauges[self._metric_key(metric, tags)] = value

    def event(self, name: str, payload: dict[str, Any]) -> None:
        """Record an event as a structured log line."""
        self.logger.info(
            f"Event: {name}",
            extra={
                "event_name": name,
                "event_payload": payload,
            },
        )

    @contextmanager
    def trace(self, span_name: str, tags: dict[str, str] | None = None) -> Generator[None, None, None]:
        """
        Context manager for tracing a span.

        Example:
            with observability.trace("cache.read"):
                value = await store.read(key)
        """
        if not self.enable_tracing:
            yield
            return

        start_time = time.perf_counter()
        trace_id = self.get_trace_id() or self.generate_trace_id()
        tags = tags or {}

        try:
            yield
        except Exception as e:
            self.logger.error(
                f"Span error: {span_name}",
                extra={
                    "span_name": span_name,
                    "trace_id": trace_id,
                    "error": str(e),
                    "tags": tags,
                },
            )
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.debug(
                f"Span completed: {span_name}",
                extra={
                    "span_name": span_name,
                    "trace_id": trace_id,
                    "duration_ms": round(duration_ms, 2),
                    "tags": tags,
                },
            )

    def get_trace_id(self) -> str | None:
        """Get current trace ID from context."""
        return _trace_id_ctx.get()

    def set_trace_id(self, trace_id: str) -> None:
        """Set trace ID in context."""
        _trace_id_ctx.set(trace_id)

    def generate_trace_id(self) -> str:
        """Generate a new trace ID and set it in context."""
        trace_id = str(uuid4())
        self.set_trace_id(trace_id)
        return trace_id

    def get_metrics(self) -> dict[str, dict[str, float]]:
        """Return a snapshot of all counters and gauges."""
        return {
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
        }

    def reset(self) -> None:
        """Clear all metrics (testing/reset)."""
        self._counters.clear()
        self._gauges.clear()


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        trace_id = _trace_id_ctx.get()
        if trace_id:
            log_data["trace_id"] = trace_id

        # Add any extra fields from record.__dict__
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(level: str | int = logging.INFO, json_logs: bool = True) -> logging.Logger:
    """
    Install a single stream handler on the package logger.

    Args:
        level: Log level name or number
        json_logs: Use JSONFormatter when True, a plain text format otherwise

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    return logger


# Global observability adapter instance (singleton)
_observability_adapter: ObservabilityAdapter | None = None


def get_observability() -> ObservabilityAdapter:
    """
    Get the global observability adapter instance.

    Auto-initializes from configuration on first access.
    """
    global _observability_adapter

    if _observability_adapter is None:
        from ..config import get_config

        config = get_config().observability
        _observability_adapter = ObservabilityAdapter(
            enable_metrics=config.enable_metrics,
            enable_tracing=config.enable_tracing,
        )

    return _observability_adapter


def initialize_observability(
    enable_metrics: bool = True,
    enable_tracing: bool = True,
) -> ObservabilityAdapter:
    """Initialize (or replace) the global observability adapter."""
    global _observability_adapter

    _observability_adapter = ObservabilityAdapter(
        enable_metrics=enable_metrics,
        enable_tracing=enable_tracing,
    )

    return _observability_adapter


def reset_observability() -> None:
    """Drop the global adapter (testing only)."""
    global _observability_adapter
    _observability_adapter = None
