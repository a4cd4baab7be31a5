"""
Observability Manager - Structured Logging and Metrics.

Provides:
    - Structured logging via structlog (JSON or console rendering)
    - Correlation ID per query, bound into every log entry
    - In-memory event and metric recording

Implements both the audit logger and the metrics collector protocols the
query pipeline and reconciler accept, so one instance can be handed to
both.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from order_history.config.models import ObservabilityConfig
from order_history.domain.entities import Order

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID in context."""
    _correlation_id.set(correlation_id)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ObservabilityManager:
    """
    Structured logging with correlation IDs plus in-memory metrics.

    Events and metrics are kept in memory so tests and health endpoints can
    inspect what a query or reconciliation did.
    """

    def __init__(
        self,
        service_name: str = "order_history",
        use_json: bool = True,
        log_level: int = logging.INFO,
    ) -> None:
        """
        Initialize observability manager.

        Args:
            service_name: Logger name for log entries
            use_json: Render JSON lines instead of console output
            log_level: Minimum level that is emitted
        """
        self.service_name = service_name
        self.use_json = use_json
        self.log_level = log_level
        self._metrics: Dict[str, List[Dict[str, Any]]] = {}
        self._events: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

        self._configure_structlog()
        self._logger = structlog.get_logger(service_name)

    @classmethod
    def from_config(cls, config: ObservabilityConfig) -> "ObservabilityManager":
        return cls(
            service_name=config.service_name,
            use_json=config.use_json,
            log_level=getattr(logging, config.log_level),
        )

    def _configure_structlog(self) -> None:
        processors: List[Any] = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
        ]

        if self.use_json:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(self.log_level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=False,
        )

    def set_correlation_id(self, correlation_id: str) -> None:
        """Set correlation ID for the current context and bind it to logs."""
        set_correlation_id(correlation_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

    def generate_correlation_id(self) -> str:
        correlation_id = str(uuid.uuid4())
        self.set_correlation_id(correlation_id)
        return correlation_id

    def log_event(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        level: str = "info",
    ) -> None:
        """
        Record and log a structured event.

        Args:
            event_type: Type of event (e.g., "stage_end", "anomaly")
            data: Additional event fields
            level: Log level (debug, info, warning, error, critical)
        """
        event_data = {
            "event_type": event_type,
            "timestamp": _now(),
            "correlation_id": get_correlation_id(),
            **(data or {}),
        }

        with self._lock:
            self._events.append(event_data)

        log_method = getattr(self._logger, level.lower(), self._logger.info)
        log_method(event_type, **{k: v for k, v in event_data.items() if k != "event_type"})

    def record_metric(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None,
        metric_type: str = "gauge",
    ) -> None:
        entry = {
            "timestamp": _now(),
            "value": value,
            "tags": tags or {},
            "type": metric_type,
            "correlation_id": get_correlation_id(),
        }
        with self._lock:
            self._metrics.setdefault(name, []).append(entry)

    def get_metrics(self) -> Dict[str, List[Dict[str, Any]]]:
        with self._lock:
            return {name: list(entries) for name, entries in self._metrics.items()}

    def get_events(self, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Recorded events, optionally only those of one type."""
        with self._lock:
            if event_type is None:
                return list(self._events)
            return [e for e in self._events if e["event_type"] == event_type]

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()
            self._events.clear()

    # =========================================================================
    # Audit logger protocol
    # =========================================================================

    def log_stage_start(
        self,
        stage_name: str,
        input_count: int,
        metadata: Optional[Dict] = None,
    ) -> None:
        self.log_event(
            "stage_start",
            {"stage_name": stage_name, "input_count": input_count, **(metadata or {})},
            level="debug",
        )

    def log_stage_end(
        self,
        stage_name: str,
        output_count: int,
        duration_seconds: float,
        metadata: Optional[Dict] = None,
    ) -> None:
        self.log_event(
            "stage_end",
            {
                "stage_name": stage_name,
                "output_count": output_count,
                "duration_seconds": duration_seconds,
                **(metadata or {}),
            },
        )

    def log_order_filtered(self, order: Order, stage_name: str, reason: str) -> None:
        self.log_event(
            "order_filtered",
            {"order_id": order.id, "stage_name": stage_name, "reason": reason},
            level="debug",
        )

    def log_anomaly(
        self,
        message: str,
        severity: str,
        context: Optional[Dict] = None,
    ) -> None:
        level = "warning" if severity.upper() == "WARNING" else "error"
        if severity.upper() == "CRITICAL":
            level = "critical"
        self.log_event(
            "anomaly",
            {"message": message, "severity": severity.upper(), **(context or {})},
            level=level,
        )

    # =========================================================================
    # Metrics collector protocol
    # =========================================================================

    def record_timing(
        self,
        name: str,
        duration_seconds: float,
        tags: Optional[Dict] = None,
    ) -> None:
        self.record_metric(name, duration_seconds, tags, metric_type="histogram")

    def record_count(
        self,
        name: str,
        value: int,
        tags: Optional[Dict] = None,
    ) -> None:
        self.record_metric(name, float(value), tags, metric_type="counter")
