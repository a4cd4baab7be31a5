"""
Observability Package - Structured Logging and Metrics.

    - ObservabilityManager: structlog logging with correlation IDs, plus
      in-memory events and metrics; usable as audit logger and metrics
      collector
"""

from order_history.observability.observability_manager import (
    ObservabilityManager,
    get_correlation_id,
    set_correlation_id,
)

__all__ = [
    "ObservabilityManager",
    "get_correlation_id",
    "set_correlation_id",
]
