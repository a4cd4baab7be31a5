"""
Order Query Pipeline - Main Orchestrator.

Turns a hospital's candidate orders and a QueryState into one Page:

    validate -> scope -> filter stages -> scope check -> order -> paginate

The pipeline holds no state between calls; observability hooks are
optional and never influence the result.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from order_history.domain.entities import Order
from order_history.domain.value_objects import (
    FilterResult,
    Page,
    PaginationInfo,
    QueryState,
)
from order_history.filters.criteria import default_criteria_filters
from order_history.filters.scope import TenantScopeFilter
from order_history.pipeline.ordering import rank_by_position, sort_for_query
from order_history.registry.sort_registry import SortColumnRegistry, default_registry
from order_history.validation.query_validator import QueryValidator

logger = logging.getLogger(__name__)


class ScopeViolation(AssertionError):
    """An order from another hospital reached the result. Never expected."""

    def __init__(self, hospital_id: str, leaked_ids: List[str]) -> None:
        super().__init__(
            f"Orders outside hospital {hospital_id} in result: {', '.join(leaked_ids)}"
        )
        self.hospital_id = hospital_id
        self.leaked_ids = leaked_ids


class OrderProviderProtocol(Protocol):
    """Protocol for backing stores that supply a hospital's orders."""

    def get_orders(self, hospital_id: str) -> List[Order]:
        ...


class FilterStageProtocol(Protocol):
    """Protocol for filter stages."""

    @property
    def name(self) -> str:
        ...

    def apply(self, orders: Sequence[Order], query: QueryState) -> FilterResult:
        ...


class AuditLoggerProtocol(Protocol):
    """Protocol for audit loggers."""

    def set_correlation_id(self, correlation_id: str) -> None:
        ...

    def log_stage_start(
        self, stage_name: str, input_count: int, metadata: Optional[Dict] = None
    ) -> None:
        ...

    def log_stage_end(
        self,
        stage_name: str,
        output_count: int,
        duration_seconds: float,
        metadata: Optional[Dict] = None,
    ) -> None:
        ...

    def log_order_filtered(self, order: Order, stage_name: str, reason: str) -> None:
        ...

    def log_anomaly(
        self, message: str, severity: str, context: Optional[Dict] = None
    ) -> None:
        ...


class MetricsCollectorProtocol(Protocol):
    """Protocol for metrics collectors."""

    def record_timing(
        self, name: str, duration_seconds: float, tags: Optional[Dict] = None
    ) -> None:
        ...

    def record_count(
        self, name: str, value: int, tags: Optional[Dict] = None
    ) -> None:
        ...

    def get_metrics(self) -> Dict[str, Any]:
        ...


class OrderQueryPipeline:
    """Filters, prioritizes, sorts and paginates a hospital's orders."""

    def __init__(
        self,
        filters: Optional[List[FilterStageProtocol]] = None,
        audit_logger: Optional[AuditLoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollectorProtocol] = None,
        validator: Optional[QueryValidator] = None,
        registry: Optional[SortColumnRegistry] = None,
    ) -> None:
        """
        Initialize pipeline with its collaborators.

        Args:
            filters: Ordered criteria stages (defaults to date range, blood
                type, status, blood bank search). Tenant scoping always
                runs first and is not part of this list.
            audit_logger: For stage-level audit trail (optional)
            metrics_collector: For timings and counts (optional)
            validator: Query validator (defaults to one using ``registry``)
            registry: Sort column registry (defaults to the shared one)
        """
        self.registry = registry or default_registry
        self.scope_filter = TenantScopeFilter()
        self.filters = filters if filters is not None else default_criteria_filters()
        self.audit_logger = audit_logger
        self.metrics_collector = metrics_collector
        self.validator = validator or QueryValidator(self.registry)

    def execute(self, orders: Sequence[Order], query: QueryState) -> Page:
        """
        Produce one page of orders.

        Args:
            orders: All candidate orders for the tenant
            query: Filter, sort and pagination state

        Returns:
            Page holding the requested slice and pagination metadata.
            A page past the end has no orders but still reports the
            true total count.

        Raises:
            ValidationError: If the query is invalid (before filtering)
            ScopeViolation: If an order from another hospital survives
        """
        start_time = time.perf_counter()

        ordered, ranks = self._select(orders, query)

        total_count = len(ordered)
        offset = query.offset
        page_orders = ordered[offset : offset + query.page_size]

        total_duration = time.perf_counter() - start_time
        if self.metrics_collector:
            self.metrics_collector.record_timing("query_total_seconds", total_duration)
            self.metrics_collector.record_count("query_result_total", total_count)

        logger.debug(
            f"Query for hospital {query.hospital_id}: {total_count} matching, "
            f"page {query.page} has {len(page_orders)} ({total_duration:.4f}s)"
        )

        return Page(
            orders=page_orders,
            pagination=PaginationInfo.compute(query.page, query.page_size, total_count),
            query=query,
            source_ranks={o.id: ranks[o.id] for o in page_orders},
        )

    def select(self, orders: Sequence[Order], query: QueryState) -> List[Order]:
        """
        Scope, filter and order without paginating.

        Used for exporting the whole filtered view.

        Raises:
            ValidationError: If the query is invalid (before filtering)
            ScopeViolation: If an order from another hospital survives
        """
        return self._select(orders, query)[0]

    def _select(
        self, orders: Sequence[Order], query: QueryState
    ) -> Tuple[List[Order], Dict[str, int]]:
        """Ordered survivors plus their source ranks."""
        self.validator.validate(query)

        if self.audit_logger:
            self.audit_logger.set_correlation_id(str(uuid.uuid4()))

        current = self._execute_stage(self.scope_filter, list(orders), query)
        for stage in self.filters:
            current = self._execute_stage(stage, current, query)

        self._assert_scope(current, query)

        ranks = rank_by_position(current)
        return sort_for_query(current, query, self.registry, ranks), ranks

    def _execute_stage(
        self,
        stage: FilterStageProtocol,
        orders: List[Order],
        query: QueryState,
    ) -> List[Order]:
        """Execute a single filter stage."""
        stage_start = time.perf_counter()

        if self.audit_logger:
            self.audit_logger.log_stage_start(stage.name, len(orders))

        filter_result = stage.apply(orders, query)
        survivors = self._survivors(orders, filter_result)

        stage_duration = time.perf_counter() - stage_start

        if self.audit_logger:
            kept = {id(o) for o in survivors}
            for order in orders:
                reason = filter_result.rejection_reasons.get(order.id)
                if reason and id(order) not in kept:
                    self.audit_logger.log_order_filtered(order, stage.name, reason)
            self.audit_logger.log_stage_end(
                stage.name, filter_result.passed_count, stage_duration
            )

        if self.metrics_collector:
            self.metrics_collector.record_timing(
                "stage_duration_seconds", stage_duration, {"stage": stage.name}
            )
            self.metrics_collector.record_count(
                "orders_filtered_total",
                filter_result.rejected_count,
                {"stage": stage.name},
            )

        return survivors

    @staticmethod
    def _survivors(orders: List[Order], filter_result: FilterResult) -> List[Order]:
        """
        Orders a stage passed, in input order.

        Matched by input position when the stage reports it, so orders of
        different hospitals sharing an id are never confused. Stages that
        only report ids are matched by id.
        """
        if filter_result.passed_indices is not None:
            return [orders[i] for i in filter_result.passed_indices]
        passed = set(filter_result.passed_ids)
        return [o for o in orders if o.id in passed]

    def _assert_scope(self, orders: List[Order], query: QueryState) -> None:
        leaked = [o.id for o in orders if o.hospital.id != query.hospital_id]
        if leaked:
            if self.audit_logger:
                self.audit_logger.log_anomaly(
                    "Cross-tenant orders reached the result",
                    severity="CRITICAL",
                    context={"hospital_id": query.hospital_id, "leaked": leaked},
                )
            raise ScopeViolation(query.hospital_id, leaked)


def execute_query(
    orders: Sequence[Order],
    query: QueryState,
    registry: Optional[SortColumnRegistry] = None,
) -> Page:
    """Run the default pipeline once. Pure: no logging hooks, no state."""
    return OrderQueryPipeline(registry=registry).execute(orders, query)
