"""
Live Reconciler - Merge Status Updates into a Displayed Page.

Applies one partial update event to a page the pipeline produced earlier,
keeping the page ordered the way the pipeline would have ordered it.

Algorithm:
    1. Unknown id: no-op, the page is left exactly as it was
    2. Merge the fields present in the event into the matching order
    3. Active -> completed: re-sort the page with the pipeline's ordering
       function. Same-partition changes never re-sort.
       Completed -> active is not a real transition; it is reported as an
       anomaly and, by default, re-sorted so active orders stay first.
    4. Flag ``moved_out_of_page`` when the order's true position may lie
       outside this page, so the caller can refetch

Design Notes:
    - The page's order list is updated in place; orders themselves are
      immutable and replaced by merged copies
    - Set-once timestamps (delivered, confirmed, cancelled) are never
      cleared or overwritten
    - Re-sorts break ties with the source ranks the pipeline recorded on
      the page, the same tie-break a fresh query uses
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from order_history.config.models import EngineConfig
from order_history.domain.entities import Order
from order_history.domain.value_objects import OrderUpdateEvent, Page, ReconcileResult
from order_history.filters.criteria import matches_query
from order_history.pipeline.ordering import sort_orders
from order_history.pipeline.query_pipeline import AuditLoggerProtocol
from order_history.registry.sort_registry import SortColumnRegistry, default_registry

logger = logging.getLogger(__name__)

SET_ONCE_FIELDS = ("delivered_at", "confirmed_at", "cancelled_at")


def merge_update(order: Order, event: OrderUpdateEvent) -> Order:
    """
    Return a copy of ``order`` with the event's provided fields applied.

    Fields absent from the event are left alone. An explicit ``rider: null``
    unassigns the rider. Set-once timestamps are only filled when empty.
    """
    provided = event.provided_fields()
    update: Dict[str, Any] = {}

    for name in ("status", "rider", "updated_at"):
        if name in provided:
            update[name] = getattr(event, name)

    for name in SET_ONCE_FIELDS:
        value = getattr(event, name)
        if name not in provided or value is None:
            continue
        current = getattr(order, name)
        if current is None:
            update[name] = value
        elif current != value:
            logger.debug(f"Order {order.id}: keeping {name}={current.isoformat()}")

    return order.model_copy(update=update)


class OrderReconciler:
    """Keeps a displayed page consistent with a live feed of updates."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        audit_logger: Optional[AuditLoggerProtocol] = None,
        registry: Optional[SortColumnRegistry] = None,
    ) -> None:
        """
        Initialize reconciler.

        Args:
            config: Engine configuration (reactivation policy, default sort
                    for pages that carry no query)
            audit_logger: Receives anomalies (optional)
            registry: Sort column registry, must match the pipeline's
        """
        self.config = config or EngineConfig()
        self.audit_logger = audit_logger
        self.registry = registry or default_registry

    def reconcile(
        self,
        page: Page,
        event: Union[OrderUpdateEvent, Mapping[str, Any]],
    ) -> ReconcileResult:
        """
        Merge one update event into ``page``.

        Args:
            page: Page previously produced by the pipeline; updated in place
            event: Update event, or its raw payload (extra keys ignored)

        Returns:
            ReconcileResult for the same page object

        Raises:
            pydantic.ValidationError: If a raw payload is not a valid event
        """
        if not isinstance(event, OrderUpdateEvent):
            event = OrderUpdateEvent.model_validate(event)

        index = page.index_of(event.id)
        if index is None:
            logger.debug(f"Update for order {event.id} not on this page, ignored")
            return ReconcileResult(page=page, matched=False)

        previous = page.orders[index]
        merged = merge_update(previous, event)
        page.orders[index] = merged

        partition_changed = previous.is_active != merged.is_active
        if partition_changed:
            if previous.is_active:
                self._resort(page)
            else:
                self._report_reactivation(previous, merged)
                if self.config.live.resort_on_reactivation:
                    self._resort(page)

        position = page.index_of(event.id)
        moved_out = self._moved_out_of_page(page, merged, position, partition_changed)

        logger.debug(
            f"Reconciled order {event.id}: {previous.status.value} -> "
            f"{merged.status.value}, index {index} -> {position}"
            + (" (outside page)" if moved_out else "")
        )

        return ReconcileResult(
            page=page,
            matched=True,
            partition_changed=partition_changed,
            moved_out_of_page=moved_out,
            position=position,
        )

    def _resort(self, page: Page) -> None:
        if page.query is not None:
            column, direction = page.query.sort_column, page.query.sort_direction
        else:
            column = self.config.query.default_sort_column
            direction = self.config.query.default_sort_direction
        page.orders[:] = sort_orders(
            page.orders, column, direction, self.registry, page.source_ranks
        )

    def _moved_out_of_page(
        self,
        page: Page,
        order: Order,
        position: Optional[int],
        repositioned: bool,
    ) -> bool:
        """
        Whether the order's correct place may be outside this page.

        True when the order no longer matches the page's filters, or when a
        re-sort left it on the edge of the page next to another page whose
        orders it has not been compared with.
        """
        if page.query is not None and not matches_query(order, page.query):
            return True

        if not repositioned or position is None:
            return False

        pagination = page.pagination
        if position == len(page) - 1 and page.is_full and pagination.has_next:
            return True
        if position == 0 and pagination.has_previous:
            return True
        return False

    def _report_reactivation(self, previous: Order, merged: Order) -> None:
        message = (
            f"Order {merged.id} moved from completed status "
            f"{previous.status.value} back to {merged.status.value}"
        )
        logger.warning(message)
        if self.audit_logger:
            self.audit_logger.log_anomaly(
                message,
                severity="WARNING",
                context={
                    "order_id": merged.id,
                    "previous_status": previous.status.value,
                    "status": merged.status.value,
                },
            )


def reconcile(
    page: Page,
    event: Union[OrderUpdateEvent, Mapping[str, Any]],
) -> ReconcileResult:
    """Reconcile with the default configuration."""
    return OrderReconciler().reconcile(page, event)
