"""
In-Memory Order Store.

A backing store that keeps orders in a list, in insertion order. Status
changes and rider assignments are published to the update broadcaster
room of the order's hospital, the way a database-backed store would
emit them from its mutation path.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import RLock
from typing import Callable, Dict, Iterable, List, Optional

from order_history.domain.entities import Order, OrderStatus, Rider, ensure_utc
from order_history.domain.value_objects import OrderUpdateEvent
from order_history.live.broadcaster import OrderUpdateBroadcaster

logger = logging.getLogger(__name__)

# Set-once timestamp stamped when an order reaches a status
MILESTONES: Dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderNotFoundError(KeyError):
    """Raised when an order id is not in the store."""

    def __init__(self, order_id: str) -> None:
        super().__init__(order_id)
        self.order_id = order_id

    def __str__(self) -> str:
        return f"Order not found: {self.order_id}"


class InMemoryOrderStore:
    """List-backed order store implementing the order provider protocol."""

    def __init__(
        self,
        orders: Optional[Iterable[Order]] = None,
        broadcaster: Optional[OrderUpdateBroadcaster] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialize store.

        Args:
            orders: Initial orders
            broadcaster: Receives an update event after each mutation
            clock: Source of mutation timestamps (defaults to UTC now)
        """
        self._orders: List[Order] = []
        self._index: Dict[str, int] = {}
        self._lock = RLock()
        self.broadcaster = broadcaster
        self._clock = clock or utc_now
        for order in orders or []:
            self.add(order)

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)

    def add(self, order: Order) -> None:
        """
        Add an order.

        Raises:
            ValueError: If an order with the same id exists
        """
        with self._lock:
            if order.id in self._index:
                raise ValueError(f"Order {order.id} already exists")
            self._index[order.id] = len(self._orders)
            self._orders.append(order)

    def get(self, order_id: str) -> Order:
        with self._lock:
            try:
                return self._orders[self._index[order_id]]
            except KeyError:
                raise OrderNotFoundError(order_id) from None

    def get_orders(self, hospital_id: str) -> List[Order]:
        """All orders placed by a hospital, in insertion order."""
        with self._lock:
            return [o for o in self._orders if o.hospital.id == hospital_id]

    def all_orders(self) -> List[Order]:
        with self._lock:
            return list(self._orders)

    def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        at: Optional[datetime] = None,
    ) -> Order:
        """
        Change an order's status and publish the update.

        Stamps ``updated_at`` and, the first time the status is reached,
        the matching milestone timestamp.

        Raises:
            OrderNotFoundError: If the order does not exist
        """
        status = OrderStatus(status)
        at = ensure_utc(at) or self._clock()

        with self._lock:
            order = self.get(order_id)
            update = {"status": status, "updated_at": at}
            milestone = MILESTONES.get(status)
            if milestone and getattr(order, milestone) is None:
                update[milestone] = at
            updated = self._replace(order.model_copy(update=update))

        logger.info(f"Order {order_id} status {order.status.value} -> {status.value}")
        self._publish(updated)
        return updated

    def assign_rider(
        self,
        order_id: str,
        rider: Optional[Rider],
        at: Optional[datetime] = None,
    ) -> Order:
        """
        Set (or clear, with None) an order's rider and publish the update.

        Raises:
            OrderNotFoundError: If the order does not exist
        """
        at = ensure_utc(at) or self._clock()

        with self._lock:
            order = self.get(order_id)
            updated = self._replace(
                order.model_copy(update={"rider": rider, "updated_at": at})
            )

        logger.info(
            f"Order {order_id} rider -> {rider.name if rider else 'unassigned'}"
        )
        self._publish(updated)
        return updated

    def _replace(self, order: Order) -> Order:
        self._orders[self._index[order.id]] = order
        return order

    def _publish(self, order: Order) -> None:
        # Must run outside the store lock
        if self.broadcaster is None:
            return
        self.broadcaster.publish(order.hospital.id, OrderUpdateEvent.from_order(order))
