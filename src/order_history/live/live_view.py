"""
Live Order View - One Displayed Page Kept in Sync.

Owns the page shown for one QueryState and applies update events to it
one at a time, in arrival order. Events carry no sequence numbers, so
after a dropped connection the view refetches from the order provider
instead of trying to detect missed events.
"""

from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Mapping, Optional, Union

from order_history.config.models import EngineConfig
from order_history.domain.value_objects import (
    OrderUpdateEvent,
    Page,
    QueryState,
    ReconcileResult,
)
from order_history.live.broadcaster import OrderUpdateBroadcaster
from order_history.live.reconciler import OrderReconciler
from order_history.pipeline.query_pipeline import OrderProviderProtocol, OrderQueryPipeline

logger = logging.getLogger(__name__)


class LiveOrderView:
    """
    A page of orders that follows the live update feed.

    Single writer: ``refresh`` and ``apply`` hold the same lock, so events
    never interleave with each other or with a refetch.
    """

    def __init__(
        self,
        provider: OrderProviderProtocol,
        query: QueryState,
        pipeline: Optional[OrderQueryPipeline] = None,
        reconciler: Optional[OrderReconciler] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        """
        Initialize the view. No data is loaded until ``refresh``.

        Args:
            provider: Backing store supplying the hospital's orders
            query: What this view displays
            pipeline: Query pipeline (defaults to a plain one)
            reconciler: Reconciler (defaults to one built from ``config``)
            config: Engine configuration
        """
        self.provider = provider
        self.config = config or EngineConfig()
        self.pipeline = pipeline or OrderQueryPipeline()
        self.reconciler = reconciler or OrderReconciler(
            self.config, registry=self.pipeline.registry
        )
        self._query = query
        self._page: Optional[Page] = None
        self._lock = RLock()
        self._broadcaster: Optional[OrderUpdateBroadcaster] = None
        self._subscriber_id: Optional[str] = None
        self.needs_refetch = False

    @property
    def query(self) -> QueryState:
        return self._query

    @property
    def page(self) -> Page:
        """The current page, fetched on first access."""
        with self._lock:
            if self._page is None:
                return self.refresh()
            return self._page

    def refresh(self) -> Page:
        """Rebuild the page from the provider."""
        with self._lock:
            orders = self.provider.get_orders(self._query.hospital_id)
            self._page = self.pipeline.execute(orders, self._query)
            self.needs_refetch = False
            logger.debug(
                f"View refreshed: hospital={self._query.hospital_id}, "
                f"page={self._query.page}, orders={len(self._page)}"
            )
            return self._page

    def set_query(self, query: QueryState) -> Page:
        """Switch to another query (filters, sort or page) and refetch."""
        with self._lock:
            if query.hospital_id != self._query.hospital_id and self._broadcaster:
                broadcaster = self._broadcaster
                self.disconnect()
                self._query = query
                self.connect(broadcaster)
            else:
                self._query = query
            return self.refresh()

    def apply(
        self, event: Union[OrderUpdateEvent, Mapping[str, Any]]
    ) -> ReconcileResult:
        """
        Apply one update event to the displayed page.

        When the event leaves the order outside this page, ``needs_refetch``
        is set; with ``live.refetch_on_move`` the page is refetched at once.
        """
        with self._lock:
            result = self.reconciler.reconcile(self.page, event)
            if result.moved_out_of_page:
                self.needs_refetch = True
                order_id = result.page.orders[result.position].id
                if self.config.live.refetch_on_move:
                    logger.info(f"Order {order_id} left the page, refetching")
                    self.refresh()
                else:
                    logger.debug(f"Order {order_id} may belong to another page")
            return result

    # =========================================================================
    # Feed connection
    # =========================================================================

    def connect(self, broadcaster: OrderUpdateBroadcaster) -> str:
        """Subscribe to the update feed of this view's hospital."""
        with self._lock:
            if self._broadcaster is not None:
                self.disconnect()
            self._broadcaster = broadcaster
            self._subscriber_id = broadcaster.subscribe(self._query.hospital_id, self.apply)
            return self._subscriber_id

    def disconnect(self) -> None:
        """Leave the update feed. The page stays as it is."""
        with self._lock:
            if self._broadcaster is not None and self._subscriber_id is not None:
                self._broadcaster.unsubscribe(self._query.hospital_id, self._subscriber_id)
            self._broadcaster = None
            self._subscriber_id = None

    def reconnect(self, broadcaster: Optional[OrderUpdateBroadcaster] = None) -> Page:
        """
        Resume after a dropped connection.

        Events published while disconnected are lost, so the page is
        rebuilt from the provider before subscribing again.
        """
        with self._lock:
            broadcaster = broadcaster or self._broadcaster
            self.disconnect()
            page = self.refresh()
            if broadcaster is not None:
                self.connect(broadcaster)
            return page

    @property
    def is_connected(self) -> bool:
        return self._broadcaster is not None
