"""
Live Package - Keeping Displayed Pages in Sync.

    - OrderReconciler / reconcile: Merge one update event into a page
    - OrderUpdateBroadcaster: Per-hospital push rooms
    - LiveOrderView: Single-writer page that follows the feed and
      refetches after reconnects

Design Principles:
    - Same ordering function as the query pipeline
    - Events for one page applied one at a time, in arrival order
    - Full refetch instead of gap detection
"""

from order_history.live.broadcaster import OrderUpdateBroadcaster
from order_history.live.live_view import LiveOrderView
from order_history.live.reconciler import OrderReconciler, merge_update, reconcile

__all__ = [
    "OrderReconciler",
    "OrderUpdateBroadcaster",
    "LiveOrderView",
    "merge_update",
    "reconcile",
]
