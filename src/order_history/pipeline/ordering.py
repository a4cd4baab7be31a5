"""
Order Ordering - The One Comparator.

Both the query pipeline and the live reconciler order orders through
``sort_orders``. Keeping a single implementation means a page rebuilt
after a live update is ordered exactly as a fresh query would order it.

Ordering:
    1. Active orders (pending, confirmed, in_transit) before completed
       ones, regardless of the requested direction.
    2. The requested column, compared by its registered key, in the
       requested direction.
    3. Ties by source rank: the order's position in the backing store.
       Orders without a rank keep their input order, after ranked ones.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from order_history.domain.entities import Order
from order_history.domain.value_objects import QueryState, SortDirection
from order_history.registry.sort_registry import SortColumnRegistry, default_registry


def partition_rank(order: Order) -> int:
    """0 for active orders, 1 for completed ones."""
    return 0 if order.is_active else 1


def rank_by_position(orders: Sequence[Order]) -> Dict[str, int]:
    """Source ranks for orders listed in backing-store order."""
    return {order.id: i for i, order in enumerate(orders)}


def sort_orders(
    orders: Iterable[Order],
    sort_column: str,
    direction: SortDirection,
    registry: Optional[SortColumnRegistry] = None,
    source_ranks: Optional[Mapping[str, int]] = None,
) -> List[Order]:
    """
    Return the orders in display order.

    All passes use Python's stable sort, least significant key first. The
    rank pass restores backing-store order, the column pass runs next
    (with ``reverse`` for descending, which still keeps equal elements in
    rank order), then the partition pass moves active orders ahead without
    disturbing the column order inside each partition.

    Args:
        orders: Orders to sort
        sort_column: Registered column identifier
        direction: Direction for the column key only
        registry: Sort column registry (defaults to the shared one)
        source_ranks: Order id -> backing-store position, the final
            tie-break. Without it, ties keep their input order.

    Raises:
        KeyError: If the sort column is not registered
    """
    column = (registry or default_registry).get(sort_column)
    if source_ranks:
        unranked = len(source_ranks)
        orders = sorted(orders, key=lambda o: source_ranks.get(o.id, unranked))
    by_column = sorted(
        orders,
        key=column.key,
        reverse=SortDirection(direction) is SortDirection.DESC,
    )
    return sorted(by_column, key=partition_rank)


def sort_for_query(
    orders: Iterable[Order],
    query: QueryState,
    registry: Optional[SortColumnRegistry] = None,
    source_ranks: Optional[Mapping[str, int]] = None,
) -> List[Order]:
    """Sort using the column and direction carried by a query."""
    return sort_orders(
        orders, query.sort_column, query.sort_direction, registry, source_ranks
    )
