"""
Criteria Filter Implementations.

Each stage handles one filter dimension of a query. Stages are combined
conjunctively by the pipeline: an order must pass all of them. A
dimension left unset in the query is no constraint, so the stage passes
every order.

    - DateRangeFilter: placed_at within [startDate, endDate]
    - BloodTypeFilter: blood type in the selected set
    - StatusFilter: status in the selected set
    - BloodBankSearchFilter: case-insensitive substring of the bank name
"""

from __future__ import annotations

from typing import Sequence, Tuple

from order_history.domain.entities import Order
from order_history.domain.value_objects import FilterResult, QueryState
from order_history.filters.base import pass_all, run_check


class DateRangeFilter:
    """
    Filter orders by placement date.

    Bounds are calendar days and inclusive: an order placed at any time on
    ``end_date`` (UTC) passes. Each bound is checked only when set.

    The end bound is deliberately not ``placed_at <= midnight of end_date``,
    which would drop every order placed after 00:00 on the last day.
    """

    @property
    def name(self) -> str:
        return "date_range"

    def apply(self, orders: Sequence[Order], query: QueryState) -> FilterResult:
        start, end = query.date_range
        if start is None and end is None:
            return pass_all(orders)

        def check(order: Order) -> Tuple[bool, str]:
            placed_on = order.placed_at.date()
            if start is not None and placed_on < start:
                return False, f"placed_at={placed_on} before {start}"
            if end is not None and placed_on > end:
                return False, f"placed_at={placed_on} after {end}"
            return True, ""

        return run_check(orders, check)


class BloodTypeFilter:
    """Filter orders by blood type. Empty selection matches everything."""

    @property
    def name(self) -> str:
        return "blood_type"

    def apply(self, orders: Sequence[Order], query: QueryState) -> FilterResult:
        selected = query.blood_types
        if not selected:
            return pass_all(orders)

        def check(order: Order) -> Tuple[bool, str]:
            if order.blood_type in selected:
                return True, ""
            return False, f"blood_type={order.blood_type.value} not selected"

        return run_check(orders, check)


class StatusFilter:
    """Filter orders by status. Empty selection matches everything."""

    @property
    def name(self) -> str:
        return "status"

    def apply(self, orders: Sequence[Order], query: QueryState) -> FilterResult:
        selected = query.statuses
        if not selected:
            return pass_all(orders)

        def check(order: Order) -> Tuple[bool, str]:
            if order.status in selected:
                return True, ""
            return False, f"status={order.status.value} not selected"

        return run_check(orders, check)


class BloodBankSearchFilter:
    """Filter orders whose blood bank name contains the search text."""

    @property
    def name(self) -> str:
        return "blood_bank_search"

    def apply(self, orders: Sequence[Order], query: QueryState) -> FilterResult:
        if not query.blood_bank_search:
            return pass_all(orders)

        needle = query.blood_bank_search.casefold()

        def check(order: Order) -> Tuple[bool, str]:
            if needle in order.blood_bank.name.casefold():
                return True, ""
            return False, f"blood_bank={order.blood_bank.name!r} does not match"

        return run_check(orders, check)


def default_criteria_filters() -> list:
    """The criteria stages in the order the pipeline applies them."""
    return [
        DateRangeFilter(),
        BloodTypeFilter(),
        StatusFilter(),
        BloodBankSearchFilter(),
    ]


def matches_query(order: Order, query: QueryState) -> bool:
    """True when the order satisfies every filter dimension of the query."""
    return all(
        stage.apply([order], query).passed_count == 1
        for stage in default_criteria_filters()
    )
