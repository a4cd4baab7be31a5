"""
Tenant Scope Filter.

Restricts the candidate orders to the hospital named by the query. Runs
before every other stage, and is not optional: the pipeline applies it
even when the stage list is customised.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from order_history.domain.entities import Order
from order_history.domain.value_objects import FilterResult, QueryState
from order_history.filters.base import run_check


class TenantScopeFilter:
    """Keep only orders placed by the query's hospital."""

    @property
    def name(self) -> str:
        return "tenant_scope"

    def apply(self, orders: Sequence[Order], query: QueryState) -> FilterResult:
        """
        Apply tenant scoping.

        Args:
            orders: Candidate orders from the backing store
            query: Query holding the hospital id

        Returns:
            FilterResult with in-scope orders passed
        """
        hospital_id = query.hospital_id

        def check(order: Order) -> Tuple[bool, str]:
            if order.hospital.id == hospital_id:
                return True, ""
            return False, f"hospital={order.hospital.id} outside scope"

        return run_check(orders, check)
