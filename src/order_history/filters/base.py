"""
Shared helpers for filter stages.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

from order_history.domain.entities import Order
from order_history.domain.value_objects import FilterResult

# Returns (passes, reason); reason is empty when the order passes
OrderCheck = Callable[[Order], Tuple[bool, str]]


def run_check(orders: Sequence[Order], check: OrderCheck) -> FilterResult:
    """Apply a per-order check, keeping passed ids in input order."""
    passed: List[str] = []
    indices: List[int] = []
    rejected: List[str] = []
    reasons: Dict[str, str] = {}

    for i, order in enumerate(orders):
        ok, reason = check(order)
        if ok:
            passed.append(order.id)
            indices.append(i)
        else:
            rejected.append(order.id)
            reasons[order.id] = reason

    return FilterResult(
        passed_ids=passed,
        rejected_ids=rejected,
        rejection_reasons=reasons,
        passed_indices=indices,
    )


def pass_all(orders: Sequence[Order]) -> FilterResult:
    """Result for a stage whose criterion is unset."""
    return FilterResult(
        passed_ids=[o.id for o in orders],
        passed_indices=list(range(len(orders))),
    )
