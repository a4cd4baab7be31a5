"""
Pipeline Package - Ordering and Query Orchestration.

    - sort_orders: The single ordering function shared with the reconciler
    - OrderQueryPipeline: validate -> scope -> filter -> order -> paginate
    - execute_query: One-shot helper running the default pipeline
    - ScopeViolation: Raised if another hospital's order leaks through
"""

from order_history.pipeline.ordering import partition_rank, sort_for_query, sort_orders
from order_history.pipeline.query_pipeline import (
    OrderProviderProtocol,
    OrderQueryPipeline,
    ScopeViolation,
    execute_query,
)

__all__ = [
    "partition_rank",
    "sort_for_query",
    "sort_orders",
    "OrderProviderProtocol",
    "OrderQueryPipeline",
    "ScopeViolation",
    "execute_query",
]
