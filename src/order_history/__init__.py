"""
Order History Engine - Query & Live-State Reconciliation for Blood Orders.

Lets a hospital browse a paginated, filtered, sorted history of its blood
orders, export the current view, and keep the displayed page in sync with
a live feed of status changes.

Architecture:
    - Pure query pipeline (scope -> filter -> order -> paginate)
    - One shared ordering function used by the pipeline and the reconciler
    - Pluggable sort columns via a registry
    - Configuration-driven behavior via YAML

Main Components:
    - domain: Core entities (Order, QueryState, Page, OrderUpdateEvent)
    - filters: Tenant scope and criteria filter stages
    - pipeline: Ordering and the query pipeline
    - codec: QueryState <-> URL parameters
    - live: Reconciler, broadcaster and live page view
    - export: CSV projection
    - adapters: In-memory order store and mock data
    - config: Configuration models and loaders

Example:
    >>> from order_history import OrderQueryPipeline, QueryState
    >>> pipeline = OrderQueryPipeline()
    >>> page = pipeline.execute(store.get_orders("H1"), QueryState(hospital_id="H1"))
    >>> print(f"{page.pagination.total_count} orders")

"""

import logging

__version__ = "0.4.0"


def configure_logging(
    level: int = logging.INFO,
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
) -> None:
    """
    Configure logging for the order history engine.

    Call this at application startup to see log messages.
    By default, only WARNING and above are visible.

    Args:
        level: Logging level (default: INFO)
        format: Log message format

    Example:
        >>> import order_history
        >>> order_history.configure_logging(logging.DEBUG)
    """
    logging.basicConfig(
        level=level,
        format=format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("order_history").setLevel(level)


from order_history.domain.entities import (  # noqa: E402
    BloodType,
    Order,
    OrderStatus,
)
from order_history.domain.value_objects import (  # noqa: E402
    OrderUpdateEvent,
    Page,
    QueryState,
    SortDirection,
)
from order_history.pipeline.query_pipeline import (  # noqa: E402
    OrderQueryPipeline,
    ScopeViolation,
    execute_query,
)
from order_history.validation.query_validator import ValidationError  # noqa: E402

__all__ = [
    "BloodType",
    "Order",
    "OrderStatus",
    "OrderUpdateEvent",
    "Page",
    "QueryState",
    "SortDirection",
    "OrderQueryPipeline",
    "ScopeViolation",
    "execute_query",
    "ValidationError",
    "configure_logging",
]
