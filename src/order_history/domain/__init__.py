"""
Domain Layer - Core Business Entities and Value Objects.

This package contains the core domain model for order history.
Everything here is pure Python with no infrastructure dependencies
(except Pydantic for validation).

Entities:
    - Order: A blood order with its bank, hospital, rider and timestamps
    - BloodType, OrderStatus: Enumerations
    - ACTIVE_STATUSES / COMPLETED_STATUSES: The status partition

Value Objects:
    - QueryState: Filter, sort and pagination state
    - Page / PaginationInfo: Pipeline output
    - OrderUpdateEvent: Partial update from the live feed
    - FilterResult: Result of a single filter stage
    - ReconcileResult: Result of merging an update into a page
"""

from order_history.domain.entities import (
    ACTIVE_STATUSES,
    COMPLETED_STATUSES,
    BloodBankRef,
    BloodType,
    HospitalRef,
    Order,
    OrderStatus,
    Rider,
)
from order_history.domain.value_objects import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_COLUMN,
    PAGE_SIZES,
    FilterResult,
    OrderUpdateEvent,
    Page,
    PaginationInfo,
    QueryState,
    ReconcileResult,
    SortDirection,
)

__all__ = [
    "ACTIVE_STATUSES",
    "COMPLETED_STATUSES",
    "BloodBankRef",
    "BloodType",
    "HospitalRef",
    "Order",
    "OrderStatus",
    "Rider",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_SORT_COLUMN",
    "PAGE_SIZES",
    "FilterResult",
    "OrderUpdateEvent",
    "Page",
    "PaginationInfo",
    "QueryState",
    "ReconcileResult",
    "SortDirection",
]
