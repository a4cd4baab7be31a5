"""
Value Objects for Domain Layer.

Value objects describe queries, pages and updates. They have no identity
of their own and, apart from Page, are immutable.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from order_history.domain.entities import (
    BloodType,
    Order,
    OrderStatus,
    Rider,
    ensure_utc,
)


# =============================================================================
# Query defaults
# =============================================================================

PAGE_SIZES: Tuple[int, ...] = (25, 50, 100)
DEFAULT_PAGE_SIZE = 25
DEFAULT_SORT_COLUMN = "placedAt"

# Rejection reasons: order id -> reason string
RejectionReasonsDict = Dict[str, str]


class SortDirection(str, Enum):
    """Direction applied to the secondary sort key."""

    ASC = "asc"
    DESC = "desc"


class QueryState(BaseModel):
    """
    Filter, sort and pagination state for one view of a hospital's orders.

    This is the unit round-tripped through URLs. Values are not range
    checked here; QueryValidator rejects bad page sizes, pages, date
    ranges and sort columns before a query runs.
    """

    hospital_id: str = Field(..., description="Tenant the query is scoped to")
    start_date: Optional[date] = Field(default=None, description="Inclusive lower bound")
    end_date: Optional[date] = Field(default=None, description="Inclusive upper bound")
    blood_types: FrozenSet[BloodType] = Field(default_factory=frozenset)
    statuses: FrozenSet[OrderStatus] = Field(default_factory=frozenset)
    blood_bank_search: str = ""
    sort_column: str = DEFAULT_SORT_COLUMN
    sort_direction: SortDirection = SortDirection.DESC
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    model_config = {"frozen": True}

    @property
    def date_range(self) -> Tuple[Optional[date], Optional[date]]:
        return self.start_date, self.end_date

    @property
    def offset(self) -> int:
        """Index of the first order on the requested page."""
        return (self.page - 1) * self.page_size

    def with_page(self, page: int) -> "QueryState":
        return self.model_copy(update={"page": page})


class PaginationInfo(BaseModel):
    """Pagination metadata returned alongside a page of orders."""

    current_page: int
    page_size: int
    total_count: int = Field(ge=0)
    total_pages: int = Field(ge=0)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @classmethod
    def compute(cls, current_page: int, page_size: int, total_count: int) -> "PaginationInfo":
        """Build metadata; total_pages is 0 when there are no orders."""
        return cls(
            current_page=current_page,
            page_size=page_size,
            total_count=total_count,
            total_pages=math.ceil(total_count / page_size) if total_count else 0,
        )

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


class Page(BaseModel):
    """
    One bounded slice of the filtered and sorted order collection.

    The order list is the caller-held representation that the live
    reconciler updates in place.
    """

    orders: List[Order] = Field(default_factory=list, alias="data")
    pagination: PaginationInfo
    query: Optional[QueryState] = Field(
        default=None, description="Query that produced this page"
    )
    source_ranks: Dict[str, int] = Field(
        default_factory=dict,
        description="Order id -> position in the backing store's order",
    )

    model_config = {"populate_by_name": True}

    def __len__(self) -> int:
        return len(self.orders)

    @property
    def order_ids(self) -> List[str]:
        return [o.id for o in self.orders]

    @property
    def is_full(self) -> bool:
        return len(self.orders) >= self.pagination.page_size

    def index_of(self, order_id: str) -> Optional[int]:
        """Position of an order on this page, or None if it is not shown."""
        for i, order in enumerate(self.orders):
            if order.id == order_id:
                return i
        return None

    def to_response(self) -> dict:
        """Serialize as the JSON body returned to clients."""
        return self.model_dump(
            mode="json", by_alias=True, exclude={"query", "source_ranks"}
        )


class OrderUpdateEvent(BaseModel):
    """
    Partial order update pushed by the real-time feed.

    Only fields explicitly present in the payload are merged into the
    displayed order. Unknown fields are ignored.
    """

    id: str
    status: OrderStatus
    rider: Optional[Rider] = None
    updated_at: datetime
    delivered_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = {
        "frozen": True,
        "extra": "ignore",
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("updated_at", "delivered_at", "confirmed_at", "cancelled_at")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    def provided_fields(self) -> Set[str]:
        """Fields present in the payload, excluding the id."""
        return set(self.model_fields_set) - {"id"}

    @classmethod
    def from_order(cls, order: Order) -> "OrderUpdateEvent":
        """Build the event the store publishes after mutating an order."""
        return cls(
            id=order.id,
            status=order.status,
            rider=order.rider,
            updated_at=order.updated_at,
            delivered_at=order.delivered_at,
        )


class FilterResult(BaseModel):
    """Result of applying a single filter stage."""

    passed_ids: List[str] = Field(
        default_factory=list, description="Ids of passed orders"
    )
    rejected_ids: List[str] = Field(
        default_factory=list, description="Ids of rejected orders"
    )
    rejection_reasons: RejectionReasonsDict = Field(
        default_factory=dict, description="Order id -> rejection reason"
    )
    passed_indices: Optional[List[int]] = Field(
        default=None, description="Input positions of passed orders"
    )

    model_config = {"frozen": True}

    @property
    def passed_count(self) -> int:
        return len(self.passed_ids)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected_ids)


class ReconcileResult(BaseModel):
    """Outcome of merging one update event into a page."""

    page: Page
    matched: bool = Field(description="False when the order is not on the page")
    partition_changed: bool = False
    moved_out_of_page: bool = False
    position: Optional[int] = Field(
        default=None, description="Index of the order after reconciliation"
    )
