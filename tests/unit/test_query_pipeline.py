"""
Unit Tests for OrderQueryPipeline.

Test Aspects Covered:
    ✅ Business Logic: Scope, conjunctive filters, active-first ordering
    ✅ Edge Cases: Empty sets, pages past the end, ties
    ✅ Error Handling: Validation before filtering, scope violations
"""

from __future__ import annotations

from datetime import date
from typing import List

import pytest

from order_history.domain.entities import BloodType, Order, OrderStatus
from order_history.domain.value_objects import FilterResult, QueryState, SortDirection
from order_history.observability.observability_manager import ObservabilityManager
from order_history.pipeline.query_pipeline import (
    OrderQueryPipeline,
    ScopeViolation,
    execute_query,
)
from order_history.validation.query_validator import ValidationError
from tests.fixtures import utc


class LeakyFilter:
    """Test double standing in for a broken scope stage: passes everything."""

    @property
    def name(self) -> str:
        return "leaky"

    def apply(self, orders, query) -> FilterResult:
        return FilterResult(passed_ids=[o.id for o in orders])


class TestScoping:
    """Tenant isolation."""

    def test_only_requested_hospital_returned(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: Orders from two hospitals in the candidate set
        EXPECTED: Only the requested hospital's orders appear
        """
        # Act
        page_h1 = pipeline.execute(mixed_orders, QueryState(hospital_id="H1"))
        page_h2 = pipeline.execute(mixed_orders, QueryState(hospital_id="H2"))

        # Assert
        assert {o.hospital.id for o in page_h1.orders} == {"H1"}
        assert page_h2.order_ids == ["X1", "X2"]
        assert page_h1.pagination.total_count == 5

    def test_unknown_hospital_returns_empty_page(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: Hospital with no orders
        EXPECTED: Empty page, zero pages
        """
        page = pipeline.execute(mixed_orders, QueryState(hospital_id="H9"))

        assert page.orders == []
        assert page.pagination.total_count == 0
        assert page.pagination.total_pages == 0

    def test_scope_violation_raised_when_leak_detected(
        self, mixed_orders: List[Order], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """
        SCENARIO: The scope stage is broken and lets another hospital through
        EXPECTED: ScopeViolation, never a page
        """
        # Arrange
        pipeline = OrderQueryPipeline()
        monkeypatch.setattr(pipeline, "scope_filter", LeakyFilter())

        # Act & Assert
        with pytest.raises(ScopeViolation) as exc_info:
            pipeline.execute(mixed_orders, QueryState(hospital_id="H1"))

        assert set(exc_info.value.leaked_ids) == {"X1", "X2"}
        assert isinstance(exc_info.value, AssertionError)

    def test_shared_id_across_hospitals_scoped_cleanly(
        self, pipeline: OrderQueryPipeline, order_factory
    ) -> None:
        """
        SCENARIO: H2 and H1 each have an order with id DUP; H2's comes first
        EXPECTED: H1 gets only its own DUP, no ScopeViolation
        """
        # Arrange
        orders = [
            order_factory("DUP", hospital_id="H2", quantity=9),
            order_factory("DUP", hospital_id="H1", quantity=1),
        ]

        # Act
        page = pipeline.execute(orders, QueryState(hospital_id="H1"))

        # Assert
        assert page.order_ids == ["DUP"]
        assert page.orders[0].hospital.id == "H1"
        assert page.orders[0].quantity == 1

    def test_shared_id_rejections_audited_once(self, order_factory) -> None:
        """Only the other hospital's DUP is logged as filtered."""
        obs = ObservabilityManager(use_json=False)
        pipeline = OrderQueryPipeline(audit_logger=obs)
        orders = [
            order_factory("DUP", hospital_id="H2"),
            order_factory("DUP", hospital_id="H1"),
        ]

        pipeline.execute(orders, QueryState(hospital_id="H1"))

        assert len(obs.get_events("order_filtered")) == 1


class TestSourceRanks:
    """Store positions recorded on the page."""

    def test_page_records_store_positions(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order], base_query: QueryState
    ) -> None:
        """
        SCENARIO: Default H1 query
        EXPECTED: Ranks give each shown order's place among H1's orders
        """
        page = pipeline.execute(mixed_orders, base_query)

        assert page.source_ranks == {"O1": 0, "O2": 1, "O3": 2, "O4": 3, "O5": 4}

    def test_ranks_only_for_shown_orders(
        self, pipeline: OrderQueryPipeline, order_factory
    ) -> None:
        orders = [order_factory(f"P{i}", placed_at=utc(2024, 1, 1 + i)) for i in range(30)]

        page = pipeline.execute(orders, QueryState(hospital_id="H1", page=2))

        assert set(page.source_ranks) == set(page.order_ids)
        assert page.source_ranks["P0"] == 0

    def test_ties_follow_store_order(
        self, pipeline: OrderQueryPipeline, order_factory
    ) -> None:
        orders = [order_factory(f"T{i}", quantity=2) for i in range(4)]
        query = QueryState(hospital_id="H1", sort_column="quantity", sort_direction="desc")

        assert pipeline.execute(orders, query).order_ids == ["T0", "T1", "T2", "T3"]

    def test_ranks_not_in_response(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order], base_query: QueryState
    ) -> None:
        body = pipeline.execute(mixed_orders, base_query).to_response()

        assert set(body) == {"data", "pagination"}


class TestFiltering:
    """Conjunctive filter dimensions."""

    def test_no_criteria_returns_all_scoped(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order], base_query: QueryState
    ) -> None:
        """
        SCENARIO: Empty sets and empty search
        EXPECTED: Nothing filtered ("empty" means no constraint)
        """
        page = pipeline.execute(mixed_orders, base_query)

        assert sorted(page.order_ids) == ["O1", "O2", "O3", "O4", "O5"]

    def test_date_range_is_inclusive(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: Range 2024-01-02 .. 2024-01-04
        EXPECTED: Orders placed on both boundary days included
        """
        query = QueryState(
            hospital_id="H1",
            start_date=date(2024, 1, 2),
            end_date=date(2024, 1, 4),
        )

        page = pipeline.execute(mixed_orders, query)

        assert sorted(page.order_ids) == ["O1", "O4", "O5"]

    def test_single_date_bound(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: Only startDate set
        EXPECTED: No upper bound applied
        """
        query = QueryState(hospital_id="H1", start_date=date(2024, 1, 4))

        page = pipeline.execute(mixed_orders, query)

        assert sorted(page.order_ids) == ["O3", "O5"]

    def test_filters_are_conjunctive(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: Blood type A+ AND active statuses
        EXPECTED: Only orders matching both
        """
        query = QueryState(
            hospital_id="H1",
            blood_types=frozenset({BloodType.A_POS}),
            statuses=frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED}),
        )

        page = pipeline.execute(mixed_orders, query)

        assert page.order_ids == ["O1"]

    def test_blood_bank_search_case_insensitive_substring(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: Search "RED CROSS"
        EXPECTED: Both Red Cross banks of H1 match, regardless of case
        """
        query = QueryState(hospital_id="H1", blood_bank_search="RED CROSS")

        page = pipeline.execute(mixed_orders, query)

        assert sorted(page.order_ids) == ["O1", "O5"]

    def test_blood_bank_search_with_punctuation(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: Search text containing an apostrophe and ampersand
        EXPECTED: Matches literally
        """
        query = QueryState(hospital_id="H1", blood_bank_search="mary's & co")

        page = pipeline.execute(mixed_orders, query)

        assert page.order_ids == ["O2"]


class TestOrdering:
    """Active-first with the requested secondary sort."""

    def test_active_first_overrides_date_order(self, pipeline, order_factory) -> None:
        """
        SCENARIO: O1 pending placed 2024-01-02, O2 delivered placed 2024-01-01,
                  sorted placedAt ascending
        EXPECTED: [O1, O2], the active order leads despite the later date
        """
        orders = [
            order_factory("O2", OrderStatus.DELIVERED, utc(2024, 1, 1)),
            order_factory("O1", OrderStatus.PENDING, utc(2024, 1, 2)),
        ]
        query = QueryState(hospital_id="H1", sort_direction=SortDirection.ASC)

        page = pipeline.execute(orders, query)

        assert page.order_ids == ["O1", "O2"]

    def test_default_sort_is_placed_at_desc(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order], base_query: QueryState
    ) -> None:
        """
        SCENARIO: Default query
        EXPECTED: Active by newest first, then completed by newest first
        """
        page = pipeline.execute(mixed_orders, base_query)

        assert page.order_ids == ["O3", "O5", "O1", "O4", "O2"]

    def test_active_first_descending(self, pipeline, order_factory) -> None:
        """
        SCENARIO: Pending O1 (2024-01-02) and delivered O2 (2024-01-01), placedAt desc
        EXPECTED: [O1, O2]
        """
        orders = [
            order_factory("O1", OrderStatus.PENDING, utc(2024, 1, 2)),
            order_factory("O2", OrderStatus.DELIVERED, utc(2024, 1, 1)),
        ]

        page = pipeline.execute(orders, QueryState(hospital_id="H1"))

        assert page.order_ids == ["O1", "O2"]

    def test_direction_does_not_flip_partition(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: quantity ascending vs descending
        EXPECTED: Active orders first in both; only inner order flips
        """
        asc = pipeline.execute(
            mixed_orders,
            QueryState(hospital_id="H1", sort_column="quantity", sort_direction=SortDirection.ASC),
        )
        desc = pipeline.execute(
            mixed_orders,
            QueryState(hospital_id="H1", sort_column="quantity", sort_direction=SortDirection.DESC),
        )

        assert asc.order_ids == ["O5", "O1", "O3", "O2", "O4"]
        assert desc.order_ids == ["O3", "O1", "O5", "O4", "O2"]

    def test_ties_keep_input_order(self, pipeline, order_factory) -> None:
        """
        SCENARIO: Three active orders with equal quantity
        EXPECTED: Input order preserved in both directions
        """
        orders = [order_factory(f"T{i}", quantity=5) for i in (3, 1, 2)]

        for direction in SortDirection:
            query = QueryState(hospital_id="H1", sort_column="quantity", sort_direction=direction)
            assert pipeline.execute(orders, query).order_ids == ["T3", "T1", "T2"]


class TestPagination:
    """Slice law and metadata."""

    def test_slices_requested_page(self, pipeline, order_factory) -> None:
        """
        SCENARIO: 60 orders, page 3 of size 25
        EXPECTED: Last 10 orders, totals reflect all 60
        """
        orders = [
            order_factory(f"P{i:02d}", placed_at=utc(2024, 1, 1, 0, i)) for i in range(60)
        ]
        query = QueryState(hospital_id="H1", page=3, page_size=25)

        page = pipeline.execute(orders, query)
        full = pipeline.select(orders, query)

        assert page.orders == full[50:60]
        assert page.pagination.total_count == 60
        assert page.pagination.total_pages == 3
        assert page.pagination.current_page == 3

    def test_page_beyond_range_is_empty(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order]
    ) -> None:
        """
        SCENARIO: Page 4 when everything fits on page 1
        EXPECTED: No orders, totals still accurate, no error
        """
        page = pipeline.execute(mixed_orders, QueryState(hospital_id="H1", page=4))

        assert page.orders == []
        assert page.pagination.total_count == 5
        assert page.pagination.total_pages == 1

    def test_zero_results(self, pipeline: OrderQueryPipeline) -> None:
        """
        SCENARIO: pageSize 25 and no orders at all
        EXPECTED: totalPages 0 and empty data
        """
        page = pipeline.execute([], QueryState(hospital_id="H1", page_size=25))

        assert page.to_response() == {
            "data": [],
            "pagination": {
                "currentPage": 1,
                "pageSize": 25,
                "totalCount": 0,
                "totalPages": 0,
            },
        }


class TestValidationAndHooks:
    """Validation runs first; observability hooks are optional."""

    @pytest.mark.parametrize(
        "query, field",
        [
            (QueryState(hospital_id="H1", page_size=30), "pageSize"),
            (QueryState(hospital_id="H1", page=0), "page"),
            (
                QueryState(
                    hospital_id="H1",
                    start_date=date(2024, 2, 1),
                    end_date=date(2024, 1, 1),
                ),
                "startDate",
            ),
            (QueryState(hospital_id="H1", sort_column="colour"), "sortBy"),
        ],
    )
    def test_invalid_query_rejected(
        self, pipeline: OrderQueryPipeline, mixed_orders: List[Order], query, field
    ) -> None:
        """
        SCENARIO: Invalid page size, page, date range or sort column
        EXPECTED: ValidationError naming the field
        """
        with pytest.raises(ValidationError) as exc_info:
            pipeline.execute(mixed_orders, query)

        assert exc_info.value.field == field

    def test_audit_and_metrics_recorded(self, mixed_orders: List[Order]) -> None:
        """
        SCENARIO: Pipeline with an ObservabilityManager attached
        EXPECTED: One stage_end per stage and filtered-order events
        """
        # Arrange
        obs = ObservabilityManager(use_json=False)
        pipeline = OrderQueryPipeline(audit_logger=obs, metrics_collector=obs)

        # Act
        pipeline.execute(mixed_orders, QueryState(hospital_id="H1"))

        # Assert
        stage_names = [e["stage_name"] for e in obs.get_events("stage_end")]
        assert stage_names == [
            "tenant_scope",
            "date_range",
            "blood_type",
            "status",
            "blood_bank_search",
        ]
        filtered = {e["order_id"] for e in obs.get_events("order_filtered")}
        assert filtered == {"X1", "X2"}
        assert "query_total_seconds" in obs.get_metrics()

    def test_execute_query_helper(self, mixed_orders: List[Order]) -> None:
        """
        SCENARIO: One-shot helper
        EXPECTED: Same result as a default pipeline
        """
        query = QueryState(hospital_id="H1")

        assert execute_query(mixed_orders, query) == OrderQueryPipeline().execute(
            mixed_orders, query
        )
