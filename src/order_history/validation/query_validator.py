"""
Query Validator - Validate QueryState Before Filtering.

Validates queries before any order is touched:
    - pageSize is one of 25, 50, 100
    - page is at least 1
    - startDate is not after endDate
    - sortBy names a registered sort column
    - hospitalId is present

Design Notes:
    - Fail-fast principle
    - Error messages name the offending URL parameter
    - Values are rejected, never clamped
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from order_history.domain.value_objects import PAGE_SIZES, QueryState
from order_history.registry.sort_registry import SortColumnRegistry, default_registry

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when a query is rejected before execution."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        fields: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.fields = fields or ([field] if field else [])
        self.message = message


class QueryValidator:
    """
    Validates query state before the pipeline runs.

    Validates:
        - Tenant is set
        - Pagination values are allowed
        - Date range is ordered
        - Sort column is known
    """

    def __init__(self, registry: Optional[SortColumnRegistry] = None) -> None:
        """
        Initialize query validator.

        Args:
            registry: Sort columns considered valid. Defaults to the
                      shared built-in registry.
        """
        self.registry = registry or default_registry

    def validate(self, query: QueryState) -> None:
        """
        Validate a query.

        Args:
            query: The query state to validate

        Raises:
            ValidationError: If any check fails. ``field`` is the first
                offending parameter, ``fields`` lists all of them.
        """
        errors: List[Tuple[str, str]] = []

        if not query.hospital_id:
            errors.append(("hospitalId", "hospitalId is required"))

        errors.extend(self._validate_pagination(query.page, query.page_size))

        range_error = self._validate_date_range(query)
        if range_error:
            errors.append(range_error)

        sort_error = self._validate_sort_column(query.sort_column)
        if sort_error:
            errors.append(sort_error)

        if errors:
            error_message = "; ".join(message for _, message in errors)
            logger.warning(f"Query validation failed: {error_message}")
            raise ValidationError(
                error_message,
                field=errors[0][0],
                fields=[field for field, _ in errors],
            )

        logger.debug(
            f"Query validated: hospital={query.hospital_id}, "
            f"page={query.page}, page_size={query.page_size}"
        )

    def _validate_pagination(self, page: int, page_size: int) -> List[Tuple[str, str]]:
        errors: List[Tuple[str, str]] = []

        if page_size not in PAGE_SIZES:
            allowed = ", ".join(str(s) for s in PAGE_SIZES)
            errors.append(
                ("pageSize", f"pageSize {page_size} is not allowed. Allowed: {allowed}")
            )

        if page < 1:
            errors.append(("page", f"page must be >= 1, got {page}"))

        return errors

    def _validate_date_range(self, query: QueryState) -> Optional[Tuple[str, str]]:
        start, end = query.date_range
        if start is not None and end is not None and start > end:
            return (
                "startDate",
                f"startDate {start.isoformat()} must be before or equal to "
                f"endDate {end.isoformat()}",
            )
        return None

    def _validate_sort_column(self, column: str) -> Optional[Tuple[str, str]]:
        if not self.registry.has(column):
            supported = ", ".join(self.registry.names())
            return ("sortBy", f"sortBy {column!r} is not sortable. Supported: {supported}")
        return None

    def validate_page_size(self, page_size: int) -> None:
        """
        Validate just the page size (utility method).

        Raises:
            ValidationError: If the page size is not allowed
        """
        errors = self._validate_pagination(1, page_size)
        if errors:
            raise ValidationError(errors[0][1], field="pageSize")
