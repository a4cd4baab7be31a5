"""
Validation Package - Query Validation.

    - QueryValidator: Reject bad page sizes, pages, date ranges and sort
      columns before the pipeline runs
    - ValidationError: Names the offending parameter

Design Principles:
    - Fail fast on invalid input
    - Clear, actionable error messages
"""

from order_history.validation.query_validator import (
    QueryValidator,
    ValidationError,
)

__all__ = [
    "QueryValidator",
    "ValidationError",
]
