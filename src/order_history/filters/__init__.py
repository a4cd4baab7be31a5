"""
Filters Package - Order Filter Stages.

Every stage exposes ``name`` and ``apply(orders, query) -> FilterResult``.

Stages:
    - TenantScopeFilter: Restrict to the query's hospital (always first)
    - DateRangeFilter: Inclusive placement-date bounds
    - BloodTypeFilter: Selected blood types
    - StatusFilter: Selected statuses
    - BloodBankSearchFilter: Case-insensitive bank name search

Design Principles:
    - Stateless: all criteria come from the QueryState
    - Conjunctive: the pipeline ANDs the stages
    - Unset criterion = no constraint
"""

from order_history.filters.criteria import (
    BloodBankSearchFilter,
    BloodTypeFilter,
    DateRangeFilter,
    StatusFilter,
    default_criteria_filters,
    matches_query,
)
from order_history.filters.scope import TenantScopeFilter

__all__ = [
    "TenantScopeFilter",
    "DateRangeFilter",
    "BloodTypeFilter",
    "StatusFilter",
    "BloodBankSearchFilter",
    "default_criteria_filters",
    "matches_query",
]
