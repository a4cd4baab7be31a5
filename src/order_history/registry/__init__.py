"""
Registry Package - Pluggable Sort Columns.

    - SortColumnRegistry: column identifier -> typed sort key
    - default_registry: shared registry with the built-in columns
"""

from order_history.registry.sort_registry import (
    SortColumn,
    SortColumnRegistry,
    SortKind,
    create_default_registry,
    default_registry,
    timestamp_key,
)

__all__ = [
    "SortColumn",
    "SortColumnRegistry",
    "SortKind",
    "create_default_registry",
    "default_registry",
    "timestamp_key",
]
