"""
Sort Column Registry - Pluggable Secondary Sort Keys.

Maps a column identifier (the ``sortBy`` URL value) to a typed key
function. The ordering function looks columns up here, so a new sortable
column is a registration rather than an edit to the comparator.

Usage:
    registry = SortColumnRegistry()
    registry.register("quantity", lambda o: o.quantity, SortKind.NUMERIC)

    column = registry.get("quantity")
    sorted(orders, key=column.key)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from order_history.domain.entities import Order

logger = logging.getLogger(__name__)

SortKey = Callable[[Order], Any]

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


class SortKind(str, Enum):
    """Semantic type a column is compared by."""

    NUMERIC = "numeric"
    LEXICAL = "lexical"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class SortColumn:
    """A registered sortable column."""

    name: str
    key: SortKey
    kind: SortKind
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "description": self.description,
        }


def timestamp_key(getter: Callable[[Order], Optional[datetime]]) -> SortKey:
    """
    Wrap a timestamp getter so that a missing value sorts lowest.

    Returned keys are ``(present, value)`` pairs, which keeps absent
    timestamps comparable with present ones.
    """

    def key(order: Order) -> Any:
        value = getter(order)
        if value is None:
            return (False, _EARLIEST)
        return (True, value)

    return key


class SortColumnRegistry:
    """
    Thread-safe registry of sortable columns.

    Supports:
        - Registration of new columns with a typed key
        - Lookup by the identifier used in URLs
        - Listing for documentation and validation messages
    """

    def __init__(self) -> None:
        self._columns: Dict[str, SortColumn] = {}
        self._lock = RLock()

    def register(
        self,
        name: str,
        key: SortKey,
        kind: SortKind,
        description: str = "",
    ) -> None:
        """
        Register a sortable column.

        Args:
            name: Column identifier as used in ``sortBy``
            key: Function extracting the comparable value from an order
            kind: Semantic type of the value
            description: Optional description

        Raises:
            ValueError: If a column with this name is already registered
        """
        with self._lock:
            if name in self._columns:
                raise ValueError(
                    f"Sort column '{name}' is already registered. "
                    f"Use unregister() first."
                )
            self._columns[name] = SortColumn(
                name=name, key=key, kind=kind, description=description
            )
            logger.debug(f"Registered sort column: {name} ({kind.value})")

    def unregister(self, name: str) -> bool:
        """Remove a column. Returns False if it was not registered."""
        with self._lock:
            if name not in self._columns:
                return False
            del self._columns[name]
            logger.debug(f"Unregistered sort column: {name}")
            return True

    def get(self, name: str) -> SortColumn:
        """
        Look up a column.

        Raises:
            KeyError: If the column is not registered
        """
        with self._lock:
            try:
                return self._columns[name]
            except KeyError:
                raise KeyError(f"Unknown sort column: {name}") from None

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._columns

    def names(self) -> List[str]:
        with self._lock:
            return list(self._columns)

    def list_all(self) -> Dict[str, SortColumn]:
        with self._lock:
            return dict(self._columns)


def _rider_name(order: Order) -> str:
    return order.rider.name if order.rider else ""


def register_builtin_columns(registry: SortColumnRegistry) -> SortColumnRegistry:
    """Register the columns the order history table can sort by."""
    registry.register("id", lambda o: o.id, SortKind.LEXICAL, "Order id")
    registry.register(
        "bloodType", lambda o: o.blood_type.value, SortKind.LEXICAL, "Blood group"
    )
    registry.register("quantity", lambda o: o.quantity, SortKind.NUMERIC, "Units ordered")
    registry.register(
        "bloodBank", lambda o: o.blood_bank.name, SortKind.LEXICAL, "Blood bank name"
    )
    registry.register("status", lambda o: o.status.value, SortKind.LEXICAL, "Status")
    registry.register("rider", _rider_name, SortKind.LEXICAL, "Rider name, empty if unassigned")
    registry.register(
        "placedAt",
        timestamp_key(lambda o: o.placed_at),
        SortKind.TIMESTAMP,
        "When the order was placed",
    )
    registry.register(
        "deliveredAt",
        timestamp_key(lambda o: o.delivered_at),
        SortKind.TIMESTAMP,
        "When the order was delivered, missing sorts lowest",
    )
    return registry


def create_default_registry() -> SortColumnRegistry:
    """Create a registry holding the built-in columns."""
    return register_builtin_columns(SortColumnRegistry())


# Shared registry used when none is injected
default_registry = create_default_registry()
