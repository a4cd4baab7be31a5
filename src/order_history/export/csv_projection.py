"""
CSV Projection - Orders to Exportable Rows.

Maps an ordered sequence of orders onto CSV rows. The projection never
filters, sorts or deduplicates: row order is input order. Callers export
either the displayed page or the whole filtered view
(``OrderQueryPipeline.select``).
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, TextIO, Tuple

from order_history.config.models import EngineConfig, ExportConfig
from order_history.domain.entities import Order, ensure_utc

CSV_HEADERS = [
    "Order ID",
    "Blood Type",
    "Quantity",
    "Blood Bank",
    "Status",
    "Rider",
    "Placed At",
    "Delivered At",
]

DEFAULT_FILENAME_PREFIX = "orders_export"


def format_timestamp(value: Optional[datetime]) -> str:
    """ISO-8601 in UTC with milliseconds and a ``Z`` suffix; empty if None."""
    if value is None:
        return ""
    utc = ensure_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def to_row(order: Order) -> List[str]:
    return [
        order.id,
        order.blood_type.value,
        str(order.quantity),
        order.blood_bank.name,
        order.status.value,
        order.rider.name if order.rider else "",
        format_timestamp(order.placed_at),
        format_timestamp(order.delivered_at),
    ]


def to_rows(orders: Iterable[Order]) -> List[List[str]]:
    """Header row followed by one row per order, in input order."""
    return [list(CSV_HEADERS)] + [to_row(order) for order in orders]


def write_csv(orders: Iterable[Order], stream: TextIO) -> int:
    """
    Write the projection to a text stream.

    Returns:
        Number of order rows written (header excluded)
    """
    rows = to_rows(orders)
    csv.writer(stream).writerows(rows)
    return len(rows) - 1


def render_csv(orders: Iterable[Order]) -> str:
    output = io.StringIO()
    write_csv(orders, output)
    return output.getvalue()


def export_filename(
    today: Optional[date] = None,
    prefix: str = DEFAULT_FILENAME_PREFIX,
) -> str:
    """
    Filename for an export, dated at export time.

    Args:
        today: Export date; defaults to the current UTC date
        prefix: Filename prefix
    """
    if today is None:
        today = datetime.now(timezone.utc).date()
    return f"{prefix}_{today.isoformat()}.csv"


class CsvExporter:
    """Renders an export document named with the configured prefix."""

    def __init__(self, config: Optional[ExportConfig] = None) -> None:
        self.config = config or ExportConfig()

    @classmethod
    def from_config(cls, config: EngineConfig) -> "CsvExporter":
        return cls(config.export)

    def filename(self, today: Optional[date] = None) -> str:
        return export_filename(today, prefix=self.config.filename_prefix)

    def export(
        self, orders: Iterable[Order], today: Optional[date] = None
    ) -> Tuple[str, str]:
        """
        Build one export.

        Returns:
            (filename, CSV text) with rows in input order
        """
        return self.filename(today), render_csv(orders)
