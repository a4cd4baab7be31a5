"""
Export Package - CSV Projection.

    - to_rows / write_csv / render_csv: Orders to CSV rows
    - export_filename: ``orders_export_<YYYY-MM-DD>.csv``
    - CsvExporter: filename prefix taken from the export config
"""

from order_history.export.csv_projection import (
    CSV_HEADERS,
    CsvExporter,
    export_filename,
    format_timestamp,
    render_csv,
    to_rows,
    write_csv,
)

__all__ = [
    "CSV_HEADERS",
    "CsvExporter",
    "export_filename",
    "format_timestamp",
    "render_csv",
    "to_rows",
    "write_csv",
]
