"""
Configuration Models - Pydantic Models for Type-Safe Config.

All configuration is validated at load time using Pydantic.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from order_history.domain.value_objects import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_COLUMN,
    PAGE_SIZES,
    SortDirection,
)


class QueryConfig(BaseModel):
    """Defaults applied when a query parameter is missing or malformed."""

    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE)
    default_sort_column: str = Field(default=DEFAULT_SORT_COLUMN)
    default_sort_direction: SortDirection = Field(default=SortDirection.DESC)

    @field_validator("default_page_size")
    @classmethod
    def _page_size_allowed(cls, value: int) -> int:
        if value not in PAGE_SIZES:
            raise ValueError(f"default_page_size must be one of {list(PAGE_SIZES)}")
        return value


class LiveConfig(BaseModel):
    """Configuration for live reconciliation."""

    resort_on_reactivation: bool = True
    refetch_on_move: bool = False


class ExportConfig(BaseModel):
    """Configuration for CSV export."""

    filename_prefix: str = Field(default="orders_export", min_length=1)


class ObservabilityConfig(BaseModel):
    """Configuration for structured logging."""

    service_name: str = Field(default="order_history")
    use_json: bool = True
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class EngineConfig(BaseModel):
    """Root configuration object."""

    version: str = "1.0"
    query: QueryConfig = Field(default_factory=QueryConfig)
    live: LiveConfig = Field(default_factory=LiveConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"populate_by_name": True}
