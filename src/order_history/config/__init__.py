"""
Configuration Package - Models and Loaders.

Configuration Structure:
    - EngineConfig: Root configuration object
    - QueryConfig: Default page size and sort
    - LiveConfig: Reconciliation policy
    - ExportConfig: CSV filename prefix
    - ObservabilityConfig: Structured logging settings

Design Principles:
    - Type-safe via Pydantic
    - Validation on load (fail fast)
    - Support for profiles deep-merged over a base file
"""

from order_history.config.loader import ConfigLoader, load_config
from order_history.config.models import (
    EngineConfig,
    ExportConfig,
    LiveConfig,
    ObservabilityConfig,
    QueryConfig,
)

__all__ = [
    "ConfigLoader",
    "load_config",
    "EngineConfig",
    "ExportConfig",
    "LiveConfig",
    "ObservabilityConfig",
    "QueryConfig",
]
