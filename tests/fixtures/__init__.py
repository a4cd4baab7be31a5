"""
Test Fixtures - Shared Test Data and Configurations.

This package contains reusable test fixtures:
    - sample_config.yaml: Sample configuration for testing
    - utc(): Timezone-aware timestamp helper

Usage:
    Import fixtures in test files via pytest fixtures or direct import.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """UTC timestamp shorthand for building orders and events."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
