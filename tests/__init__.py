"""
Test Suite for the Order History Engine.

Test organization:
    - unit/: Unit tests for individual components
    - integration/: End-to-end tests across store, pipeline and live view
    - performance/: Timing checks on larger order sets
    - fixtures/: Shared test fixtures and sample data

Running Tests:
    pytest tests/                           # All tests
    pytest tests/unit/                      # Unit tests only
    pytest tests/integration/               # Integration tests only
    pytest --cov=src/order_history          # With coverage
"""
