"""
Adapters Package - Backing Store Implementations.

Stores:
    - InMemoryOrderStore: List-backed store publishing live updates
    - MockOrderStore: Seeded fake data for development/testing

Design Principles:
    - Stores implement the order provider protocol (get_orders)
    - Easily swappable via Dependency Injection
    - No query logic in adapters
"""

from order_history.adapters.in_memory_store import InMemoryOrderStore, OrderNotFoundError
from order_history.adapters.mock_store import MockOrderStore

__all__ = [
    "InMemoryOrderStore",
    "MockOrderStore",
    "OrderNotFoundError",
]
