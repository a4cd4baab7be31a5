"""
Pytest Configuration and Shared Fixtures.

This module contains fixtures available to all tests.
"""

from __future__ import annotations

import random
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from order_history.adapters.in_memory_store import InMemoryOrderStore
from order_history.adapters.mock_store import MockOrderStore
from order_history.codec.state_codec import StateCodec
from order_history.config.models import EngineConfig
from order_history.domain.entities import (
    BloodBankRef,
    BloodType,
    HospitalRef,
    Order,
    OrderStatus,
    Rider,
)
from order_history.domain.value_objects import QueryState
from order_history.live.broadcaster import OrderUpdateBroadcaster
from order_history.live.reconciler import OrderReconciler
from order_history.pipeline.query_pipeline import OrderQueryPipeline
from tests.fixtures import utc

OrderFactory = Callable[..., Order]


@pytest.fixture(autouse=True)
def set_random_seed():
    """Ensure all tests are deterministic."""
    random.seed(42)
    yield


@pytest.fixture
def sample_config_path() -> Path:
    """Path to sample configuration file."""
    return Path(__file__).parent / "fixtures" / "sample_config.yaml"


@pytest.fixture
def default_config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def order_factory() -> OrderFactory:
    """Build orders with sensible defaults; override any field by keyword."""

    def make(
        order_id: str,
        status: OrderStatus = OrderStatus.PENDING,
        placed_at: Optional[datetime] = None,
        hospital_id: str = "H1",
        blood_type: BloodType = BloodType.O_POS,
        quantity: int = 2,
        bank: str = "Red Cross Central",
        rider: Optional[str] = None,
        delivered_at: Optional[datetime] = None,
    ) -> Order:
        placed_at = placed_at or utc(2024, 1, 1, 9)
        return Order(
            id=order_id,
            blood_type=blood_type,
            quantity=quantity,
            blood_bank=BloodBankRef(id=f"BB-{bank[:3]}", name=bank),
            hospital=HospitalRef(id=hospital_id, name=f"Hospital {hospital_id}"),
            status=status,
            rider=Rider(id=f"R-{rider}", name=rider) if rider else None,
            placed_at=placed_at,
            delivered_at=delivered_at,
            created_at=placed_at,
            updated_at=placed_at,
        )

    return make


@pytest.fixture
def mixed_orders(order_factory: OrderFactory) -> List[Order]:
    """Orders for two hospitals with a mix of statuses, banks and dates."""
    return [
        order_factory("O1", OrderStatus.PENDING, utc(2024, 1, 2), quantity=4,
                      blood_type=BloodType.A_POS, bank="Red Cross Central"),
        order_factory("O2", OrderStatus.DELIVERED, utc(2024, 1, 1), quantity=1,
                      bank="St. Mary's & Co", rider="Amina",
                      delivered_at=utc(2024, 1, 1, 15)),
        order_factory("O3", OrderStatus.IN_TRANSIT, utc(2024, 1, 5), quantity=8,
                      blood_type=BloodType.AB_NEG, bank="LifeStream Regional",
                      rider="Diego"),
        order_factory("O4", OrderStatus.CANCELLED, utc(2024, 1, 3), quantity=2,
                      blood_type=BloodType.A_POS, bank="Hemo Partners"),
        order_factory("O5", OrderStatus.CONFIRMED, utc(2024, 1, 4), quantity=3,
                      bank="red cross east"),
        order_factory("X1", OrderStatus.PENDING, utc(2024, 1, 3),
                      hospital_id="H2", bank="Red Cross Central"),
        order_factory("X2", OrderStatus.DELIVERED, utc(2024, 1, 2),
                      hospital_id="H2", delivered_at=utc(2024, 1, 2, 12)),
    ]


@pytest.fixture
def pipeline() -> OrderQueryPipeline:
    return OrderQueryPipeline()


@pytest.fixture
def codec() -> StateCodec:
    return StateCodec()


@pytest.fixture
def reconciler() -> OrderReconciler:
    return OrderReconciler()


@pytest.fixture
def broadcaster() -> OrderUpdateBroadcaster:
    return OrderUpdateBroadcaster()


@pytest.fixture
def store(mixed_orders: List[Order], broadcaster: OrderUpdateBroadcaster) -> InMemoryOrderStore:
    return InMemoryOrderStore(
        mixed_orders,
        broadcaster=broadcaster,
        clock=lambda: utc(2024, 2, 1, 12),
    )


@pytest.fixture
def mock_store() -> MockOrderStore:
    return MockOrderStore(seed=42, orders_per_hospital=80)


@pytest.fixture
def base_query() -> QueryState:
    return QueryState(hospital_id="H1")
