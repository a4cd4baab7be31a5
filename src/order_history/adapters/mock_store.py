"""
Mock Order Store.

An in-memory store pre-filled with deterministic fake orders for
development, demos and tests.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

from order_history.adapters.in_memory_store import MILESTONES, InMemoryOrderStore
from order_history.domain.entities import (
    BloodBankRef,
    BloodType,
    HospitalRef,
    Order,
    OrderStatus,
    Rider,
)
from order_history.live.broadcaster import OrderUpdateBroadcaster


class MockOrderStore(InMemoryOrderStore):
    """Order store filled with seeded fake data."""

    MOCK_HOSPITALS = [
        ("H-001", "City General Hospital", "Downtown"),
        ("H-002", "St. Luke's Medical Center", "Northside"),
        ("H-003", "Riverside Children's Hospital", "Riverside"),
    ]

    MOCK_BLOOD_BANKS = [
        ("BB-01", "Red Cross Central", "Downtown"),
        ("BB-02", "St. Mary's & Co Blood Services", "Eastside"),
        ("BB-03", "LifeStream Regional", "Westside"),
        ("BB-04", "Hemo Partners", "Airport"),
        ("BB-05", "Banco de Sangre São Paulo", "Southside"),
    ]

    MOCK_RIDERS = [
        ("R-1", "Amina Yusuf", "+1-555-0101"),
        ("R-2", "Diego Santos", "+1-555-0102"),
        ("R-3", "Li Wei", "+1-555-0103"),
    ]

    # Status mix: roughly half still active
    STATUS_WEIGHTS = [
        (OrderStatus.PENDING, 3),
        (OrderStatus.CONFIRMED, 2),
        (OrderStatus.IN_TRANSIT, 2),
        (OrderStatus.DELIVERED, 5),
        (OrderStatus.CANCELLED, 1),
    ]

    def __init__(
        self,
        seed: int = 42,
        orders_per_hospital: int = 60,
        start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc),
        days: int = 90,
        broadcaster: Optional[OrderUpdateBroadcaster] = None,
    ) -> None:
        """
        Initialize mock store with random seed.

        Args:
            seed: Random seed for reproducibility
            orders_per_hospital: Orders generated for each mock hospital
            start: Earliest placement time
            days: Placement times spread over this many days
            broadcaster: Receives update events after mutations
        """
        self._seed = seed
        self._rng = random.Random(seed)
        super().__init__(
            orders=self._generate_orders(orders_per_hospital, start, days),
            broadcaster=broadcaster,
        )

    @property
    def hospital_ids(self) -> List[str]:
        return [h[0] for h in self.MOCK_HOSPITALS]

    def _generate_orders(
        self, per_hospital: int, start: datetime, days: int
    ) -> Iterable[Order]:
        statuses = [s for s, _ in self.STATUS_WEIGHTS]
        weights = [w for _, w in self.STATUS_WEIGHTS]
        blood_types = list(BloodType)
        sequence = 0

        for hospital_id, name, location in self.MOCK_HOSPITALS:
            hospital = HospitalRef(id=hospital_id, name=name, location=location)
            for _ in range(per_hospital):
                sequence += 1
                placed_at = start + timedelta(
                    minutes=self._rng.randrange(days * 24 * 60),
                    milliseconds=self._rng.randrange(1000),
                )
                status = self._rng.choices(statuses, weights)[0]
                yield self._build_order(
                    f"ORD-{sequence:05d}",
                    hospital,
                    self._rng.choice(blood_types),
                    status,
                    placed_at,
                )

    def _build_order(
        self,
        order_id: str,
        hospital: HospitalRef,
        blood_type: BloodType,
        status: OrderStatus,
        placed_at: datetime,
    ) -> Order:
        bank_id, bank_name, bank_location = self._rng.choice(self.MOCK_BLOOD_BANKS)
        rider = None
        if status in (OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED) or (
            status is OrderStatus.CONFIRMED and self._rng.random() < 0.5
        ):
            rider_id, rider_name, phone = self._rng.choice(self.MOCK_RIDERS)
            rider = Rider(id=rider_id, name=rider_name, phone=phone)

        reached = self._reached_milestones(status)
        stamps = {}
        moment = placed_at
        for milestone_status in reached:
            moment = moment + timedelta(minutes=self._rng.randrange(5, 240))
            stamps[MILESTONES[milestone_status]] = moment

        return Order(
            id=order_id,
            blood_type=blood_type,
            quantity=self._rng.randint(1, 12),
            blood_bank=BloodBankRef(id=bank_id, name=bank_name, location=bank_location),
            hospital=hospital,
            status=status,
            rider=rider,
            placed_at=placed_at,
            created_at=placed_at,
            updated_at=moment,
            **stamps,
        )

    @staticmethod
    def _reached_milestones(status: OrderStatus) -> Sequence[OrderStatus]:
        if status is OrderStatus.PENDING:
            return ()
        if status is OrderStatus.CANCELLED:
            return (OrderStatus.CANCELLED,)
        if status is OrderStatus.DELIVERED:
            return (OrderStatus.CONFIRMED, OrderStatus.DELIVERED)
        return (OrderStatus.CONFIRMED,)
