"""
Core Domain Entities.

This module defines the fundamental entities of the order history domain:
the blood order record and the references it carries.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp to timezone-aware UTC (naive values are UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class BloodType(str, Enum):
    """ABO/Rh blood group of an order."""

    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"


class OrderStatus(str, Enum):
    """Lifecycle status of an order."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Active orders still need attention: pending, confirmed, in transit."""
        return self in ACTIVE_STATUSES

    @property
    def is_completed(self) -> bool:
        return self in COMPLETED_STATUSES


ACTIVE_STATUSES = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.IN_TRANSIT}
)
COMPLETED_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


class _WireModel(BaseModel):
    """Base for records exchanged with camelCase JSON clients."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class BloodBankRef(_WireModel):
    """Blood bank that fulfils an order."""

    id: str
    name: str = Field(..., description="Display name, used for search and sort")
    location: Optional[str] = None

    model_config = {"frozen": True}


class HospitalRef(_WireModel):
    """Hospital that placed an order. ``id`` is the tenant key."""

    id: str
    name: str
    location: Optional[str] = None

    model_config = {"frozen": True}


class Rider(_WireModel):
    """Courier assigned to deliver an order."""

    id: str
    name: str
    phone: Optional[str] = None

    model_config = {"frozen": True}


class Order(_WireModel):
    """A blood order placed by a hospital with a blood bank."""

    id: str = Field(..., description="Unique order identifier")
    blood_type: BloodType
    quantity: int = Field(..., gt=0, description="Units ordered")
    blood_bank: BloodBankRef
    hospital: HospitalRef
    status: OrderStatus = OrderStatus.PENDING
    rider: Optional[Rider] = Field(default=None, description="None = unassigned")
    placed_at: datetime
    delivered_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}

    @field_validator(
        "placed_at",
        "delivered_at",
        "confirmed_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def hospital_id(self) -> str:
        return self.hospital.id
