from enum import Enum
from decimal import Decimal
from typing import FrozenSet
from dataclasses import dataclass, field


class ResourceMode(str, Enum):
    EXCLUSIVE = "EXCLUSIVE"
    SHARED = "SHARED"
    QUANTITY = "QUANTITY"


@dataclass
class Resource:
    resource_id: str
    tenant_id: str
    name: str
    resource_type: str
    mode: ResourceMode = ResourceMode.EXCLUSIVE
    capacity: int = 1
    hourly_rate: Decimal = Decimal("0")
    image: str = ""

    def validate(self):
        if self.capacity < 1:
            raise ValueError("capacity must be at least 1")
        if self.mode == ResourceMode.EXCLUSIVE and self.capacity != 1:
            raise ValueError("exclusive resources must have capacity 1")
        if self.hourly_rate < 0:
            raise ValueError("hourly rate cannot be negative")


@dataclass
class RateCard:
    rate_card_id: str
    name: str
    resource_type: str
    base_rate: Decimal
    peak_rate: Decimal
    peak_hours: FrozenSet[int] = field(default_factory=frozenset)
    weekend_multiplier: Decimal = Decimal("1")

    def __post_init__(self):
        self.peak_hours = frozenset(self.peak_hours)
        if any(hour < 0 or hour > 23 for hour in self.peak_hours):
            raise ValueError("peak hours must be between 0 and 23")
