from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from arena.models.resources import ResourceMode


class ResourceRequest(BaseModel):
    name: str = Field(min_length=1)
    resource_type: str = Field(min_length=1)
    mode: ResourceMode = ResourceMode.EXCLUSIVE
    capacity: int = Field(default=1, ge=1)
    hourly_rate: Decimal = Field(ge=0)
    image: str = ""

    @model_validator(mode="after")
    def validate_exclusive_capacity(self):
        if self.mode == ResourceMode.EXCLUSIVE and self.capacity != 1:
            raise ValueError("exclusive resources must have capacity 1")
        return self


class RateCardRequest(BaseModel):
    name: str = Field(min_length=1)
    resource_type: str = Field(min_length=1)
    base_rate: Decimal = Field(ge=0)
    peak_rate: Decimal = Field(ge=0)
    peak_hours: List[int] = Field(default_factory=list)
    weekend_multiplier: Decimal = Field(default=Decimal("1"), gt=0)

    @field_validator("peak_hours")
    @classmethod
    def validate_peak_hours(cls, v: List[int]):
        if any(hour < 0 or hour > 23 for hour in v):
            raise ValueError("peak hours must be between 0 and 23")
        return sorted(set(v))


class PolicyUpdate(BaseModel):
    cancel_window_hrs: Optional[int] = Field(default=None, ge=0)
    refund_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    gps_radius_meters: Optional[int] = Field(default=None, gt=0)
    check_in_window_mins: Optional[int] = Field(default=None, ge=0)
    no_show_penalty: Optional[Decimal] = Field(default=None, ge=0)
