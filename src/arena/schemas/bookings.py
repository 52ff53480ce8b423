from datetime import date
from pydantic import BaseModel, Field, model_validator
from arena.utils.constants import HOURS_PER_DAY


class BookingRequest(BaseModel):
    resource_id: str = Field(min_length=1)
    booking_date: date
    start_hour: int = Field(ge=0, le=HOURS_PER_DAY - 1)
    duration: int = Field(default=1, ge=1)
    quantity: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def validate_day_bounds(self):
        if self.start_hour + self.duration > HOURS_PER_DAY:
            raise ValueError("booking cannot run past midnight")
        return self

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.start_hour + self.duration)
