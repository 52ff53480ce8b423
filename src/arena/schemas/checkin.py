from typing import Optional
from pydantic import BaseModel, Field, model_validator

from arena.models.venue import GeoPoint


class CheckInRequest(BaseModel):
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def validate_pair(self):
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be supplied together")
        return self

    def location(self) -> Optional[GeoPoint]:
        if self.lat is None:
            return None
        return GeoPoint(lat=self.lat, lng=self.lng)
