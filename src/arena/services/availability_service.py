from datetime import date
from typing import Dict

from arena.models.resources import Resource
from arena.services.venue_store import VenueStore
from arena.utils.constants import HOURS_PER_DAY


class AvailabilityService:
    def __init__(self, store: VenueStore):
        self.store = store

    def booked_quantity(self, resource_id: str, booking_date: date, hour: int) -> int:
        return sum(
            b.quantity or 1
            for b in self.store.active_bookings_at(resource_id, booking_date, hour)
        )

    def remaining_capacity(self, resource: Resource, booking_date: date, hour: int) -> int:
        booked = self.booked_quantity(resource.resource_id, booking_date, hour)
        return max(resource.capacity - booked, 0)

    def is_bookable(
        self, resource: Resource, booking_date: date, hour: int, quantity: int = 1
    ) -> bool:
        return self.remaining_capacity(resource, booking_date, hour) >= quantity

    def day_availability(self, resource: Resource, booking_date: date) -> Dict[int, int]:
        return {
            hour: self.remaining_capacity(resource, booking_date, hour)
            for hour in range(HOURS_PER_DAY)
        }
