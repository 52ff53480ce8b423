import logging
from dataclasses import replace
from typing import List
from uuid import uuid4

from arena.models.resources import RateCard, Resource
from arena.models.venue import GeoPoint, Policy
from arena.schemas.admin import PolicyUpdate, RateCardRequest, ResourceRequest
from arena.services.venue_store import VenueStore
from arena.utils.custom_exceptions import RateCardConflict

logger = logging.getLogger(__name__)


class ResourceService:
    def __init__(self, store: VenueStore):
        self.store = store

    def add_resource(self, req: ResourceRequest) -> Resource:
        resource = Resource(
            resource_id=f"res_{uuid4().hex[:12]}",
            tenant_id=self.store.tenant.tenant_id,
            name=req.name,
            resource_type=req.resource_type,
            mode=req.mode,
            capacity=req.capacity,
            hourly_rate=req.hourly_rate,
            image=req.image,
        )
        self.store.put_resource(resource)
        logger.info(f"Added resource {resource.resource_id} ({resource.resource_type})")
        self.store.save_resource(resource, new=True)
        return resource

    def update_resource(self, resource_id: str, req: ResourceRequest) -> Resource:
        # bookings are created under the same lock, so the peak below is final
        with self.store.lock:
            current = self.store.get_resource(resource_id)
            updated = replace(
                current,
                name=req.name,
                resource_type=req.resource_type,
                mode=req.mode,
                capacity=req.capacity,
                hourly_rate=req.hourly_rate,
                image=req.image,
            )
            updated.validate()
            peak = self._peak_booked_quantity(resource_id)
            if updated.capacity < peak:
                raise ValueError(
                    f"capacity {updated.capacity} is below {peak} already booked in one slot"
                )
            self.store.put_resource(updated)
        self.store.save_resource(updated, new=False)
        return updated

    def _peak_booked_quantity(self, resource_id: str) -> int:
        usage = {}
        for booking in self.store.find_bookings(
            lambda b: b.is_active and b.resource_id == resource_id
        ):
            for hour in booking.hours:
                key = (booking.booking_date, hour)
                usage[key] = usage.get(key, 0) + booking.quantity
        return max(usage.values(), default=0)

    def list_resources(self) -> List[Resource]:
        return sorted(self.store.resources.values(), key=lambda r: r.name)

    def add_rate_card(self, req: RateCardRequest) -> RateCard:
        card = self._card_from_request(f"rc_{uuid4().hex[:12]}", req)
        self.store.put_rate_card(card)
        self.store.save_rate_card(card, new=True)
        return card

    def replace_rate_card(self, req: RateCardRequest) -> RateCard:
        existing = self.store.rate_cards.get(req.resource_type)
        if existing is None:
            raise RateCardConflict(f"no rate card prices {req.resource_type}")
        card = self._card_from_request(existing.rate_card_id, req)
        self.store.put_rate_card(card, replace=True)
        self.store.save_rate_card(card, new=False)
        return card

    @staticmethod
    def _card_from_request(rate_card_id: str, req: RateCardRequest) -> RateCard:
        return RateCard(
            rate_card_id=rate_card_id,
            name=req.name,
            resource_type=req.resource_type,
            base_rate=req.base_rate,
            peak_rate=req.peak_rate,
            peak_hours=frozenset(req.peak_hours),
            weekend_multiplier=req.weekend_multiplier,
        )

    def update_policy(self, update: PolicyUpdate) -> Policy:
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        with self.store.lock:
            self.store.policy = replace(self.store.policy, **changes)
        logger.info(f"Updated policy fields {sorted(changes)}")
        self.store.save_policy()
        return self.store.policy

    def update_venue_location(self, location: GeoPoint, address: str = "") -> None:
        with self.store.lock:
            self.store.tenant.location = location
            if address:
                self.store.tenant.address = address
        self.store.save_tenant_location()
