from decimal import Decimal
from typing import Any, Dict, List

from arena.models.resources import RateCard, Resource, ResourceMode
from arena.repository.record_store import RecordStore
from arena.utils.constants import RATE_CARDS_TABLE, RESOURCES_TABLE


class ResourceRepository:
    def __init__(self, store: RecordStore):
        self.store = store

    @staticmethod
    def resource_to_record(resource: Resource) -> Dict[str, Any]:
        return {
            "id": resource.resource_id,
            "tenant_id": resource.tenant_id,
            "name": resource.name,
            "type": resource.resource_type,
            "mode": resource.mode.value,
            "capacity": resource.capacity,
            "hourly_rate": Decimal(str(resource.hourly_rate)),
            "image": resource.image,
        }

    @staticmethod
    def resource_from_record(item: Dict[str, Any]) -> Resource:
        return Resource(
            resource_id=item["id"],
            tenant_id=item["tenant_id"],
            name=item["name"],
            resource_type=item["type"],
            mode=ResourceMode(item["mode"]),
            capacity=int(item["capacity"]),
            hourly_rate=Decimal(str(item["hourly_rate"])),
            image=item.get("image", ""),
        )

    @staticmethod
    def rate_card_to_record(card: RateCard) -> Dict[str, Any]:
        return {
            "id": card.rate_card_id,
            "name": card.name,
            "resource_type": card.resource_type,
            "base_rate": Decimal(str(card.base_rate)),
            "peak_rate": Decimal(str(card.peak_rate)),
            "peak_hours": sorted(card.peak_hours),
            "weekend_rate_modifier": Decimal(str(card.weekend_multiplier)),
        }

    @staticmethod
    def rate_card_from_record(item: Dict[str, Any]) -> RateCard:
        return RateCard(
            rate_card_id=item["id"],
            name=item["name"],
            resource_type=item["resource_type"],
            base_rate=Decimal(str(item["base_rate"])),
            peak_rate=Decimal(str(item["peak_rate"])),
            peak_hours=frozenset(int(h) for h in item.get("peak_hours", [])),
            weekend_multiplier=Decimal(str(item.get("weekend_rate_modifier", 1))),
        )

    def add_resource(self, resource: Resource):
        self.store.insert(RESOURCES_TABLE, self.resource_to_record(resource))

    def update_resource(self, resource: Resource):
        record = self.resource_to_record(resource)
        record.pop("id")
        self.store.update(RESOURCES_TABLE, resource.resource_id, record)

    def list_resources(self) -> List[Resource]:
        return [self.resource_from_record(item) for item in self.store.list(RESOURCES_TABLE)]

    def add_rate_card(self, card: RateCard):
        self.store.insert(RATE_CARDS_TABLE, self.rate_card_to_record(card))

    def update_rate_card(self, card: RateCard):
        record = self.rate_card_to_record(card)
        record.pop("id")
        self.store.update(RATE_CARDS_TABLE, card.rate_card_id, record)

    def list_rate_cards(self) -> List[RateCard]:
        return [self.rate_card_from_record(item) for item in self.store.list(RATE_CARDS_TABLE)]
