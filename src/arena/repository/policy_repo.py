from decimal import Decimal
from typing import Any, Dict, Optional

from arena.models.venue import GeoPoint, Policy, Tenant
from arena.repository.record_store import RecordStore
from arena.utils.constants import POLICIES_TABLE, TENANTS_TABLE
from arena.utils.custom_exceptions import NotFoundException


class PolicyRepository:
    def __init__(self, store: RecordStore):
        self.store = store

    @staticmethod
    def policy_to_record(policy: Policy) -> Dict[str, Any]:
        return {
            "id": policy.policy_id,
            "cancel_window_hrs": policy.cancel_window_hrs,
            "refund_percentage": Decimal(str(policy.refund_percentage)),
            "gps_radius_meters": policy.gps_radius_meters,
            "check_in_window_mins": policy.check_in_window_mins,
            "no_show_penalty": Decimal(str(policy.no_show_penalty)),
        }

    @staticmethod
    def policy_from_record(item: Dict[str, Any]) -> Policy:
        return Policy(
            policy_id=item["id"],
            cancel_window_hrs=int(item["cancel_window_hrs"]),
            refund_percentage=Decimal(str(item["refund_percentage"])),
            gps_radius_meters=int(item["gps_radius_meters"]),
            check_in_window_mins=int(item["check_in_window_mins"]),
            no_show_penalty=Decimal(str(item["no_show_penalty"])),
        )

    @staticmethod
    def tenant_from_record(item: Dict[str, Any]) -> Tenant:
        location = item.get("location", {})
        return Tenant(
            tenant_id=item["id"],
            name=item["name"],
            location=GeoPoint(
                lat=float(location.get("lat", 0)), lng=float(location.get("lng", 0))
            ),
            timezone=item.get("timezone", "UTC"),
            currency=item.get("currency", "USD"),
            address=location.get("address", ""),
        )

    def get_policy(self) -> Optional[Policy]:
        items = self.store.list(POLICIES_TABLE)
        return self.policy_from_record(items[0]) if items else None

    def save_policy(self, policy: Policy):
        record = self.policy_to_record(policy)
        patch = {k: v for k, v in record.items() if k != "id"}
        try:
            self.store.update(POLICIES_TABLE, policy.policy_id, patch)
        except NotFoundException:
            # tenants start on the default policy until an admin saves one
            self.store.insert(POLICIES_TABLE, record)

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        items = self.store.list(TENANTS_TABLE, {"id": tenant_id})
        return self.tenant_from_record(items[0]) if items else None

    def update_tenant_location(self, tenant: Tenant):
        self.store.update(
            TENANTS_TABLE,
            tenant.tenant_id,
            {
                "location": {
                    "lat": tenant.location.lat,
                    "lng": tenant.location.lng,
                    "address": tenant.address,
                }
            },
        )
