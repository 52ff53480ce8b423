import logging
import threading
from dataclasses import dataclass
from typing import Optional

from boto3 import resource

from arena.models.venue import Policy
from arena.repository.booking_repo import BookingRepository
from arena.repository.policy_repo import PolicyRepository
from arena.repository.record_store import DynamoRecordStore
from arena.repository.resource_repo import ResourceRepository
from arena.repository.transaction_repo import TransactionRepository
from arena.services.availability_service import AvailabilityService
from arena.services.booking_service import BookingService
from arena.services.checkin_service import CheckInService
from arena.services.ledger_service import TransactionLedger
from arena.services.rate_engine import RateEngine
from arena.services.refund_service import RefundService
from arena.services.resource_service import ResourceService
from arena.services.venue_store import VenueStore
from arena.utils.settings import Settings

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


@dataclass
class Services:
    settings: Settings
    store: VenueStore
    records: DynamoRecordStore
    rate_engine: RateEngine
    availability: AvailabilityService
    ledger: TransactionLedger
    booking_service: BookingService
    resource_service: ResourceService


_services: Optional[Services] = None
_services_lock = threading.Lock()


def build_services(settings: Settings) -> Services:
    if not settings.table_name:
        raise RuntimeError("TABLE_NAME environment variable is not set")

    dynamodb = resource("dynamodb", region_name=settings.region)
    table = dynamodb.Table(settings.table_name)
    records = DynamoRecordStore(table=table, tenant_id=settings.tenant_id)

    policy_repo = PolicyRepository(records)
    tenant = policy_repo.get_tenant(settings.tenant_id)
    if tenant is None:
        raise RuntimeError(f"tenant '{settings.tenant_id}' is not configured")

    store = VenueStore.load(
        tenant=tenant,
        default_policy=Policy(policy_id=f"pol_{settings.tenant_id}"),
        booking_repo=BookingRepository(records),
        transaction_repo=TransactionRepository(records),
        resource_repo=ResourceRepository(records),
        policy_repo=policy_repo,
    )
    store.subscribe(records)

    rate_engine = RateEngine(store.rate_cards, settings.apply_weekend_rate)
    availability = AvailabilityService(store)
    ledger = TransactionLedger(store)
    booking_service = BookingService(
        store,
        rate_engine=rate_engine,
        availability=availability,
        ledger=ledger,
        checkin_service=CheckInService(store),
        refund_service=RefundService(store, ledger, settings.enforce_cancel_window),
        pending_payment_ttl_mins=settings.pending_payment_ttl_mins,
    )
    return Services(
        settings=settings,
        store=store,
        records=records,
        rate_engine=rate_engine,
        availability=availability,
        ledger=ledger,
        booking_service=booking_service,
        resource_service=ResourceService(store),
    )


def get_services() -> Services:
    global _services
    with _services_lock:
        if _services is None:
            _services = build_services(Settings.from_env())
        return _services
