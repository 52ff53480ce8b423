import threading
from datetime import date
from decimal import Decimal

from arena.models.bookings import Booking, BookingStatus
from arena.models.resources import RateCard, Resource, ResourceMode
from arena.models.transactions import PaymentStatus, Transaction
from arena.models.venue import GeoPoint, Policy, Tenant
from arena.services.venue_store import VenueStore
from arena.utils.custom_exceptions import NotFoundException, SlotCapacityExceeded

VENUE = GeoPoint(lat=34.0522, lng=-118.2437)
SLOT_DATE = date(2030, 3, 14)


def make_tenant():
    return Tenant(tenant_id="tenant_1", name="NeoSports Arena", location=VENUE)


def make_policy(**overrides):
    values = dict(
        policy_id="pol_1",
        cancel_window_hrs=24,
        refund_percentage=Decimal("80"),
        gps_radius_meters=200,
        check_in_window_mins=15,
        no_show_penalty=Decimal("10"),
    )
    values.update(overrides)
    return Policy(**values)


def court():
    return Resource(
        resource_id="res_1",
        tenant_id="tenant_1",
        name="Center Court",
        resource_type="Basketball",
        mode=ResourceMode.EXCLUSIVE,
        capacity=1,
        hourly_rate=Decimal("50"),
    )


def pool_lane():
    return Resource(
        resource_id="res_3",
        tenant_id="tenant_1",
        name="Olympic Lane 1",
        resource_type="Swimming",
        mode=ResourceMode.SHARED,
        capacity=8,
        hourly_rate=Decimal("15"),
    )


def futsal_pitch():
    return Resource(
        resource_id="res_2",
        tenant_id="tenant_1",
        name="Futsal Pitch A",
        resource_type="Futsal",
        mode=ResourceMode.EXCLUSIVE,
        capacity=1,
        hourly_rate=Decimal("80"),
    )


def basketball_card():
    return RateCard(
        rate_card_id="rc_1",
        name="Standard Court Pricing",
        resource_type="Basketball",
        base_rate=Decimal("50"),
        peak_rate=Decimal("75"),
        peak_hours=frozenset({18, 19, 20, 21}),
        weekend_multiplier=Decimal("1.1"),
    )


def make_store(**kwargs):
    kwargs.setdefault("resources", [court(), pool_lane(), futsal_pitch()])
    kwargs.setdefault("rate_cards", [basketball_card()])
    return VenueStore(tenant=make_tenant(), policy=make_policy(), **kwargs)


def make_booking(
    booking_id="bk_1",
    status=BookingStatus.CONFIRMED,
    resource_id="res_1",
    start_hour=10,
    quantity=1,
    total_amount=Decimal("50"),
    user_id="u_1",
):
    return Booking(
        booking_id=booking_id,
        tenant_id="tenant_1",
        resource_id=resource_id,
        user_id=user_id,
        booking_date=SLOT_DATE,
        start_hour=start_hour,
        quantity=quantity,
        status=status,
        total_amount=total_amount,
        entry_pass="ENTRY-1",
        payment_ref=f"PAY-{booking_id}",
    )


def make_payment(booking, status=PaymentStatus.COMPLETED, transaction_id=None):
    return Transaction(
        transaction_id=transaction_id or f"tx_{booking.booking_id}",
        booking_id=booking.booking_id,
        user_id=booking.user_id,
        amount=booking.total_amount,
        status=status,
        reference=booking.payment_ref,
    )


def make_services(store=None, settings=None):
    from unittest.mock import MagicMock

    from arena.services.booking_service import BookingService
    from arena.services.resource_service import ResourceService
    from arena.utils.settings import Settings
    from arena_handlers.dependencies import Services

    store = store or make_store()
    booking_service = BookingService(store)
    return Services(
        settings=settings or Settings(table_name="arena-test"),
        store=store,
        records=MagicMock(),
        rate_engine=booking_service.rate_engine,
        availability=booking_service.availability,
        ledger=booking_service.ledger,
        booking_service=booking_service,
        resource_service=ResourceService(store),
    )


def api_event(user_id="u_1", role="PLAYER", body=None, path=None, query=None):
    authorizer = {"user_id": user_id, "role": role} if user_id else {}
    return {
        "body": body,
        "pathParameters": path,
        "queryStringParameters": query,
        "requestContext": {"authorizer": authorizer},
    }


class MemoryRecordStore:
    """Record tables and slot counters in dicts, shared by every store loaded over it."""

    def __init__(self):
        self.tables = {}
        self.slots = {}
        self._lock = threading.Lock()

    def list(self, table_name, filter=None):
        with self._lock:
            rows = [dict(row) for row in self.tables.get(table_name, {}).values()]
        return [r for r in rows if all(r.get(k) == v for k, v in (filter or {}).items())]

    def insert(self, table_name, record):
        return self.insert_many(table_name, [record])[0]

    def insert_many(self, table_name, records, counters=()):
        with self._lock:
            rows = self.tables.setdefault(table_name, {})
            for record in records:
                if record["id"] in rows:
                    raise ValueError(f"{table_name} '{record['id']}' exists")
            self._check(counters)
            for record in records:
                rows[record["id"]] = dict(record)
            self._apply(counters)
        return list(records)

    def update(self, table_name, record_id, patch, counters=(), unless=None):
        with self._lock:
            row = self.tables.get(table_name, {}).get(record_id)
            if row is None or any(row.get(k) == v for k, v in (unless or {}).items()):
                raise NotFoundException(table_name, record_id)
            self._check(counters)
            row.update(patch)
            self._apply(counters)
            return dict(row)

    def on_change(self, table_name, callback):
        pass

    def _check(self, counters):
        for counter in counters:
            booked = self.slots.get(counter.slot_id, 0)
            if counter.capacity is not None and booked + counter.delta > counter.capacity:
                raise SlotCapacityExceeded(counter.slot_id, booked)

    def _apply(self, counters):
        for counter in counters:
            self.slots[counter.slot_id] = self.slots.get(counter.slot_id, 0) + counter.delta


def load_store(records):
    from arena.repository.booking_repo import BookingRepository
    from arena.repository.policy_repo import PolicyRepository
    from arena.repository.resource_repo import ResourceRepository
    from arena.repository.transaction_repo import TransactionRepository

    return VenueStore.load(
        make_tenant(),
        make_policy(),
        booking_repo=BookingRepository(records),
        transaction_repo=TransactionRepository(records),
        resource_repo=ResourceRepository(records),
        policy_repo=PolicyRepository(records),
    )
