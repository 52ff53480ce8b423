import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import uuid4

from arena.models.bookings import Booking, BookingStatus, assert_transition
from arena.models.resources import Resource
from arena.models.transactions import Transaction, TransactionType
from arena.models.venue import GeoPoint
from arena.schemas.bookings import BookingRequest
from arena.services.availability_service import AvailabilityService
from arena.services.checkin_service import CheckInService
from arena.services.ledger_service import TransactionLedger
from arena.services.rate_engine import RateEngine
from arena.services.refund_service import CancellationResult, RefundService
from arena.services.venue_store import VenueStore
from arena.utils.constants import (
    ENTRY_PASS_PREFIX,
    NO_SHOW_REF_PREFIX,
    PAYMENT_REF_PREFIX,
)
from arena.utils.custom_exceptions import (
    CheckInRejected,
    InvalidStateTransition,
    SlotUnavailable,
    TransactionNotFound,
)

logger = logging.getLogger(__name__)


def _code(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12].upper()}"


class BookingService:
    def __init__(
        self,
        store: VenueStore,
        rate_engine: Optional[RateEngine] = None,
        availability: Optional[AvailabilityService] = None,
        ledger: Optional[TransactionLedger] = None,
        checkin_service: Optional[CheckInService] = None,
        refund_service: Optional[RefundService] = None,
        pending_payment_ttl_mins: Optional[int] = None,
    ):
        self.store = store
        self.rate_engine = rate_engine or RateEngine(store.rate_cards)
        self.availability = availability or AvailabilityService(store)
        self.ledger = ledger or TransactionLedger(store)
        self.checkin_service = checkin_service or CheckInService(store)
        self.refund_service = refund_service or RefundService(store, self.ledger)
        self.pending_payment_ttl_mins = pending_payment_ttl_mins

    def create(self, req: BookingRequest, user_id: str) -> List[Booking]:
        """Reserve every hour of the request or none of them.

        One PENDING_PAYMENT booking and one PENDING payment are created per
        hour; the bookings share a batch reference. The local capacity check
        and insert happen under the store lock so a concurrent capacity
        change sees either none or all of them; the durable write that
        follows can still refuse the slots.
        """
        batch_ref = f"batch_{uuid4().hex[:12]}"
        slot_keys = [(req.resource_id, req.booking_date, hour) for hour in req.hours]

        with self.store.slot_locks.hold(slot_keys):
            with self.store.lock:
                resource = self.store.get_resource(req.resource_id)
                for hour in req.hours:
                    remaining = self.availability.remaining_capacity(
                        resource, req.booking_date, hour
                    )
                    if remaining < req.quantity:
                        logger.warning(
                            f"Slot {resource.resource_id} {req.booking_date} {hour:02d}:00 "
                            f"has {remaining} left, {req.quantity} requested"
                        )
                        raise SlotUnavailable(
                            resource.resource_id, req.booking_date, hour, remaining, req.quantity
                        )

                bookings = [
                    self._new_booking(resource, req, hour, user_id, batch_ref)
                    for hour in req.hours
                ]
                payments = [
                    self.ledger.new_transaction(
                        booking_id=booking.booking_id,
                        user_id=user_id,
                        amount=booking.total_amount,
                        reference=booking.payment_ref,
                    )
                    for booking in bookings
                ]
                self.store.add_bookings(bookings)
                for txn in payments:
                    self.ledger.record(txn, persist=False)

            self.store.save_new_bookings(resource, bookings, payments)

        logger.info(
            f"Created {len(bookings)} booking(s) for {user_id} on "
            f"{resource.resource_id} {req.booking_date} batch {batch_ref}"
        )
        return bookings

    def _new_booking(
        self,
        resource: Resource,
        req: BookingRequest,
        hour: int,
        user_id: str,
        batch_ref: str,
    ) -> Booking:
        return Booking(
            booking_id=f"bk_{uuid4().hex}",
            tenant_id=resource.tenant_id,
            resource_id=resource.resource_id,
            user_id=user_id,
            booking_date=req.booking_date,
            start_hour=hour,
            duration=1,
            quantity=req.quantity,
            status=BookingStatus.PENDING_PAYMENT,
            total_amount=self.rate_engine.price(
                resource, hour, 1, req.quantity, req.booking_date
            ),
            entry_pass=_code(ENTRY_PASS_PREFIX),
            payment_ref=_code(PAYMENT_REF_PREFIX),
            batch_ref=batch_ref,
        )

    def confirm_payment(self, booking_id: str) -> Booking:
        booking = self.store.get_booking(booking_id)
        matches = [
            txn
            for txn in self.ledger.by_booking(booking_id)
            if txn.txn_type == TransactionType.PAYMENT and txn.reference == booking.payment_ref
        ]
        if not matches:
            raise TransactionNotFound(booking.payment_ref)
        for txn in matches:
            self.ledger.verify(txn.transaction_id)
        return booking

    def confirm_payment_by_reference(self, reference: str) -> Transaction:
        """Settle the payment carrying ``reference``.

        A payment that already settled is returned as is. One that failed, or
        whose booking was cancelled or released, raises ``InvalidStateTransition``.
        """
        matches = self.store.find_transactions(
            lambda t: t.reference == reference and t.txn_type == TransactionType.PAYMENT
        )
        if not matches:
            raise TransactionNotFound(reference)
        return self.ledger.verify(matches[0].transaction_id)

    def check_in(
        self,
        booking_id: str,
        location: Optional[GeoPoint] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        booking = self.store.get_booking(booking_id)
        result = self.checkin_service.check_in(booking, location, now)
        if not result.accepted:
            raise CheckInRejected(booking_id, result.reason)
        return booking

    def complete(self, booking_id: str) -> Booking:
        """Close a session; completing a booking nobody checked in to is a no-show."""
        booking = self.store.get_booking(booking_id)
        penalty_txn = None
        with self.store.lock:
            assert_transition(booking_id, booking.status, BookingStatus.COMPLETED)
            no_show = booking.status == BookingStatus.CONFIRMED
            booking.status = BookingStatus.COMPLETED
            if no_show:
                penalty = self.refund_service.no_show_penalty(booking)
                if penalty > 0:
                    penalty_txn = self.ledger.record(
                        self.ledger.new_transaction(
                            booking_id=booking_id,
                            user_id=booking.user_id,
                            amount=penalty,
                            reference=f"{NO_SHOW_REF_PREFIX}-{booking_id}",
                        ),
                        persist=False,
                    )

        logger.info(f"Completed booking {booking_id}{' (no-show)' if no_show else ''}")
        self.store.save_booking_status(booking)
        if penalty_txn:
            self.store.save_new_transaction(penalty_txn)
        return booking

    def cancel(self, booking_id: str, now: Optional[datetime] = None) -> CancellationResult:
        booking = self.store.get_booking(booking_id)
        return self.refund_service.cancel(booking, now)

    def release_expired_holds(
        self, now: Optional[datetime] = None, ttl_minutes: Optional[int] = None
    ) -> List[Booking]:
        ttl_minutes = ttl_minutes or self.pending_payment_ttl_mins
        if not ttl_minutes:
            return []
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=ttl_minutes)
        expired = self.store.find_bookings(
            lambda b: b.status == BookingStatus.PENDING_PAYMENT and b.created_at <= cutoff
        )
        released = []
        for booking in expired:
            try:
                self.refund_service.cancel(booking, now)
            except InvalidStateTransition:
                # paid or cancelled since the scan
                continue
            released.append(booking)
        if released:
            logger.info(f"Released {len(released)} unpaid booking(s) older than {ttl_minutes}m")
        return released

    def get_booking(self, booking_id: str) -> Booking:
        return self.store.get_booking(booking_id)

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        bookings = self.store.find_bookings(lambda b: b.user_id == user_id)
        return sorted(bookings, key=lambda b: (b.booking_date, b.start_hour))

    def get_batch(self, batch_ref: str) -> List[Booking]:
        bookings = self.store.find_bookings(lambda b: b.batch_ref == batch_ref)
        return sorted(bookings, key=lambda b: b.start_hour)
