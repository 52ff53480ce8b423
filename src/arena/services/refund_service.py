import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from arena.models.bookings import Booking, BookingStatus, assert_transition
from arena.models.transactions import (
    PaymentMethod,
    PaymentStatus,
    Transaction,
    TransactionType,
)
from arena.services.ledger_service import TransactionLedger
from arena.services.venue_store import VenueStore
from arena.utils.constants import REFUND_REF_PREFIX
from arena.utils.datetime_normaliser import slot_start

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
PAID_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN})


@dataclass(frozen=True)
class CancellationResult:
    booking: Booking
    new_status: BookingStatus
    refund: Decimal
    refund_transaction: Optional[Transaction] = None


class RefundService:
    """Applies the tenant policy to cancellations and no-shows.

    Refunds are ``total_amount * refund_percentage / 100`` for CONFIRMED and
    CHECKED_IN bookings only. The percentage is deliberately not applied to
    DRAFT, HOLD or PENDING_PAYMENT bookings: nothing was collected for them,
    and a refund there would pay out money the ledger never took in. The
    cancellation window only matters when ``enforce_cancel_window`` is set;
    a cancellation inside the window then refunds nothing.
    """

    def __init__(
        self,
        store: VenueStore,
        ledger: TransactionLedger,
        enforce_cancel_window: bool = False,
    ):
        self.store = store
        self.ledger = ledger
        self.enforce_cancel_window = enforce_cancel_window

    def inside_cancel_window(self, booking: Booking, now: datetime) -> bool:
        start = slot_start(booking.booking_date, booking.start_hour, self.store.tenant.timezone)
        return start - now < timedelta(hours=self.store.policy.cancel_window_hrs)

    def refund_amount(self, booking: Booking, now: Optional[datetime] = None) -> Decimal:
        if booking.status not in PAID_STATUSES:
            return Decimal("0")
        now = now or datetime.now(timezone.utc)
        if self.enforce_cancel_window and self.inside_cancel_window(booking, now):
            return Decimal("0")
        percentage = Decimal(self.store.policy.refund_percentage)
        refund = booking.total_amount * percentage / 100
        return refund.quantize(CENTS, rounding=ROUND_HALF_UP)

    def no_show_penalty(self, booking: Booking) -> Decimal:
        return Decimal(self.store.policy.no_show_penalty)

    def _payment_method(self, booking: Booking) -> PaymentMethod:
        for txn in self.ledger.by_booking(booking.booking_id):
            if txn.txn_type == TransactionType.PAYMENT:
                return txn.method
        return PaymentMethod.QR

    def cancel(self, booking: Booking, now: Optional[datetime] = None) -> CancellationResult:
        with self.store.lock:
            assert_transition(booking.booking_id, booking.status, BookingStatus.CANCELLED)
            refund = self.refund_amount(booking, now)
            pending = self.ledger.pending_payment_for(booking.booking_id)

            booking.status = BookingStatus.CANCELLED
            refund_txn = None
            if refund > 0:
                refund_txn = self.ledger.record(
                    self.ledger.new_transaction(
                        booking_id=booking.booking_id,
                        user_id=booking.user_id,
                        amount=refund,
                        txn_type=TransactionType.REFUND,
                        status=PaymentStatus.COMPLETED,
                        method=self._payment_method(booking),
                        reference=f"{REFUND_REF_PREFIX}-{booking.booking_id}",
                    ),
                    persist=False,
                )
            if pending:
                pending.status = PaymentStatus.FAILED

        logger.info(f"Cancelled booking {booking.booking_id}, refund {refund}")
        self.store.save_booking_status(booking)
        if refund_txn:
            self.store.save_new_transaction(refund_txn)
        if pending:
            self.store.save_transaction_status(pending)
        return CancellationResult(
            booking=booking,
            new_status=booking.status,
            refund=refund,
            refund_transaction=refund_txn,
        )
