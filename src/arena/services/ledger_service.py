import logging
from decimal import Decimal
from typing import List, Optional
from uuid import uuid4

from arena.models.bookings import BookingStatus
from arena.models.transactions import (
    PaymentMethod,
    PaymentStatus,
    Transaction,
    TransactionType,
)
from arena.services.venue_store import VenueStore
from arena.utils.custom_exceptions import InvalidStateTransition

logger = logging.getLogger(__name__)


class TransactionLedger:
    """Append-only payments and refunds linked to bookings."""

    def __init__(self, store: VenueStore):
        self.store = store

    def new_transaction(
        self,
        booking_id: str,
        user_id: str,
        amount: Decimal,
        txn_type: TransactionType = TransactionType.PAYMENT,
        status: PaymentStatus = PaymentStatus.PENDING,
        method: PaymentMethod = PaymentMethod.QR,
        reference: Optional[str] = None,
    ) -> Transaction:
        return Transaction(
            transaction_id=f"tx_{uuid4().hex}",
            booking_id=booking_id,
            user_id=user_id,
            amount=amount,
            txn_type=txn_type,
            status=status,
            method=method,
            reference=reference,
        )

    def record(self, txn: Transaction, persist: bool = True) -> Transaction:
        self.store.append_transaction(txn)
        if persist:
            self.store.save_new_transaction(txn)
        return txn

    def by_user(self, user_id: str) -> List[Transaction]:
        return self.store.find_transactions(lambda t: t.user_id == user_id)

    def by_booking(self, booking_id: str) -> List[Transaction]:
        return self.store.find_transactions(lambda t: t.booking_id == booking_id)

    def by_status(self, status: PaymentStatus) -> List[Transaction]:
        return self.store.find_transactions(lambda t: t.status == status)

    def pending_payment_for(self, booking_id: str) -> Optional[Transaction]:
        for txn in self.by_booking(booking_id):
            if txn.txn_type == TransactionType.PAYMENT and txn.status == PaymentStatus.PENDING:
                return txn
        return None

    def has_completed_payment(self, booking_id: str) -> bool:
        return any(
            t.txn_type == TransactionType.PAYMENT and t.status == PaymentStatus.COMPLETED
            for t in self.by_booking(booking_id)
        )

    def verify(self, transaction_id: str) -> Transaction:
        """Mark a pending transaction paid and confirm its booking.

        Verifying a COMPLETED transaction again changes nothing. A FAILED or
        REFUNDED one, or a booking payment whose booking has left
        PENDING_PAYMENT, raises ``InvalidStateTransition``.
        """
        with self.store.lock:
            txn = self.store.get_transaction(transaction_id)
            if txn.status == PaymentStatus.COMPLETED:
                logger.info(f"Transaction {transaction_id} already {txn.status.value}")
                return txn
            if txn.status != PaymentStatus.PENDING:
                logger.warning(f"Refusing to settle {txn.status.value} transaction {transaction_id}")
                raise InvalidStateTransition(
                    transaction_id, txn.status.value, PaymentStatus.COMPLETED.value
                )

            booking = self.store.bookings.get(txn.booking_id)
            promoted = (
                txn.txn_type == TransactionType.PAYMENT
                and booking is not None
                and txn.reference == booking.payment_ref
            )
            if promoted and booking.status != BookingStatus.PENDING_PAYMENT:
                logger.warning(
                    f"Refusing payment {transaction_id} for {booking.status.value} "
                    f"booking {booking.booking_id}"
                )
                raise InvalidStateTransition(
                    booking.booking_id, booking.status.value, BookingStatus.CONFIRMED.value
                )
            txn.status = PaymentStatus.COMPLETED
            if promoted:
                booking.status = BookingStatus.CONFIRMED

        logger.info(f"Verified transaction {transaction_id} for booking {txn.booking_id}")
        self.store.save_transaction_status(txn)
        if promoted:
            self.store.save_booking_status(booking)
        return txn

    def fail(self, txn: Transaction):
        with self.store.lock:
            if txn.status != PaymentStatus.PENDING:
                return
            txn.status = PaymentStatus.FAILED
        self.store.save_transaction_status(txn)

    def net_revenue(self) -> Decimal:
        total = Decimal("0")
        for txn in self.by_status(PaymentStatus.COMPLETED):
            if txn.txn_type == TransactionType.PAYMENT:
                total += txn.amount
            else:
                total -= txn.amount
        return total
