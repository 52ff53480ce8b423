import unittest
from decimal import Decimal
from unittest.mock import MagicMock

from arena.models.bookings import BookingStatus
from arena.models.transactions import PaymentStatus, TransactionType
from arena.services.ledger_service import TransactionLedger
from arena.utils.custom_exceptions import InvalidStateTransition, TransactionNotFound
from factories import make_booking, make_payment, make_store


class TestTransactionLedger(unittest.TestCase):

    def setUp(self):
        self.booking = make_booking(status=BookingStatus.PENDING_PAYMENT)
        self.payment = make_payment(self.booking, status=PaymentStatus.PENDING)
        self.transaction_repo = MagicMock()
        self.booking_repo = MagicMock()
        self.store = make_store(
            bookings=[self.booking],
            transactions=[self.payment],
            transaction_repo=self.transaction_repo,
            booking_repo=self.booking_repo,
        )
        self.ledger = TransactionLedger(self.store)

    def test_new_transaction_defaults(self):
        txn = self.ledger.new_transaction("bk_1", "u_1", Decimal("20"))

        self.assertTrue(txn.transaction_id.startswith("tx_"))
        self.assertEqual(TransactionType.PAYMENT, txn.txn_type)
        self.assertEqual(PaymentStatus.PENDING, txn.status)

    def test_record_appends_and_persists(self):
        txn = self.ledger.new_transaction("bk_1", "u_1", Decimal("20"))

        self.ledger.record(txn)

        self.assertIn(txn, self.ledger.by_booking("bk_1"))
        self.transaction_repo.add_transaction.assert_called_once_with(txn)

    def test_record_rejects_duplicate_id(self):
        with self.assertRaises(ValueError):
            self.ledger.record(self.payment)

    def test_verify_confirms_booking(self):
        txn = self.ledger.verify(self.payment.transaction_id)

        self.assertEqual(PaymentStatus.COMPLETED, txn.status)
        self.assertEqual(BookingStatus.CONFIRMED, self.booking.status)
        self.transaction_repo.update_transaction_status.assert_called_once_with(txn)
        self.booking_repo.update_booking_status.assert_called_once_with(self.booking)

    def test_verify_twice_changes_nothing(self):
        self.ledger.verify(self.payment.transaction_id)
        self.transaction_repo.reset_mock()
        self.booking_repo.reset_mock()

        txn = self.ledger.verify(self.payment.transaction_id)

        self.assertEqual(PaymentStatus.COMPLETED, txn.status)
        self.assertEqual(BookingStatus.CONFIRMED, self.booking.status)
        self.transaction_repo.update_transaction_status.assert_not_called()
        self.booking_repo.update_booking_status.assert_not_called()

    def test_verify_refuses_payment_for_cancelled_booking(self):
        self.booking.status = BookingStatus.CANCELLED

        with self.assertRaises(InvalidStateTransition) as ctx:
            self.ledger.verify(self.payment.transaction_id)

        self.assertEqual("bk_1", ctx.exception.entity_id)
        self.assertEqual(BookingStatus.CANCELLED, self.booking.status)
        self.assertEqual(PaymentStatus.PENDING, self.payment.status)
        self.transaction_repo.update_transaction_status.assert_not_called()
        self.booking_repo.update_booking_status.assert_not_called()

    def test_verify_refuses_failed_transaction(self):
        self.payment.status = PaymentStatus.FAILED

        with self.assertRaises(InvalidStateTransition) as ctx:
            self.ledger.verify(self.payment.transaction_id)

        self.assertEqual(self.payment.transaction_id, ctx.exception.entity_id)
        self.assertEqual("FAILED", ctx.exception.current)
        self.assertEqual(BookingStatus.PENDING_PAYMENT, self.booking.status)

    def test_verify_settles_penalty_on_completed_booking(self):
        self.booking.status = BookingStatus.COMPLETED
        penalty = self.ledger.record(
            self.ledger.new_transaction("bk_1", "u_1", Decimal("10"), reference="NOSHOW-bk_1"),
            persist=False,
        )

        txn = self.ledger.verify(penalty.transaction_id)

        self.assertEqual(PaymentStatus.COMPLETED, txn.status)
        self.assertEqual(BookingStatus.COMPLETED, self.booking.status)
        self.booking_repo.update_booking_status.assert_not_called()

    def test_verify_unknown_transaction(self):
        with self.assertRaises(TransactionNotFound):
            self.ledger.verify("tx_missing")

    def test_fail_only_touches_pending(self):
        self.ledger.fail(self.payment)
        self.assertEqual(PaymentStatus.FAILED, self.payment.status)

        self.transaction_repo.reset_mock()
        self.ledger.fail(self.payment)
        self.transaction_repo.update_transaction_status.assert_not_called()

    def test_pending_payment_and_completed_checks(self):
        self.assertIs(self.payment, self.ledger.pending_payment_for("bk_1"))
        self.assertFalse(self.ledger.has_completed_payment("bk_1"))

        self.ledger.verify(self.payment.transaction_id)

        self.assertIsNone(self.ledger.pending_payment_for("bk_1"))
        self.assertTrue(self.ledger.has_completed_payment("bk_1"))

    def test_queries(self):
        self.assertEqual([self.payment], self.ledger.by_user("u_1"))
        self.assertEqual([], self.ledger.by_user("u_2"))
        self.assertEqual([self.payment], self.ledger.by_status(PaymentStatus.PENDING))

    def test_net_revenue_subtracts_refunds(self):
        self.ledger.verify(self.payment.transaction_id)
        self.ledger.record(
            self.ledger.new_transaction(
                "bk_1", "u_1", Decimal("40"),
                txn_type=TransactionType.REFUND,
                status=PaymentStatus.COMPLETED,
            )
        )

        self.assertEqual(Decimal("10"), self.ledger.net_revenue())


if __name__ == "__main__":
    unittest.main()
