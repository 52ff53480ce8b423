from datetime import date
from decimal import Decimal
from typing import Any, Dict, List

from arena.models.transactions import (
    PaymentMethod,
    PaymentStatus,
    Transaction,
    TransactionType,
)
from arena.repository.record_store import RecordStore
from arena.utils.constants import TRANSACTIONS_TABLE


class TransactionRepository:
    def __init__(self, store: RecordStore):
        self.store = store

    @staticmethod
    def to_record(txn: Transaction) -> Dict[str, Any]:
        return {
            "id": txn.transaction_id,
            "booking_id": txn.booking_id,
            "user_id": txn.user_id,
            "amount": Decimal(str(txn.amount)),
            "date": txn.txn_date.isoformat(),
            "type": txn.txn_type.value,
            "status": txn.status.value,
            "method": txn.method.value,
            "reference": txn.reference,
        }

    @staticmethod
    def from_record(item: Dict[str, Any]) -> Transaction:
        return Transaction(
            transaction_id=item["id"],
            booking_id=item["booking_id"],
            user_id=item["user_id"],
            amount=Decimal(str(item["amount"])),
            txn_type=TransactionType(item["type"]),
            status=PaymentStatus(item["status"]),
            method=PaymentMethod(item.get("method", PaymentMethod.QR.value)),
            reference=item.get("reference"),
            txn_date=date.fromisoformat(item["date"]),
        )

    def add_transaction(self, txn: Transaction):
        self.store.insert(TRANSACTIONS_TABLE, self.to_record(txn))

    def update_transaction_status(self, txn: Transaction):
        self.store.update(TRANSACTIONS_TABLE, txn.transaction_id, {"status": txn.status.value})

    def list_transactions(self, **filter) -> List[Transaction]:
        return [
            self.from_record(item)
            for item in self.store.list(TRANSACTIONS_TABLE, filter)
        ]
