from enum import Enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional


class TransactionType(str, Enum):
    PAYMENT = "PAYMENT"
    REFUND = "REFUND"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    QR = "QR"
    CASH = "CASH"
    CREDITS = "CREDITS"


@dataclass
class Transaction:
    transaction_id: str
    booking_id: str
    user_id: str
    amount: Decimal
    txn_type: TransactionType = TransactionType.PAYMENT
    status: PaymentStatus = PaymentStatus.PENDING
    method: PaymentMethod = PaymentMethod.QR
    reference: Optional[str] = None
    txn_date: date = field(default_factory=lambda: datetime.now(timezone.utc).date())
