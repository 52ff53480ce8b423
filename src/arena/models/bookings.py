from enum import Enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from arena.utils.custom_exceptions import InvalidStateTransition


class BookingStatus(str, Enum):
    DRAFT = "DRAFT"
    HOLD = "HOLD"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


BOOKING_TRANSITIONS = {
    BookingStatus.DRAFT: {
        BookingStatus.HOLD,
        BookingStatus.PENDING_PAYMENT,
        BookingStatus.CANCELLED,
    },
    BookingStatus.HOLD: {BookingStatus.PENDING_PAYMENT, BookingStatus.CANCELLED},
    BookingStatus.PENDING_PAYMENT: {
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CONFIRMED: {
        BookingStatus.CHECKED_IN,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CHECKED_IN: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in BOOKING_TRANSITIONS.items() if not targets
)


def assert_transition(booking_id: str, current: BookingStatus, target: BookingStatus):
    if target not in BOOKING_TRANSITIONS.get(current, set()):
        raise InvalidStateTransition(booking_id, current.value, target.value)


@dataclass
class Booking:
    booking_id: str
    tenant_id: str
    resource_id: str
    user_id: str
    booking_date: date
    start_hour: int
    duration: int = 1
    quantity: int = 1
    status: BookingStatus = BookingStatus.PENDING_PAYMENT

    # snapshotted at creation, never recomputed
    total_amount: Decimal = Decimal("0")

    entry_pass: Optional[str] = None
    payment_ref: Optional[str] = None
    batch_ref: Optional[str] = None
    checked_in_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.start_hour + self.duration)

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def occupies(self, resource_id: str, booking_date: date, hour: int) -> bool:
        return (
            self.resource_id == resource_id
            and self.booking_date == booking_date
            and hour in self.hours
        )
