from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from arena.models.bookings import Booking, BookingStatus
from arena.repository.record_store import RecordStore, SlotCounter
from arena.utils.constants import BOOKINGS_TABLE
from arena.utils.custom_exceptions import SlotCapacityExceeded, SlotUnavailable
from arena.utils.datetime_normaliser import from_iso_string, to_iso_string


class BookingRepository:
    def __init__(self, store: RecordStore):
        self.store = store

    @staticmethod
    def to_record(booking: Booking) -> Dict[str, Any]:
        return {
            "id": booking.booking_id,
            "tenant_id": booking.tenant_id,
            "resource_id": booking.resource_id,
            "user_id": booking.user_id,
            "date": booking.booking_date.isoformat(),
            "start_time": booking.start_hour,
            "duration": booking.duration,
            "quantity": booking.quantity,
            "status": booking.status.value,
            "total_amount": Decimal(str(booking.total_amount)),
            "qr_code": booking.entry_pass,
            "payment_qr": booking.payment_ref,
            "batch_ref": booking.batch_ref,
            "check_in_time": (
                to_iso_string(booking.checked_in_at) if booking.checked_in_at else None
            ),
            "created_at": to_iso_string(booking.created_at),
        }

    @staticmethod
    def from_record(item: Dict[str, Any]) -> Booking:
        check_in_time = item.get("check_in_time")
        created_at = item.get("created_at")
        booking = Booking(
            booking_id=item["id"],
            tenant_id=item["tenant_id"],
            resource_id=item["resource_id"],
            user_id=item["user_id"],
            booking_date=date.fromisoformat(item["date"]),
            start_hour=int(item["start_time"]),
            duration=int(item.get("duration", 1)),
            quantity=int(item.get("quantity") or 1),
            status=BookingStatus(item["status"]),
            total_amount=Decimal(str(item["total_amount"])),
            entry_pass=item.get("qr_code"),
            payment_ref=item.get("payment_qr"),
            batch_ref=item.get("batch_ref"),
            checked_in_at=from_iso_string(check_in_time) if check_in_time else None,
        )
        if created_at:
            booking.created_at = from_iso_string(created_at)
        return booking

    @staticmethod
    def slot_id(resource_id: str, booking_date: date, hour: int) -> str:
        return f"{resource_id}#{booking_date.isoformat()}#{hour:02d}"

    def _slot_counters(
        self, booking: Booking, delta: int, capacity: Optional[int] = None
    ) -> List[SlotCounter]:
        return [
            SlotCounter(self.slot_id(booking.resource_id, booking.booking_date, hour), delta, capacity)
            for hour in booking.hours
        ]

    def add_bookings(self, bookings: Sequence[Booking], capacity: int):
        """Insert ``bookings`` and claim their slots in one write.

        The slot counters decide capacity across every process sharing the
        table; a refused claim raises ``SlotUnavailable``.
        """
        counters = [
            counter
            for booking in bookings
            for counter in self._slot_counters(booking, booking.quantity, capacity)
        ]
        try:
            self.store.insert_many(
                BOOKINGS_TABLE, [self.to_record(b) for b in bookings], counters
            )
        except SlotCapacityExceeded as err:
            for booking in bookings:
                for hour in booking.hours:
                    if self.slot_id(booking.resource_id, booking.booking_date, hour) == err.slot_id:
                        raise SlotUnavailable(
                            booking.resource_id,
                            booking.booking_date,
                            hour,
                            max(capacity - err.booked, 0),
                            booking.quantity,
                        ) from err
            raise

    def update_booking_status(self, booking: Booking):
        patch: Dict[str, Any] = {"status": booking.status.value}
        if booking.checked_in_at:
            patch["check_in_time"] = to_iso_string(booking.checked_in_at)
        if booking.status == BookingStatus.CANCELLED:
            # frees the slots once, however many processes cancel it
            self.store.update(
                BOOKINGS_TABLE,
                booking.booking_id,
                patch,
                counters=self._slot_counters(booking, -booking.quantity),
                unless={"status": BookingStatus.CANCELLED.value},
            )
            return
        self.store.update(BOOKINGS_TABLE, booking.booking_id, patch)

    def list_bookings(self, **filter) -> List[Booking]:
        return [self.from_record(item) for item in self.store.list(BOOKINGS_TABLE, filter)]

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        return self.list_bookings(user_id=user_id)

    def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        bookings = self.list_bookings(id=booking_id)
        return bookings[0] if bookings else None
