import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from arena.models.bookings import Booking, BookingStatus, assert_transition
from arena.models.checkin import CheckInReason, CheckInResult
from arena.models.venue import GeoPoint
from arena.services.venue_store import VenueStore
from arena.utils.datetime_normaliser import slot_start
from arena.utils.geo import distance_meters

logger = logging.getLogger(__name__)


class CheckInService:
    def __init__(self, store: VenueStore):
        self.store = store

    def within_window(self, booking: Booking, now: datetime) -> bool:
        start = slot_start(booking.booking_date, booking.start_hour, self.store.tenant.timezone)
        window = timedelta(minutes=self.store.policy.check_in_window_mins)
        return start - window <= now <= start + window

    def evaluate(
        self,
        booking: Booking,
        location: Optional[GeoPoint] = None,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        if booking.status != BookingStatus.CONFIRMED:
            return CheckInResult(False, CheckInReason.NOT_CONFIRMED)
        # no location means staff checked the guest in by hand
        if location is None:
            return CheckInResult(True)

        distance = distance_meters(location, self.store.tenant.location)
        if distance > self.store.policy.gps_radius_meters:
            return CheckInResult(False, CheckInReason.TOO_FAR)

        now = now or datetime.now(timezone.utc)
        if not self.within_window(booking, now):
            return CheckInResult(False, CheckInReason.OUTSIDE_WINDOW)
        return CheckInResult(True)

    def check_in(
        self,
        booking: Booking,
        location: Optional[GeoPoint] = None,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        now = now or datetime.now(timezone.utc)
        with self.store.lock:
            result = self.evaluate(booking, location, now)
            if not result.accepted:
                logger.warning(
                    f"Check-in rejected for {booking.booking_id}: {result.reason.value}"
                )
                return result
            assert_transition(booking.booking_id, booking.status, BookingStatus.CHECKED_IN)
            booking.status = BookingStatus.CHECKED_IN
            booking.checked_in_at = now

        logger.info(f"Checked in booking {booking.booking_id}")
        self.store.save_booking_status(booking)
        return result
