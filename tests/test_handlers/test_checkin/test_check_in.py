import json
import unittest
from unittest.mock import patch

from arena.models.bookings import BookingStatus
from arena_handlers.checkin.check_in import check_in
from factories import api_event, make_booking, make_services, make_store


class CheckInHandlerTests(unittest.TestCase):

    def setUp(self):
        self.booking = make_booking(user_id="u_1")
        self.p_services = patch(
            "arena_handlers.checkin.check_in.get_services",
            return_value=make_services(make_store(bookings=[self.booking])),
        )
        self.p_services.start()

    def tearDown(self):
        self.p_services.stop()

    def _event(self, body=None, user_id="u_1", role="PLAYER"):
        return api_event(
            user_id=user_id,
            role=role,
            body=json.dumps(body) if body is not None else None,
            path={"booking_id": "bk_1"},
        )

    def test_player_needs_location(self):
        resp = check_in(self._event(), None)

        self.assertEqual(400, resp["statusCode"])
        self.assertEqual(BookingStatus.CONFIRMED, self.booking.status)

    def test_half_a_location_is_invalid(self):
        resp = check_in(self._event({"lat": 34.05}), None)
        self.assertEqual(400, resp["statusCode"])

    def test_far_away_returns_422(self):
        resp = check_in(self._event({"lat": 0, "lng": 0}), None)

        self.assertEqual(422, resp["statusCode"])
        self.assertEqual("too far from venue", json.loads(resp["body"])["data"]["reason"])

    def test_staff_manual_check_in(self):
        resp = check_in(self._event(user_id="staff_1", role="STAFF"), None)

        self.assertEqual(200, resp["statusCode"])
        self.assertEqual("CHECKED_IN", json.loads(resp["body"])["data"]["status"])
        self.assertEqual(BookingStatus.CHECKED_IN, self.booking.status)

    def test_other_player_is_forbidden(self):
        resp = check_in(self._event({"lat": 34.0522, "lng": -118.2437}, user_id="u_2"), None)
        self.assertEqual(403, resp["statusCode"])


if __name__ == "__main__":
    unittest.main()
