import json
import unittest
from unittest.mock import patch

from arena_handlers.bookings.create_booking import create_booking
from factories import api_event, make_services


class CreateBookingTests(unittest.TestCase):

    def setUp(self):
        self.services = make_services()
        self.p_services = patch(
            "arena_handlers.bookings.create_booking.get_services",
            return_value=self.services,
        )
        self.p_services.start()

    def tearDown(self):
        self.p_services.stop()

    def _body(self, **overrides):
        body = {"resource_id": "res_1", "booking_date": "2030-03-14", "start_hour": 17}
        body.update(overrides)
        return json.dumps(body)

    def test_missing_body_returns_400(self):
        resp = create_booking(api_event(), None)
        self.assertEqual(400, resp["statusCode"])

    def test_validation_error_returns_400(self):
        resp = create_booking(api_event(body=self._body(start_hour=23, duration=2)), None)
        self.assertEqual(400, resp["statusCode"])

    def test_unauthorized_returns_401(self):
        resp = create_booking(api_event(user_id=None, body=self._body()), None)
        self.assertEqual(401, resp["statusCode"])

    def test_success_returns_batch(self):
        resp = create_booking(api_event(body=self._body(duration=2)), None)

        self.assertEqual(201, resp["statusCode"])
        data = json.loads(resp["body"])["data"]
        self.assertEqual("125", data["total_amount"])
        self.assertEqual(2, len(data["bookings"]))
        self.assertEqual("PENDING_PAYMENT", data["bookings"][0]["status"])
        self.assertTrue(data["batch_ref"].startswith("batch_"))

    def test_taken_slot_returns_409(self):
        create_booking(api_event(body=self._body()), None)

        resp = create_booking(api_event(user_id="u_2", body=self._body()), None)

        self.assertEqual(409, resp["statusCode"])
        self.assertEqual(0, json.loads(resp["body"])["data"]["remaining"])

    def test_unknown_resource_returns_404(self):
        resp = create_booking(api_event(body=self._body(resource_id="res_x")), None)
        self.assertEqual(404, resp["statusCode"])


if __name__ == "__main__":
    unittest.main()
