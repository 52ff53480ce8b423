import json
import unittest
from decimal import Decimal
from unittest.mock import patch

from arena_handlers.admin.add_rate_card import add_rate_card
from arena_handlers.admin.add_resource import add_resource
from arena_handlers.admin.update_policy import update_policy
from factories import api_event, make_services


class AdminHandlerTests(unittest.TestCase):

    def setUp(self):
        self.services = make_services()
        self.patches = [
            patch(f"arena_handlers.admin.{name}.get_services", return_value=self.services)
            for name in ("add_resource", "add_rate_card", "update_policy")
        ]
        for p in self.patches:
            p.start()

    def tearDown(self):
        for p in self.patches:
            p.stop()

    def _event(self, body, role="ADMIN", query=None):
        return api_event(user_id="admin_1", role=role, body=json.dumps(body), query=query)

    def test_add_resource(self):
        resp = add_resource(
            self._event(
                {"name": "Tennis Court", "resource_type": "Tennis", "hourly_rate": "30"}
            ),
            None,
        )

        self.assertEqual(201, resp["statusCode"])
        resource_id = json.loads(resp["body"])["data"]["resource_id"]
        self.assertIn(resource_id, self.services.store.resources)

    def test_add_exclusive_resource_with_capacity_rejected(self):
        resp = add_resource(
            self._event(
                {
                    "name": "Court",
                    "resource_type": "Tennis",
                    "mode": "EXCLUSIVE",
                    "capacity": 2,
                    "hourly_rate": "30",
                }
            ),
            None,
        )
        self.assertEqual(400, resp["statusCode"])

    def test_staff_cannot_add_resource(self):
        resp = add_resource(
            self._event({"name": "X", "resource_type": "X", "hourly_rate": "1"}, role="STAFF"),
            None,
        )
        self.assertEqual(403, resp["statusCode"])

    def test_add_rate_card_conflict_then_replace(self):
        body = {
            "name": "Courts v2",
            "resource_type": "Basketball",
            "base_rate": "60",
            "peak_rate": "90",
            "peak_hours": [18, 19],
        }

        conflict = add_rate_card(self._event(body), None)
        replaced = add_rate_card(self._event(body, query={"replace": "true"}), None)

        self.assertEqual(409, conflict["statusCode"])
        self.assertEqual(200, replaced["statusCode"])
        self.assertEqual(Decimal("60"), self.services.store.rate_cards["Basketball"].base_rate)

    def test_update_policy(self):
        resp = update_policy(self._event({"refund_percentage": "50"}), None)

        self.assertEqual(200, resp["statusCode"])
        self.assertEqual(Decimal("50"), self.services.store.policy.refund_percentage)
        self.assertEqual(200, self.services.store.policy.gps_radius_meters)

    def test_update_policy_rejects_out_of_range(self):
        resp = update_policy(self._event({"refund_percentage": "150"}), None)
        self.assertEqual(400, resp["statusCode"])


if __name__ == "__main__":
    unittest.main()
