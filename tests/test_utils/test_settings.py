import unittest

from arena.utils.settings import Settings


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        settings = Settings.from_env({})
        self.assertIsNone(settings.table_name)
        self.assertEqual("ap-south-1", settings.region)
        self.assertEqual("tenant_1", settings.tenant_id)
        self.assertFalse(settings.apply_weekend_rate)
        self.assertFalse(settings.enforce_cancel_window)
        self.assertIsNone(settings.pending_payment_ttl_mins)

    def test_reads_environment(self):
        settings = Settings.from_env(
            {
                "TABLE_NAME": "arena",
                "AWS_REGION": "us-west-2",
                "TENANT_ID": "tenant_9",
                "ARENA_APPLY_WEEKEND_RATE": "true",
                "ARENA_ENFORCE_CANCEL_WINDOW": "1",
                "ARENA_PENDING_PAYMENT_TTL_MINS": "30",
            }
        )
        self.assertEqual("arena", settings.table_name)
        self.assertEqual("us-west-2", settings.region)
        self.assertEqual("tenant_9", settings.tenant_id)
        self.assertTrue(settings.apply_weekend_rate)
        self.assertTrue(settings.enforce_cancel_window)
        self.assertEqual(30, settings.pending_payment_ttl_mins)

    def test_unknown_flag_value_is_false(self):
        settings = Settings.from_env({"ARENA_APPLY_WEEKEND_RATE": "maybe"})
        self.assertFalse(settings.apply_weekend_rate)

    def test_non_positive_ttl_raises(self):
        with self.assertRaises(ValueError):
            Settings.from_env({"ARENA_PENDING_PAYMENT_TTL_MINS": "0"})


if __name__ == "__main__":
    unittest.main()
