import threading
import unittest
from datetime import date

from arena.utils.slot_locks import SlotLocks

DAY = date(2030, 3, 14)


class TestSlotLocks(unittest.TestCase):
    def test_hold_releases_on_exit(self):
        locks = SlotLocks()
        keys = [("res_1", DAY, 10), ("res_1", DAY, 11)]
        with locks.hold(keys):
            pass
        for key in keys:
            lock = locks._lock_for(key)
            self.assertTrue(lock.acquire(blocking=False))
            lock.release()

    def test_hold_releases_on_error(self):
        locks = SlotLocks()
        key = ("res_1", DAY, 10)
        with self.assertRaises(RuntimeError):
            with locks.hold([key]):
                raise RuntimeError("boom")
        self.assertFalse(locks._lock_for(key).locked())

    def test_duplicate_keys_do_not_deadlock(self):
        locks = SlotLocks()
        key = ("res_1", DAY, 10)
        with locks.hold([key, key]):
            self.assertTrue(locks._lock_for(key).locked())

    def test_same_key_shares_lock(self):
        locks = SlotLocks()
        self.assertIs(locks._lock_for(("r", DAY, 1)), locks._lock_for(("r", DAY, 1)))

    def test_overlapping_holds_in_opposite_order_complete(self):
        locks = SlotLocks()
        a = ("res_1", DAY, 10)
        b = ("res_1", DAY, 11)
        done = []

        def worker(keys):
            for _ in range(200):
                with locks.hold(keys):
                    pass
            done.append(True)

        threads = [
            threading.Thread(target=worker, args=([a, b],)),
            threading.Thread(target=worker, args=([b, a],)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        self.assertEqual(2, len(done))


if __name__ == "__main__":
    unittest.main()
