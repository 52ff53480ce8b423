import unittest
from unittest.mock import MagicMock, patch

from boto3.dynamodb.types import TypeSerializer

from arena.models.bookings import BookingStatus
from arena.repository.booking_repo import BookingRepository
from arena.repository.record_store import DynamoRecordStore
from arena_handlers.sync.record_changes import record_changes
from factories import make_booking, make_services, make_store

serializer = TypeSerializer()


def stream_record(item, event_name="MODIFY"):
    return {
        "eventName": event_name,
        "dynamodb": {"NewImage": {k: serializer.serialize(v) for k, v in item.items()}},
    }


class RecordChangesTests(unittest.TestCase):

    def setUp(self):
        self.booking = make_booking(status=BookingStatus.PENDING_PAYMENT)
        store = make_store(bookings=[self.booking])
        self.services = make_services(store)
        self.services.records = DynamoRecordStore(table=MagicMock(), tenant_id="tenant_1")
        store.subscribe(self.services.records)
        self.p_services = patch(
            "arena_handlers.sync.record_changes.get_services", return_value=self.services
        )
        self.p_services.start()

    def tearDown(self):
        self.p_services.stop()

    def _item(self, pk="TENANT#tenant_1#BOOKINGS"):
        record = BookingRepository.to_record(make_booking(status=BookingStatus.CONFIRMED))
        record = {k: v for k, v in record.items() if v is not None}
        return {"pk": pk, "sk": "BOOKINGS#bk_1", **record}

    def test_modify_updates_local_booking(self):
        result = record_changes({"Records": [stream_record(self._item())]}, None)

        self.assertEqual({"applied": 1}, result)
        self.assertEqual(BookingStatus.CONFIRMED, self.booking.status)

    def test_other_tenant_is_skipped(self):
        item = self._item(pk="TENANT#tenant_2#BOOKINGS")

        result = record_changes({"Records": [stream_record(item)]}, None)

        self.assertEqual({"applied": 0}, result)
        self.assertEqual(BookingStatus.PENDING_PAYMENT, self.booking.status)

    def test_remove_events_are_skipped(self):
        result = record_changes(
            {"Records": [stream_record(self._item(), event_name="REMOVE")]}, None
        )
        self.assertEqual({"applied": 0}, result)


if __name__ == "__main__":
    unittest.main()
