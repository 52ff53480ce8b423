from datetime import date
from typing import Sequence

from arena.models.checkin import CheckInReason


class NotFoundException(Exception):
    def __init__(self, resource: str, identifier: str, status_code: int = 404):
        self.resource = resource
        self.identifier = identifier
        self.status_code = status_code

    def __str__(self):
        return f"{self.resource} '{self.identifier}' not found"


class ResourceNotFound(NotFoundException):
    def __init__(self, resource_id: str):
        super().__init__("resource", resource_id, 404)


class BookingNotFound(NotFoundException):
    def __init__(self, booking_id: str):
        super().__init__("booking", booking_id, 404)


class TransactionNotFound(NotFoundException):
    def __init__(self, transaction_id: str):
        super().__init__("transaction", transaction_id, 404)


class SlotUnavailable(Exception):
    def __init__(
        self,
        resource_id: str,
        booking_date: date,
        hour: int,
        remaining: int,
        requested: int,
    ):
        self.resource_id = resource_id
        self.booking_date = booking_date
        self.hour = hour
        self.remaining = remaining
        self.requested = requested

    def __str__(self):
        return (
            f"resource '{self.resource_id}' has {self.remaining} left at "
            f"{self.booking_date.isoformat()} {self.hour:02d}:00, "
            f"{self.requested} requested"
        )


class InvalidStateTransition(Exception):
    def __init__(self, entity_id: str, current: str, target: str):
        self.entity_id = entity_id
        self.current = current
        self.target = target

    def __str__(self):
        return f"'{self.entity_id}' cannot move from {self.current} to {self.target}"


class CheckInRejected(Exception):
    def __init__(self, booking_id: str, reason: CheckInReason):
        self.booking_id = booking_id
        self.reason = reason

    def __str__(self):
        return f"check-in rejected for '{self.booking_id}': {self.reason.value}"


class PersistenceUnavailable(Exception):
    """A record store write failed after the in-memory state was accepted.

    ``records`` holds the models that exist locally but may not be durable.
    """

    def __init__(self, message: str, records: Sequence = ()):
        super().__init__(message)
        self.records = list(records)


class RateCardConflict(Exception):
    pass


class SlotCapacityExceeded(Exception):
    """The durable slot counter refused a claim; ``booked`` is what it already held."""

    def __init__(self, slot_id: str, booked: int):
        self.slot_id = slot_id
        self.booked = booked

    def __str__(self):
        return f"slot '{self.slot_id}' already holds {self.booked}"
