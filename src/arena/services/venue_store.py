import logging
import threading
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from arena.models.bookings import BOOKING_TRANSITIONS, Booking
from arena.models.resources import RateCard, Resource
from arena.models.transactions import PaymentStatus, Transaction
from arena.models.venue import Policy, Tenant
from arena.repository.booking_repo import BookingRepository
from arena.repository.policy_repo import PolicyRepository
from arena.repository.record_store import RecordStore
from arena.repository.resource_repo import ResourceRepository
from arena.repository.transaction_repo import TransactionRepository
from arena.utils.constants import (
    BOOKINGS_TABLE,
    POLICIES_TABLE,
    RATE_CARDS_TABLE,
    RESOURCES_TABLE,
    TRANSACTIONS_TABLE,
)
from arena.utils.custom_exceptions import (
    BookingNotFound,
    NotFoundException,
    PersistenceUnavailable,
    RateCardConflict,
    ResourceNotFound,
    SlotUnavailable,
    TransactionNotFound,
)
from arena.utils.slot_locks import SlotLocks

logger = logging.getLogger(__name__)


class VenueStore:
    """Single owner of a tenant's resources, pricing, policy, bookings and ledger.

    Services receive the store by injection. Collections are mutated in
    memory first and then written through to the repositories when they are
    configured; a failed write raises ``PersistenceUnavailable`` without
    undoing the in-memory change. New bookings are the exception: the
    durable slot counters can still refuse them, and then they are undone.
    """

    def __init__(
        self,
        tenant: Tenant,
        policy: Policy,
        resources: Iterable[Resource] = (),
        rate_cards: Iterable[RateCard] = (),
        bookings: Iterable[Booking] = (),
        transactions: Iterable[Transaction] = (),
        booking_repo: Optional[BookingRepository] = None,
        transaction_repo: Optional[TransactionRepository] = None,
        resource_repo: Optional[ResourceRepository] = None,
        policy_repo: Optional[PolicyRepository] = None,
    ):
        self.tenant = tenant
        self.policy = policy
        self.resources: Dict[str, Resource] = {}
        self.rate_cards: Dict[str, RateCard] = {}
        self.bookings: Dict[str, Booking] = {b.booking_id: b for b in bookings}
        self.transactions: List[Transaction] = []
        self._transactions_by_id: Dict[str, Transaction] = {}

        self.booking_repo = booking_repo
        self.transaction_repo = transaction_repo
        self.resource_repo = resource_repo
        self.policy_repo = policy_repo

        self.lock = threading.RLock()
        self.slot_locks = SlotLocks()

        for resource in resources:
            resource.validate()
            self.resources[resource.resource_id] = resource
        for card in rate_cards:
            self.put_rate_card(card)
        for txn in transactions:
            self.append_transaction(txn)

    @classmethod
    def load(
        cls,
        tenant: Tenant,
        default_policy: Policy,
        booking_repo: BookingRepository,
        transaction_repo: TransactionRepository,
        resource_repo: ResourceRepository,
        policy_repo: PolicyRepository,
    ) -> "VenueStore":
        policy = policy_repo.get_policy() or default_policy
        store = cls(
            tenant=tenant,
            policy=policy,
            resources=resource_repo.list_resources(),
            rate_cards=resource_repo.list_rate_cards(),
            bookings=booking_repo.list_bookings(),
            transactions=transaction_repo.list_transactions(),
            booking_repo=booking_repo,
            transaction_repo=transaction_repo,
            resource_repo=resource_repo,
            policy_repo=policy_repo,
        )
        logger.info(
            f"Loaded tenant {tenant.tenant_id}: {len(store.resources)} resources, "
            f"{len(store.bookings)} bookings, {len(store.transactions)} transactions"
        )
        return store

    # lookups

    def get_resource(self, resource_id: str) -> Resource:
        resource = self.resources.get(resource_id)
        if resource is None:
            raise ResourceNotFound(resource_id)
        return resource

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    def get_transaction(self, transaction_id: str) -> Transaction:
        txn = self._transactions_by_id.get(transaction_id)
        if txn is None:
            raise TransactionNotFound(transaction_id)
        return txn

    def find_bookings(self, predicate: Callable[[Booking], bool]) -> List[Booking]:
        with self.lock:
            return [b for b in self.bookings.values() if predicate(b)]

    def active_bookings_at(self, resource_id: str, booking_date: date, hour: int) -> List[Booking]:
        return self.find_bookings(
            lambda b: b.is_active and b.occupies(resource_id, booking_date, hour)
        )

    def find_transactions(self, predicate: Callable[[Transaction], bool]) -> List[Transaction]:
        with self.lock:
            return [t for t in self.transactions if predicate(t)]

    # in-memory mutation

    def add_bookings(self, bookings: Sequence[Booking]):
        with self.lock:
            for booking in bookings:
                self.bookings[booking.booking_id] = booking

    def discard_bookings(self, bookings: Sequence[Booking], transactions: Sequence[Transaction]):
        with self.lock:
            for booking in bookings:
                self.bookings.pop(booking.booking_id, None)
            for txn in transactions:
                if self._transactions_by_id.pop(txn.transaction_id, None) is not None:
                    self.transactions.remove(txn)

    def append_transaction(self, txn: Transaction):
        with self.lock:
            if txn.transaction_id in self._transactions_by_id:
                raise ValueError(f"transaction '{txn.transaction_id}' already recorded")
            self.transactions.append(txn)
            self._transactions_by_id[txn.transaction_id] = txn

    def put_resource(self, resource: Resource):
        resource.validate()
        with self.lock:
            self.resources[resource.resource_id] = resource

    def put_rate_card(self, card: RateCard, replace: bool = False):
        with self.lock:
            existing = self.rate_cards.get(card.resource_type)
            if existing and not replace and existing.rate_card_id != card.rate_card_id:
                raise RateCardConflict(
                    f"rate card '{existing.rate_card_id}' already prices {card.resource_type}"
                )
            self.rate_cards[card.resource_type] = card

    # write-through persistence

    def _write(self, description: str, records: Sequence[Any], write: Callable, *args):
        try:
            write(*args)
        except (ClientError, BotoCoreError, NotFoundException) as err:
            logger.error(f"Could not persist {description}: {err}")
            raise PersistenceUnavailable(
                f"could not persist {description}", records
            ) from err

    def save_new_bookings(
        self,
        resource: Resource,
        bookings: Sequence[Booking],
        transactions: Sequence[Transaction],
    ):
        """Claim the slots durably, then write the payments.

        The record store has the last word on capacity. When another writer
        filled a slot first the bookings and their payments are dropped from
        memory and ``SlotUnavailable`` is raised.
        """
        records = [*bookings, *transactions]
        if self.booking_repo:
            try:
                self._write(
                    f"{len(bookings)} booking(s) on {resource.resource_id}", records,
                    self.booking_repo.add_bookings, bookings, resource.capacity,
                )
            except SlotUnavailable:
                self.discard_bookings(bookings, transactions)
                raise
        if self.transaction_repo:
            for txn in transactions:
                self._write(
                    f"transaction {txn.transaction_id}", records,
                    self.transaction_repo.add_transaction, txn,
                )

    def save_booking_status(self, booking: Booking):
        if self.booking_repo:
            self._write(
                f"booking {booking.booking_id}", [booking],
                self.booking_repo.update_booking_status, booking,
            )

    def save_new_transaction(self, txn: Transaction):
        if self.transaction_repo:
            self._write(
                f"transaction {txn.transaction_id}", [txn],
                self.transaction_repo.add_transaction, txn,
            )

    def save_transaction_status(self, txn: Transaction):
        if self.transaction_repo:
            self._write(
                f"transaction {txn.transaction_id}", [txn],
                self.transaction_repo.update_transaction_status, txn,
            )

    def save_resource(self, resource: Resource, new: bool):
        if self.resource_repo:
            write = self.resource_repo.add_resource if new else self.resource_repo.update_resource
            self._write(f"resource {resource.resource_id}", [resource], write, resource)

    def save_rate_card(self, card: RateCard, new: bool):
        if self.resource_repo:
            write = self.resource_repo.add_rate_card if new else self.resource_repo.update_rate_card
            self._write(f"rate card {card.rate_card_id}", [card], write, card)

    def save_policy(self):
        if self.policy_repo:
            self._write(
                f"policy {self.policy.policy_id}", [self.policy],
                self.policy_repo.save_policy, self.policy,
            )

    def save_tenant_location(self):
        if self.policy_repo:
            self._write(
                f"tenant {self.tenant.tenant_id}", [self.tenant],
                self.policy_repo.update_tenant_location, self.tenant,
            )

    # change notifications

    def subscribe(self, record_store: RecordStore):
        for table_name in (
            BOOKINGS_TABLE,
            TRANSACTIONS_TABLE,
            RESOURCES_TABLE,
            RATE_CARDS_TABLE,
            POLICIES_TABLE,
        ):
            record_store.on_change(table_name, self.apply_change)

    def apply_change(self, table_name: str, record: Dict[str, Any]):
        """Merge a record written elsewhere into the local collections.

        Capacity is not rechecked here; the write path that accepted the
        record already made that decision.
        """
        with self.lock:
            if table_name == BOOKINGS_TABLE:
                self._merge_booking(BookingRepository.from_record(record))
            elif table_name == TRANSACTIONS_TABLE:
                self._merge_transaction(TransactionRepository.from_record(record))
            elif table_name == RESOURCES_TABLE:
                resource = ResourceRepository.resource_from_record(record)
                self.resources[resource.resource_id] = resource
            elif table_name == RATE_CARDS_TABLE:
                card = ResourceRepository.rate_card_from_record(record)
                self.rate_cards[card.resource_type] = card
            elif table_name == POLICIES_TABLE:
                self.policy = PolicyRepository.policy_from_record(record)
            else:
                logger.warning(f"Ignoring change for unknown table {table_name}")

    def _merge_booking(self, incoming: Booking):
        local = self.bookings.get(incoming.booking_id)
        if local is None:
            self.bookings[incoming.booking_id] = incoming
            return
        # total_amount is snapshotted and never taken from a change feed;
        # stale statuses that would move a booking backwards are dropped
        if incoming.status in BOOKING_TRANSITIONS[local.status]:
            local.status = incoming.status
        if incoming.checked_in_at and local.checked_in_at is None:
            local.checked_in_at = incoming.checked_in_at

    def _merge_transaction(self, incoming: Transaction):
        local = self._transactions_by_id.get(incoming.transaction_id)
        if local is None:
            self.transactions.append(incoming)
            self._transactions_by_id[incoming.transaction_id] = incoming
        elif local.status == PaymentStatus.PENDING:
            local.status = incoming.status
