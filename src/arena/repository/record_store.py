import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
)

from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

from arena.utils.constants import SLOTS_TABLE
from arena.utils.custom_exceptions import NotFoundException, SlotCapacityExceeded

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str, Dict[str, Any]], None]

COUNTER_ATTRIBUTE = "booked"


@dataclass(frozen=True)
class SlotCounter:
    """A change to the running quantity booked in one slot.

    With ``capacity`` set the change is refused when it would take the
    slot past it.
    """

    slot_id: str
    delta: int
    capacity: Optional[int] = None


class RecordStore(Protocol):
    def list(self, table_name: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]: ...

    def insert(self, table_name: str, record: Dict[str, Any]) -> Dict[str, Any]: ...

    def insert_many(
        self,
        table_name: str,
        records: Sequence[Dict[str, Any]],
        counters: Sequence[SlotCounter] = (),
    ) -> List[Dict[str, Any]]: ...

    def update(
        self,
        table_name: str,
        record_id: str,
        patch: Dict[str, Any],
        counters: Sequence[SlotCounter] = (),
        unless: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]: ...

    def on_change(self, table_name: str, callback: ChangeCallback) -> None: ...


def to_dynamo(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_dynamo(v) for v in value]
    return value


class DynamoRecordStore:
    """Tenant-scoped record tables on a single DynamoDB table.

    Every logical table lives in its own partition,
    ``pk = TENANT#<tenant>#<TABLE>`` and ``sk = <TABLE>#<id>``. Slot
    counters live the same way under the ``slots`` table and are written in
    the same transaction as the records that claim or release them.
    """

    def __init__(self, table: Table, tenant_id: str):
        self.table = table
        self.client = table.meta.client
        self.tenant_id = tenant_id
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()
        self._subscribers: Dict[str, List[ChangeCallback]] = {}
        self._subscriber_lock = threading.Lock()

    def _pk(self, table_name: str) -> str:
        return f"TENANT#{self.tenant_id}#{table_name.upper()}"

    def _sk(self, table_name: str, record_id: str) -> str:
        return f"{table_name.upper()}#{record_id}"

    def _key(self, table_name: str, record_id: str) -> Dict[str, str]:
        return {"pk": self._pk(table_name), "sk": self._sk(table_name, record_id)}

    def _serialize(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {k: self._serializer.serialize(v) for k, v in to_dynamo(item).items()}

    @staticmethod
    def _strip(item: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in item.items() if k not in ("pk", "sk")}

    def list(self, table_name: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        query = {
            "KeyConditionExpression": (
                Key("pk").eq(self._pk(table_name))
                & Key("sk").begins_with(f"{table_name.upper()}#")
            )
        }
        if filter:
            condition = None
            for name, value in filter.items():
                clause = Attr(name).eq(to_dynamo(value))
                condition = clause if condition is None else condition & clause
            query["FilterExpression"] = condition

        items = []
        try:
            resp = self.table.query(**query)
            items.extend(resp.get("Items", []))
            while "LastEvaluatedKey" in resp:
                resp = self.table.query(
                    **query, ExclusiveStartKey=resp["LastEvaluatedKey"]
                )
                items.extend(resp.get("Items", []))
        except ClientError as err:
            logger.error(f"Error listing {table_name} for {self.tenant_id}: {err}")
            raise
        return [self._strip(item) for item in items]

    def insert(self, table_name: str, record: Dict[str, Any]) -> Dict[str, Any]:
        item = {
            **self._key(table_name, record["id"]),
            **to_dynamo(record),
        }
        try:
            self.table.put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(pk)",
            )
        except ClientError as err:
            logger.error(f"Error inserting {table_name} {record['id']}: {err}")
            raise
        self.notify(table_name, record)
        return record

    def insert_many(
        self,
        table_name: str,
        records: Sequence[Dict[str, Any]],
        counters: Sequence[SlotCounter] = (),
    ) -> List[Dict[str, Any]]:
        """Put every record and apply every counter change, or none of them.

        Raises ``SlotCapacityExceeded`` when a counter would pass its capacity.
        """
        transact_items = [
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": self._serialize({**self._key(table_name, record["id"]), **record}),
                    "ConditionExpression": "attribute_not_exists(pk)",
                }
            }
            for record in records
        ]
        transact_items.extend(self._counter_update(counter) for counter in counters)

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            self._raise_for_counter(err, counters, offset=len(records))
            logger.error(f"Error inserting {len(records)} {table_name}: {err}")
            raise
        for record in records:
            self.notify(table_name, record)
        return list(records)

    def update(
        self,
        table_name: str,
        record_id: str,
        patch: Dict[str, Any],
        counters: Sequence[SlotCounter] = (),
        unless: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Patch one record.

        ``unless`` maps fields to values the record must not currently hold.
        Counter changes are written in the same transaction. A missing record,
        or one that fails ``unless``, raises ``NotFoundException``.
        """
        if not patch:
            raise ValueError("patch must not be empty")
        names = {}
        values = {}
        assignments = []
        for i, (name, value) in enumerate(patch.items()):
            names[f"#f{i}"] = name
            values[f":v{i}"] = to_dynamo(value)
            assignments.append(f"#f{i} = :v{i}")
        conditions = ["attribute_exists(pk)"]
        for i, (name, value) in enumerate((unless or {}).items()):
            names[f"#u{i}"] = name
            values[f":u{i}"] = to_dynamo(value)
            conditions.append(f"#u{i} <> :u{i}")

        update = {
            "UpdateExpression": "SET " + ", ".join(assignments),
            "ExpressionAttributeNames": names,
            "ConditionExpression": " AND ".join(conditions),
        }
        if counters:
            return self._update_with_counters(table_name, record_id, update, values, counters)

        try:
            response = self.table.update_item(
                Key=self._key(table_name, record_id),
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
                **update,
            )
        except ClientError as err:
            if (
                err.response.get("Error", {}).get("Code")
                == "ConditionalCheckFailedException"
            ):
                raise NotFoundException(table_name, record_id, 404)
            logger.error(f"Error updating {table_name} {record_id}: {err}")
            raise
        record = self._strip(response.get("Attributes", {}))
        self.notify(table_name, record)
        return record

    def _update_with_counters(
        self,
        table_name: str,
        record_id: str,
        update: Dict[str, Any],
        values: Dict[str, Any],
        counters: Sequence[SlotCounter],
    ) -> Dict[str, Any]:
        transact_items = [
            {
                "Update": {
                    "TableName": self.table.name,
                    "Key": self._serialize(self._key(table_name, record_id)),
                    "ExpressionAttributeValues": self._serialize(values),
                    **update,
                }
            }
        ]
        transact_items.extend(self._counter_update(counter) for counter in counters)

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            self._raise_for_counter(err, counters, offset=1)
            if self._failed_conditions(err)[:1] == [0]:
                raise NotFoundException(table_name, record_id, 404)
            logger.error(f"Error updating {table_name} {record_id}: {err}")
            raise

        response = self.table.get_item(
            Key=self._key(table_name, record_id), ConsistentRead=True
        )
        record = self._strip(response.get("Item", {}))
        self.notify(table_name, record)
        return record

    def _counter_update(self, counter: SlotCounter) -> Dict[str, Any]:
        values = {
            ":zero": 0,
            ":delta": counter.delta,
            ":id": counter.slot_id,
        }
        update = {
            "TableName": self.table.name,
            "Key": self._serialize(self._key(SLOTS_TABLE, counter.slot_id)),
            "UpdateExpression": "SET #booked = if_not_exists(#booked, :zero) + :delta, #id = :id",
            "ExpressionAttributeNames": {"#booked": COUNTER_ATTRIBUTE, "#id": "id"},
        }
        if counter.capacity is not None:
            values[":limit"] = counter.capacity - counter.delta
            update["ConditionExpression"] = "attribute_not_exists(#booked) OR #booked <= :limit"
            update["ReturnValuesOnConditionCheckFailure"] = "ALL_OLD"
        update["ExpressionAttributeValues"] = self._serialize(values)
        return {"Update": update}

    @staticmethod
    def _failed_conditions(err: ClientError) -> List[int]:
        if err.response.get("Error", {}).get("Code") != "TransactionCanceledException":
            return []
        return [
            i
            for i, reason in enumerate(err.response.get("CancellationReasons", []))
            if reason.get("Code") == "ConditionalCheckFailed"
        ]

    def _raise_for_counter(self, err: ClientError, counters: Sequence[SlotCounter], offset: int):
        reasons = err.response.get("CancellationReasons", [])
        for i in self._failed_conditions(err):
            if i < offset or i - offset >= len(counters):
                continue
            counter = counters[i - offset]
            old = reasons[i].get("Item", {})
            booked = (
                int(self._deserializer.deserialize(old[COUNTER_ATTRIBUTE]))
                if COUNTER_ATTRIBUTE in old
                else counter.capacity
            )
            logger.warning(
                f"Slot {counter.slot_id} holds {booked}, cannot take {counter.delta} "
                f"more under capacity {counter.capacity}"
            )
            raise SlotCapacityExceeded(counter.slot_id, booked) from err

    def on_change(self, table_name: str, callback: ChangeCallback) -> None:
        with self._subscriber_lock:
            callbacks = self._subscribers.setdefault(table_name, [])
            if callback not in callbacks:
                callbacks.append(callback)

    def notify(self, table_name: str, record: Dict[str, Any]) -> None:
        with self._subscriber_lock:
            callbacks = list(self._subscribers.get(table_name, []))
        for callback in callbacks:
            try:
                callback(table_name, record)
            except Exception as err:
                logger.error(
                    f"Change callback {getattr(callback, '__name__', callback)} "
                    f"failed for {table_name}: {err}",
                    exc_info=True,
                )
