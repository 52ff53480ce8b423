import logging

from boto3.dynamodb.types import TypeDeserializer

from arena_handlers.dependencies import get_services

logger = logging.getLogger()
logger.setLevel(logging.INFO)

deserializer = TypeDeserializer()


def _table_for(pk: str, tenant_id: str):
    prefix = f"TENANT#{tenant_id}#"
    if not pk.startswith(prefix):
        return None
    return pk[len(prefix):].lower()


def record_changes(event, context):
    """DynamoDB stream consumer that keeps the warm store in step with other writers."""
    services = get_services()
    applied = 0
    for record in event.get("Records", []):
        if record.get("eventName") not in ("INSERT", "MODIFY"):
            continue
        image = record.get("dynamodb", {}).get("NewImage")
        if not image:
            continue

        item = {k: deserializer.deserialize(v) for k, v in image.items()}
        table_name = _table_for(item.get("pk", ""), services.settings.tenant_id)
        if table_name is None:
            continue
        payload = {k: v for k, v in item.items() if k not in ("pk", "sk")}
        services.records.notify(table_name, payload)
        applied += 1

    logger.info(f"Applied {applied} change(s) from stream")
    return {"applied": applied}
