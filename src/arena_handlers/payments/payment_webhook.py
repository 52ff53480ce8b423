import hmac
import json
import logging
import os

from arena.utils.custom_response import send_custom_response
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import domain_error_response

logger = logging.getLogger()
logger.setLevel(logging.INFO)

WEBHOOK_SECRET_HEADER = "x-webhook-secret"
WEBHOOK_SECRET_ENV = "PAYMENT_WEBHOOK_SECRET"


def _secret_matches(event, expected: str) -> bool:
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
    return hmac.compare_digest(headers.get(WEBHOOK_SECRET_HEADER, ""), expected)


def payment_webhook(event, context):
    """Payment provider callback: confirms the payment carrying ``reference``."""
    expected = os.environ.get(WEBHOOK_SECRET_ENV)
    if not expected:
        logger.error(f"{WEBHOOK_SECRET_ENV} is not set; refusing payment callback")
        return send_custom_response(500, "Payment webhook is not configured")
    if not _secret_matches(event, expected):
        return send_custom_response(401, "Unauthorized")

    if not event.get("body"):
        return send_custom_response(400, "Request body is required")
    try:
        body = json.loads(event["body"])
    except json.JSONDecodeError:
        return send_custom_response(400, "Invalid JSON body")

    reference = body.get("reference")
    if not reference:
        return send_custom_response(400, "reference is required")
    if str(body.get("status", "PAID")).upper() != "PAID":
        return send_custom_response(202, "Ignored non-payment event")

    try:
        txn = get_services().booking_service.confirm_payment_by_reference(reference)
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        200,
        "Payment confirmed",
        {"transaction_id": txn.transaction_id, "status": txn.status.value},
    )
