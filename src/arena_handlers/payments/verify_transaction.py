from arena.models.users import STAFF_ROLES
from arena.utils.custom_response import send_custom_response
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import (
    Unauthorized,
    domain_error_response,
    get_identity,
    path_param,
)


def verify_transaction(event, context):
    try:
        _, role = get_identity(event)
    except Unauthorized as err:
        return send_custom_response(401, str(err))

    if role not in STAFF_ROLES:
        return send_custom_response(403, "Only staff or admins can verify payments")

    transaction_id = path_param(event, "transaction_id")
    if not transaction_id:
        return send_custom_response(400, "transaction_id is required in the path")

    try:
        services = get_services()
        txn = services.ledger.verify(transaction_id)
        booking = services.store.get_booking(txn.booking_id)
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        200,
        "Transaction verified",
        {
            "transaction_id": txn.transaction_id,
            "status": txn.status.value,
            "booking_id": booking.booking_id,
            "booking_status": booking.status.value,
        },
    )
