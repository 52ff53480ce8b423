from arena.models.users import SESSION_ROLES
from arena.utils.custom_response import send_custom_response
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import (
    Unauthorized,
    domain_error_response,
    get_identity,
    path_param,
)


def complete_booking(event, context):
    try:
        _, role = get_identity(event)
    except Unauthorized as err:
        return send_custom_response(401, str(err))

    if role not in SESSION_ROLES:
        return send_custom_response(403, "Only staff or trainers can complete sessions")

    booking_id = path_param(event, "booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required in the path")

    try:
        booking = get_services().booking_service.complete(booking_id)
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        200,
        "Booking completed",
        {"booking_id": booking.booking_id, "status": booking.status.value},
    )
