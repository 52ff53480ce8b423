from arena.models.users import STAFF_ROLES
from arena.utils.custom_response import send_custom_response
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import (
    Unauthorized,
    domain_error_response,
    get_identity,
    path_param,
)


def cancel_booking(event, context):
    try:
        user_id, role = get_identity(event)
    except Unauthorized as err:
        return send_custom_response(401, str(err))

    booking_id = path_param(event, "booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required in the path")

    try:
        service = get_services().booking_service
        booking = service.get_booking(booking_id)
        if booking.user_id != user_id and role not in STAFF_ROLES:
            return send_custom_response(403, "You can only cancel your own bookings")
        result = service.cancel(booking_id)
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        200,
        "Booking cancelled",
        {
            "booking_id": booking_id,
            "status": result.new_status.value,
            "refund": str(result.refund),
        },
    )
