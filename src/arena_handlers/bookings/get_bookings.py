from arena.models.users import STAFF_ROLES
from arena.utils.custom_response import send_custom_response, to_dict
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import (
    Unauthorized,
    domain_error_response,
    get_identity,
    query_param,
)


def get_user_bookings(event, context):
    try:
        user_id, role = get_identity(event)
    except Unauthorized as err:
        return send_custom_response(401, str(err))

    requested_user_id = query_param(event, "user_id") or user_id
    if requested_user_id != user_id and role not in STAFF_ROLES:
        return send_custom_response(403, "Only staff can view other players' bookings")

    try:
        bookings = get_services().booking_service.get_user_bookings(requested_user_id)
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        200,
        "Bookings retrieved successfully",
        {
            "count": len(bookings),
            "bookings": [to_dict(b) for b in bookings],
        },
    )
