from pydantic import ValidationError

from arena.models.users import STAFF_ROLES
from arena.schemas.checkin import CheckInRequest
from arena.utils.custom_response import send_custom_response
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import (
    Unauthorized,
    domain_error_response,
    get_identity,
    path_param,
)


def check_in(event, context):
    try:
        user_id, role = get_identity(event)
    except Unauthorized as err:
        return send_custom_response(401, str(err))

    booking_id = path_param(event, "booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required in the path")

    try:
        request_body = CheckInRequest.model_validate_json(event.get("body") or "{}")
    except ValidationError as e:
        formatted = "; ".join(f"{err['msg']}" for err in e.errors())
        return send_custom_response(400, formatted)

    location = request_body.location()
    is_staff = role in STAFF_ROLES
    # only staff may skip the geofence with a manual check-in
    if location is None and not is_staff:
        return send_custom_response(400, "lat and lng are required for self check-in")

    try:
        service = get_services().booking_service
        booking = service.get_booking(booking_id)
        if booking.user_id != user_id and not is_staff:
            return send_custom_response(403, "You can only check in to your own bookings")
        booking = service.check_in(booking_id, location)
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        200,
        "Check-in successful",
        {
            "booking_id": booking.booking_id,
            "status": booking.status.value,
            "checked_in_at": booking.checked_in_at.isoformat(),
        },
    )
