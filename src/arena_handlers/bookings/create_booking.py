from pydantic import ValidationError

from arena.schemas.bookings import BookingRequest
from arena.utils.custom_response import send_custom_response, to_dict
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import (
    Unauthorized,
    domain_error_response,
    get_identity,
)


def create_booking(event, context):
    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    try:
        request_body = BookingRequest.model_validate_json(event["body"])
    except ValidationError as e:
        formatted = "; ".join(f"{err['msg']}" for err in e.errors())
        return send_custom_response(400, formatted)

    try:
        user_id, _ = get_identity(event)
    except Unauthorized as err:
        return send_custom_response(401, str(err))

    try:
        bookings = get_services().booking_service.create(request_body, user_id)
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        201,
        "Booking created successfully",
        {
            "batch_ref": bookings[0].batch_ref,
            "total_amount": str(sum(b.total_amount for b in bookings)),
            "bookings": [to_dict(b) for b in bookings],
        },
    )
