from datetime import date

from arena.utils.custom_response import send_custom_response
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import domain_error_response, path_param, query_param


def get_availability(event, context):
    resource_id = path_param(event, "resource_id")
    if not resource_id:
        return send_custom_response(400, "resource_id is required in the path")

    raw_date = query_param(event, "date")
    if not raw_date:
        return send_custom_response(400, "date query parameter is required")
    try:
        booking_date = date.fromisoformat(raw_date)
    except ValueError:
        return send_custom_response(400, "date must be YYYY-MM-DD")

    try:
        services = get_services()
        resource = services.store.get_resource(resource_id)
        remaining = services.availability.day_availability(resource, booking_date)
        slots = [
            {
                "hour": hour,
                "remaining": left,
                "price": str(services.rate_engine.price(resource, hour, 1, 1, booking_date)),
            }
            for hour, left in remaining.items()
        ]
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        200,
        "Availability retrieved successfully",
        {
            "resource_id": resource_id,
            "date": booking_date.isoformat(),
            "capacity": resource.capacity,
            "mode": resource.mode.value,
            "slots": slots,
        },
    )
