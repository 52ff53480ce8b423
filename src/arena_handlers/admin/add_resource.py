from pydantic import ValidationError

from arena.models.users import UserRole
from arena.schemas.admin import ResourceRequest
from arena.utils.custom_response import send_custom_response, to_dict
from arena_handlers.dependencies import get_services
from arena_handlers.request_context import (
    Unauthorized,
    domain_error_response,
    get_identity,
)


def add_resource(event, context):
    try:
        _, role = get_identity(event)
    except Unauthorized as err:
        return send_custom_response(401, str(err))

    if role != UserRole.ADMIN:
        return send_custom_response(403, "Only admins can add resources")

    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    try:
        request_body = ResourceRequest.model_validate_json(event["body"])
    except ValidationError as e:
        formatted = "; ".join(f"{err['msg']}" for err in e.errors())
        return send_custom_response(400, formatted)

    try:
        resource = get_services().resource_service.add_resource(request_body)
    except Exception as err:
        return domain_error_response(err)

    return send_custom_response(
        201, f"Resource {resource.resource_id} added successfully", to_dict(resource)
    )
