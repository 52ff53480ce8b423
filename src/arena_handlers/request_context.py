import logging
from typing import Optional, Tuple

from arena.models.users import UserRole
from arena.utils.custom_exceptions import (
    CheckInRejected,
    InvalidStateTransition,
    NotFoundException,
    PersistenceUnavailable,
    RateCardConflict,
    SlotUnavailable,
)
from arena.utils.custom_response import send_custom_response, to_dict

logger = logging.getLogger(__name__)


class Unauthorized(Exception):
    pass


def get_identity(event) -> Tuple[str, Optional[UserRole]]:
    """user id and role resolved upstream by the API Gateway authorizer"""
    try:
        authorizer = event["requestContext"]["authorizer"]
        user_id = authorizer["user_id"]
    except (KeyError, TypeError):
        raise Unauthorized("Unauthorized")
    if not user_id:
        raise Unauthorized("Unauthorized")

    role = None
    role_raw = authorizer.get("role")
    if role_raw:
        try:
            role = UserRole(role_raw.upper())
        except ValueError:
            role = None
    return user_id, role


def path_param(event, name: str) -> Optional[str]:
    return (event.get("pathParameters") or {}).get(name)


def query_param(event, name: str) -> Optional[str]:
    return (event.get("queryStringParameters") or {}).get(name)


def domain_error_response(err: Exception):
    if isinstance(err, NotFoundException):
        return send_custom_response(err.status_code, str(err))
    if isinstance(err, SlotUnavailable):
        return send_custom_response(
            409,
            str(err),
            {
                "resource_id": err.resource_id,
                "date": err.booking_date.isoformat(),
                "hour": err.hour,
                "remaining": err.remaining,
            },
        )
    if isinstance(err, (InvalidStateTransition, RateCardConflict)):
        return send_custom_response(409, str(err))
    if isinstance(err, CheckInRejected):
        return send_custom_response(422, str(err), {"reason": err.reason.value})
    if isinstance(err, PersistenceUnavailable):
        return send_custom_response(
            503, str(err), {"accepted": [to_dict(record) for record in err.records]}
        )
    if isinstance(err, ValueError):
        return send_custom_response(400, str(err))
    logger.exception(f"Unhandled error: {err}")
    return send_custom_response(500, "Internal server error")
