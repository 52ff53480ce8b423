import logging

from arena_handlers.dependencies import get_services

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def release_holds(event, context):
    """Scheduled sweep for unpaid bookings, only active when a TTL is configured."""
    services = get_services()
    ttl = services.settings.pending_payment_ttl_mins
    if not ttl:
        logger.info("Pending payment TTL not configured; nothing to release")
        return {"released": []}

    released = services.booking_service.release_expired_holds(ttl_minutes=ttl)
    return {"released": [b.booking_id for b in released]}
