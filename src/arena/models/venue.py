from decimal import Decimal
from dataclasses import dataclass, field

from arena.utils.constants import (
    DEFAULT_CANCEL_WINDOW_HRS,
    DEFAULT_CHECK_IN_WINDOW_MINS,
    DEFAULT_GPS_RADIUS_METERS,
    DEFAULT_NO_SHOW_PENALTY,
    DEFAULT_REFUND_PERCENTAGE,
)


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass
class Tenant:
    tenant_id: str
    name: str
    location: GeoPoint
    timezone: str = "UTC"
    currency: str = "USD"
    address: str = ""


@dataclass
class Policy:
    """Tenant-wide operational rules, one per tenant."""

    policy_id: str
    cancel_window_hrs: int = DEFAULT_CANCEL_WINDOW_HRS
    refund_percentage: Decimal = field(
        default_factory=lambda: Decimal(DEFAULT_REFUND_PERCENTAGE)
    )
    gps_radius_meters: int = DEFAULT_GPS_RADIUS_METERS
    check_in_window_mins: int = DEFAULT_CHECK_IN_WINDOW_MINS
    no_show_penalty: Decimal = field(
        default_factory=lambda: Decimal(DEFAULT_NO_SHOW_PENALTY)
    )
