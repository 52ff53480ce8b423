from datetime import date
from decimal import Decimal
from typing import Mapping, Optional

from arena.models.resources import RateCard, Resource

WEEKEND_DAYS = (5, 6)


class RateEngine:
    """Prices a booking from the resource's base rate or its type's rate card.

    ``rate_cards`` is keyed by resource type, so at most one card applies.
    The weekend multiplier is only used when the engine is built with
    ``apply_weekend_multiplier=True`` and a booking date is supplied.
    """

    def __init__(
        self,
        rate_cards: Mapping[str, RateCard],
        apply_weekend_multiplier: bool = False,
    ):
        self.rate_cards = rate_cards
        self.apply_weekend_multiplier = apply_weekend_multiplier

    def rate_card_for(self, resource_type: str) -> Optional[RateCard]:
        return self.rate_cards.get(resource_type)

    def hourly_rate(
        self, resource: Resource, hour: int, booking_date: Optional[date] = None
    ) -> Decimal:
        card = self.rate_card_for(resource.resource_type)
        if card is None:
            return Decimal(resource.hourly_rate)

        rate = card.peak_rate if hour in card.peak_hours else card.base_rate
        if (
            self.apply_weekend_multiplier
            and booking_date is not None
            and booking_date.weekday() in WEEKEND_DAYS
        ):
            rate = rate * card.weekend_multiplier
        return Decimal(rate)

    def price(
        self,
        resource: Resource,
        hour: int,
        duration: int = 1,
        quantity: int = 1,
        booking_date: Optional[date] = None,
    ) -> Decimal:
        total = sum(
            (self.hourly_rate(resource, h, booking_date) for h in range(hour, hour + duration)),
            Decimal("0"),
        )
        return total * quantity
