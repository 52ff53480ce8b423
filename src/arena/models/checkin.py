from enum import Enum
from dataclasses import dataclass
from typing import Optional


class CheckInReason(str, Enum):
    NOT_CONFIRMED = "booking not confirmed"
    OUTSIDE_WINDOW = "outside check-in window"
    TOO_FAR = "too far from venue"


@dataclass(frozen=True)
class CheckInResult:
    accepted: bool
    reason: Optional[CheckInReason] = None
