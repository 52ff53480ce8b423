from enum import Enum


class UserRole(Enum):
    PLAYER = "PLAYER"
    STAFF = "STAFF"
    ADMIN = "ADMIN"
    TRAINER = "TRAINER"


STAFF_ROLES = frozenset({UserRole.STAFF, UserRole.ADMIN})
SESSION_ROLES = frozenset({UserRole.STAFF, UserRole.TRAINER, UserRole.ADMIN})
