import os
from dataclasses import dataclass
from typing import Mapping, Optional

from arena.utils.constants import DEFAULT_REGION, DEFAULT_TENANT_ID

TRUTHY = {"1", "true", "yes", "on"}


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in TRUTHY


@dataclass(frozen=True)
class Settings:
    table_name: Optional[str] = None
    region: str = DEFAULT_REGION
    tenant_id: str = DEFAULT_TENANT_ID
    apply_weekend_rate: bool = False
    enforce_cancel_window: bool = False
    pending_payment_ttl_mins: Optional[int] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        ttl_raw = env.get("ARENA_PENDING_PAYMENT_TTL_MINS")
        ttl = int(ttl_raw) if ttl_raw else None
        if ttl is not None and ttl <= 0:
            raise ValueError("ARENA_PENDING_PAYMENT_TTL_MINS must be positive")
        return cls(
            table_name=env.get("TABLE_NAME"),
            region=env.get("AWS_REGION", DEFAULT_REGION),
            tenant_id=env.get("TENANT_ID", DEFAULT_TENANT_ID),
            apply_weekend_rate=_flag(env, "ARENA_APPLY_WEEKEND_RATE"),
            enforce_cancel_window=_flag(env, "ARENA_ENFORCE_CANCEL_WINDOW"),
            pending_payment_ttl_mins=ttl,
        )
