"""
Domain models for the load generator.

Defines the synthetic metric item, the four throughput tiers with their static
profiles, and the Influx line-protocol record sent per chunk. These models are
shared by the pool, the tier workers and the orchestrator.
"""
from __future__ import annotations

import enum
import random
from typing import Dict, List, Tuple

from pydantic import BaseModel, Field

VALUE_MIN = -1000
VALUE_MAX = 1000  # exclusive
ITEM_NAME_PREFIX = "Flux"


def item_name(item_id: int) -> str:
    """Fixed-width name for a sequential item id (7 -> ``Flux00007``)."""
    return f"{ITEM_NAME_PREFIX}{item_id:05d}"


class MetricItem(BaseModel):
    """
    A single synthetic metric series.

    The value is regenerated on every read; the item itself lives for the
    whole process and is owned by exactly one tier.
    """

    id: int = Field(..., ge=1, description="Sequential identity, starting at 1.")
    value: int = Field(0, description="Last generated value.")

    @property
    def name(self) -> str:
        return item_name(self.id)

    def read(self, rng: random.Random) -> str:
        """Regenerate the value from ``rng`` and return the ``name=value`` field."""
        self.value = rng.randrange(VALUE_MIN, VALUE_MAX)
        return f"{self.name}={self.value}"


class Tier(str, enum.Enum):
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"
    VERY_SLOW = "very_slow"

    @property
    def label(self) -> str:
        return _TIER_LABELS[self]

    @property
    def profile(self) -> TierProfile:
        return TIER_PROFILES[self]

    @classmethod
    def parse(cls, value: str) -> Tier:
        """Resolve a tier from its value or display label, case-insensitively."""
        normalized = value.strip().lower().replace("-", "_")
        for tier in cls:
            if normalized in (tier.value, tier.label.lower()):
                return tier
        raise ValueError(
            f"Unknown tier '{value}'. Available: {', '.join(t.value for t in cls)}"
        )


class TierProfile(BaseModel):
    """
    Static parameters of a tier: how many items it claims at startup and how
    long it sleeps between cycles.
    """

    quota: int = Field(..., ge=0, description="Items claimed from the pool at startup.")
    delay_ms: int = Field(..., ge=0, description="Pause between cycles, in milliseconds.")

    model_config = {"frozen": True}

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0


_TIER_LABELS: Dict[Tier, str] = {
    Tier.FAST: "Fast",
    Tier.MEDIUM: "Medium",
    Tier.SLOW: "Slow",
    Tier.VERY_SLOW: "VerySlow",
}

TIER_PROFILES: Dict[Tier, TierProfile] = {
    Tier.FAST: TierProfile(quota=2000, delay_ms=1),
    Tier.MEDIUM: TierProfile(quota=2000, delay_ms=50),
    Tier.SLOW: TierProfile(quota=2000, delay_ms=500),
    Tier.VERY_SLOW: TierProfile(quota=50_000, delay_ms=1000),
}

# Declaration order is the order tiers drain the pool in.
DEFAULT_TIERS: Tuple[Tier, ...] = (Tier.FAST, Tier.MEDIUM, Tier.SLOW, Tier.VERY_SLOW)


class LineProtocolRecord(BaseModel):
    """
    One Influx line-protocol line: ``<measurement> <f1>=<v1>,<f2>=<v2> <ts_ms>``.

    Built per chunk per cycle, sent once and discarded.
    """

    measurement: str = Field(..., min_length=1)
    field_pairs: List[str] = Field(..., min_length=1, description="Pre-rendered name=value pairs.")
    timestamp_ms: int = Field(..., ge=0, description="Unix epoch milliseconds.")

    model_config = {"frozen": True}

    def render(self) -> str:
        return f"{self.measurement} {','.join(self.field_pairs)} {self.timestamp_ms}"


__all__ = [
    "DEFAULT_TIERS",
    "ITEM_NAME_PREFIX",
    "LineProtocolRecord",
    "MetricItem",
    "TIER_PROFILES",
    "Tier",
    "TierProfile",
    "VALUE_MAX",
    "VALUE_MIN",
    "item_name",
]
