"""
Domain package for the load generator.

Exports the core domain models used across the pool, tier workers and
orchestrator. Keep this package focused on data definitions and validation.
"""

from vmloadgen.domain.models import (
    DEFAULT_TIERS,
    TIER_PROFILES,
    LineProtocolRecord,
    MetricItem,
    Tier,
    TierProfile,
    item_name,
)

__all__ = [
    "DEFAULT_TIERS",
    "TIER_PROFILES",
    "LineProtocolRecord",
    "MetricItem",
    "Tier",
    "TierProfile",
    "item_name",
]
