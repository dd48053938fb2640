"""
Worker interfaces and per-tier statistics for the load generator.

Tier workers depend only on the ``PayloadWriter`` protocol, so the real
``BackendClient`` and test doubles are interchangeable. ``TierStats`` is the
counter set a worker keeps while running and hands back to the orchestrator
and reporter when it stops.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class PayloadWriter(Protocol):
    """
    Anything that can ship one line-protocol payload.

    Implementations report failure through the return value and do not raise.
    """

    async def write(self, payload: str) -> bool:
        ...


@dataclass
class TierStats:
    """
    Running counters for one tier.
    """

    tier: str
    items: int = 0
    chunks_per_cycle: int = 0
    cycles: int = 0
    chunks_sent: int = 0
    chunks_failed: int = 0
    last_cycle_ms: Optional[float] = None
    total_cycle_seconds: float = 0.0

    @property
    def avg_cycle_ms(self) -> Optional[float]:
        if not self.cycles:
            return None
        return self.total_cycle_seconds * 1000.0 / self.cycles

    def record_cycle(self, duration_seconds: float, sent: int, failed: int) -> None:
        self.cycles += 1
        self.chunks_sent += sent
        self.chunks_failed += failed
        self.last_cycle_ms = duration_seconds * 1000.0
        self.total_cycle_seconds += duration_seconds

    def as_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier,
            "items": self.items,
            "chunks_per_cycle": self.chunks_per_cycle,
            "cycles": self.cycles,
            "chunks_sent": self.chunks_sent,
            "chunks_failed": self.chunks_failed,
            "last_cycle_ms": round(self.last_cycle_ms, 2) if self.last_cycle_ms is not None else None,
            "avg_cycle_ms": round(self.avg_cycle_ms, 2) if self.avg_cycle_ms is not None else None,
        }


__all__ = ["PayloadWriter", "TierStats"]
