"""
vmloadgen - tiered synthetic metrics load generator for VictoriaMetrics.

Synthesizes uniquely named metric series and pushes them as Influx line
protocol over HTTP, split across four tiers that run concurrently:

- Fast: 2000 items, back-to-back cycles
- Medium: 2000 items every 50 ms
- Slow: 2000 items every 500 ms
- VerySlow: up to 50000 items every second

There is no retry and no backpressure; failed writes are logged and dropped.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from vmloadgen.config import Settings, get_settings
from vmloadgen.domain.models import LineProtocolRecord, MetricItem, Tier, TierProfile
from vmloadgen.infrastructure.backend_client import BackendClient
from vmloadgen.orchestrator import RunConfig, available_tiers, partition_pool, run_load
from vmloadgen.pool import ItemPool
from vmloadgen.utils.logging import configure_logging, get_logger
from vmloadgen.workers import PayloadWriter, TierStats, TierWorker

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "LineProtocolRecord",
    "MetricItem",
    "Tier",
    "TierProfile",
    "ItemPool",
    # Transport
    "BackendClient",
    # Workers & orchestration
    "PayloadWriter",
    "TierStats",
    "TierWorker",
    "RunConfig",
    "available_tiers",
    "partition_pool",
    "run_load",
    # Logging
    "configure_logging",
    "get_logger",
]
